# genx/parsers/verbose.py
"""
Verbose attribute notation.

    <span fx-format="currency" fx-currency="USD" fx-phone-format="intl">

    -> {"format": "currency", "currency": "USD", "phoneFormat": "intl"}

``{prefix}-opts`` and ``{prefix}-raw`` are never read here. Option names are
converted from kebab-case to camelCase; values stay strings.
"""

from bs4 import Tag

from ..notation import is_reserved_attribute, kebab_to_camel, safe_assign


def parse(element, prefix, base_config=None, **options):
    """
    Overlay verbose attributes for ``prefix`` on ``base_config``.

    Args:
        element: Tag to read
        prefix: Module prefix (fx, bx, ax...)
        base_config: Configuration built by lower-priority strategies

    Returns:
        New configuration dict
    """
    config = dict(base_config or {})
    if not isinstance(element, Tag):
        return config

    head = f"{prefix}-"
    for name, value in element.attrs.items():
        if not name.startswith(head) or is_reserved_attribute(name):
            continue
        key = kebab_to_camel(name[len(head):])
        if isinstance(value, list):
            value = " ".join(value)
        safe_assign(config, key, value)

    return config
