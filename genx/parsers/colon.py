# genx/parsers/colon.py
"""
Colon notation: positional values packed into one attribute.

    <span fx-format="currency:USD:2">

    -> {"format": "currency", "currency": "USD", "decimals": "2"}

The first segment belongs to the attribute's own option. Following segments
map onto the prefix's cardinality order, starting right after that option.
Segments past the end of the order are ignored and empty following
segments are skipped, so ``currency::2`` sets ``format`` and ``decimals``
only. The first segment is always assigned: ``:USD`` sets ``format`` to ``""``.
"""

import logging

from bs4 import Tag

from ..notation import (
    DEFAULT_NOTATION,
    describe_element,
    is_reserved_attribute,
    kebab_to_camel,
    safe_assign,
)

logger = logging.getLogger(__name__)


def split_segments(value):
    return value.split(":")


def map_colon_value(config, order, key, value):
    """
    Map one colon-separated value onto ``config``.

    Returns:
        Number of options assigned
    """
    segments = split_segments(value)
    assigned = 0

    # Own key always takes the first segment, even an empty one
    if safe_assign(config, key, segments[0]):
        assigned += 1

    try:
        start = order.index(key)
    except ValueError:
        # Option outside the cardinality order: nothing to map positionally
        if len(segments) > 1:
            logger.debug(f"Ignoring {len(segments) - 1} positional segment(s) for '{key}'")
        return assigned

    for offset, segment in enumerate(segments[1:], start=1):
        position = start + offset
        if position >= len(order):
            break
        if segment and safe_assign(config, order[position], segment):
            assigned += 1

    return assigned


def parse(element, prefix, base_config=None, notation=DEFAULT_NOTATION, **options):
    """
    Overlay colon-encoded attributes for ``prefix`` on ``base_config``.

    Args:
        element: Tag to read
        prefix: Module prefix
        base_config: Configuration built by lower-priority strategies
        notation: Notation tables providing the cardinality order

    Returns:
        New configuration dict
    """
    config = dict(base_config or {})
    if not isinstance(element, Tag):
        return config

    order = notation.order_for(prefix)
    head = f"{prefix}-"
    for name, value in element.attrs.items():
        if not name.startswith(head) or is_reserved_attribute(name):
            continue
        if not isinstance(value, str) or ":" not in value:
            continue
        key = kebab_to_camel(name[len(head):])
        if not map_colon_value(config, order, key, value):
            logger.debug(f"No usable segments in {name}='{value}' on {describe_element(element)}")

    return config
