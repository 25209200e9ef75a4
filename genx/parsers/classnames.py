# genx/parsers/classnames.py
"""
CSS class notation.

    <span class="btn fmt-currency-USD-2">

    -> {"format": "currency", "currency": "USD", "decimals": 2}

The module prefix maps to a class prefix (``fx`` -> ``fmt``). The first class
token carrying that class prefix is split on hyphens and its segments are
mapped positionally onto the cardinality order. Other classes on the element
are left alone.

Segments are only accepted when they look like plain tokens (word characters
and dots) and are not overly long; a rejected segment still consumes its
position. Numeric segments become ``int``/``float`` unless ``coerce_numbers``
is off.
"""

import re

from bs4 import Tag

from ..notation import DEFAULT_NOTATION, class_list, safe_assign

DEFAULT_OPTIONS = {
    "coerce_numbers": True,
    "max_segment_length": 64,
}

_SAFE_TOKEN_RE = re.compile(r"^[\w.]+$")
_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")


def _options(options):
    merged = dict(DEFAULT_OPTIONS)
    if options:
        merged.update({k: v for k, v in options.items() if k in DEFAULT_OPTIONS})
    return merged


def is_safe_token(segment, max_length=DEFAULT_OPTIONS["max_segment_length"]):
    if not segment or len(segment) > max_length:
        return False
    return bool(_SAFE_TOKEN_RE.match(segment))


def coerce_segment(segment):
    if _INT_RE.match(segment):
        return int(segment)
    if _FLOAT_RE.match(segment):
        return float(segment)
    return segment


def map_segments_to_config(config, order, segments, options=None):
    """
    Map ``segments`` onto ``config`` following ``order``.

    Excess segments are ignored; unsafe keys and unsafe segments are skipped.

    Returns:
        The same ``config`` dict
    """
    opts = _options(options)
    for key, segment in zip(order, segments):
        if not is_safe_token(segment, opts["max_segment_length"]):
            continue
        value = coerce_segment(segment) if opts["coerce_numbers"] else segment
        safe_assign(config, key, value)
    return config


def map_class_string_to_config(config, order, class_token, options=None):
    """Map a single ``prefix-v1-v2-...`` class token, dropping the prefix segment."""
    segments = class_token.split("-")[1:]
    return map_segments_to_config(config, order, segments, options)


def get_genx_class_for_prefix(element, class_prefix):
    """Return the first class token starting with ``{class_prefix}-``, or None."""
    head = f"{class_prefix}-"
    for token in class_list(element):
        if token.startswith(head) and len(token) > len(head):
            return token
    return None


def parse(element, prefix, base_config=None, notation=DEFAULT_NOTATION, **options):
    """
    Overlay class notation for ``prefix`` on ``base_config``.

    Args:
        element: Tag to read
        prefix: Module prefix
        base_config: Configuration built so far (usually empty; class is the base layer)
        notation: Notation tables providing class prefix and cardinality order
        **options: ``coerce_numbers`` / ``max_segment_length`` overrides

    Returns:
        New configuration dict
    """
    config = dict(base_config or {})
    if not isinstance(element, Tag):
        return config

    class_prefix = notation.class_prefix_for(prefix)
    order = notation.order_for(prefix)
    if not class_prefix or not order:
        return config

    token = get_genx_class_for_prefix(element, class_prefix)
    if token is None:
        return config

    return map_class_string_to_config(config, order, token, options)
