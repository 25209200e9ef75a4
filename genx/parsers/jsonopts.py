# genx/parsers/jsonopts.py
"""
JSON notation read from ``{prefix}-opts``.

    <span fx-opts='{"format": "currency", "decimals": 2}'>

This is the highest-priority layer: its keys replace anything set by the
class, verbose and colon strategies, and JSON types are kept as decoded
(numbers, booleans, null, lists, nested objects). Malformed JSON is logged
and the base configuration is returned untouched.
"""

import json
import logging

from bs4 import Tag

from ..errors import ParseError
from ..notation import OPTS_SUFFIX, describe_element, is_safe_key, safe_assign

logger = logging.getLogger(__name__)


def strip_unsafe_keys(value):
    """Drop unsafe keys from decoded JSON, recursing into objects and lists."""
    if isinstance(value, dict):
        return {k: strip_unsafe_keys(v) for k, v in value.items() if is_safe_key(k)}
    if isinstance(value, list):
        return [strip_unsafe_keys(item) for item in value]
    return value


def decode_opts(raw, attr_name="opts"):
    """
    Decode an ``-opts`` attribute value.

    Raises:
        ParseError: If the value is not valid JSON or not a JSON object
    """
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ParseError(
            "malformed_json",
            f"Malformed JSON in {attr_name}: {e}",
            {"attribute": attr_name, "value": raw},
        ) from e

    if not isinstance(decoded, dict):
        raise ParseError(
            "json_not_object",
            f"{attr_name} must hold a JSON object, got {type(decoded).__name__}",
            {"attribute": attr_name, "value": raw},
        )

    return decoded


def parse(element, prefix, base_config=None, **options):
    """
    Overlay the decoded ``{prefix}-opts`` object on ``base_config``.

    Args:
        element: Tag to read
        prefix: Module prefix
        base_config: Configuration built by lower-priority strategies

    Returns:
        New configuration dict
    """
    config = dict(base_config or {})
    if not isinstance(element, Tag):
        return config

    attr_name = f"{prefix}{OPTS_SUFFIX}"
    raw = element.get(attr_name)
    if not raw:
        return config

    try:
        decoded = decode_opts(raw, attr_name)
    except ParseError as e:
        logger.warning(
            f"genx: {e.message} on {describe_element(element)} (value: {raw!r})"
        )
        return config

    for key, value in decoded.items():
        if not safe_assign(config, key, strip_unsafe_keys(value)):
            logger.debug(f"Dropped unsafe key {key!r} from {attr_name}")

    return config
