"""
Merge the four notations of an element into one configuration.

Strategies run lowest priority first and each receives the previous result
as its base, so later layers win on conflicts:

    class (base) -> verbose -> colon -> json

A strategy that is not loaded is skipped. The merged dict is stored in the
ConfigCache, where every enhancement module reads it.
"""

import logging
import time

from bs4 import Tag

from .notation import DEFAULT_NOTATION, describe_element, detect_prefix
from .parsers import PRIORITY_ORDER

logger = logging.getLogger(__name__)


def resolve_config(element, prefix, loaded_parsers, notation=DEFAULT_NOTATION, parser_options=None):
    """
    Run the loaded strategies for one element.

    Args:
        element: Tag to parse
        prefix: Module prefix owning the element
        loaded_parsers: Mapping of style -> strategy module (missing styles are skipped)
        notation: Notation tables
        parser_options: Optional mapping of style -> extra keyword options

    Returns:
        The merged configuration dict
    """
    config = {}
    parser_options = parser_options or {}
    for style in PRIORITY_ORDER:
        parser = loaded_parsers.get(style) if loaded_parsers else None
        if parser is None:
            continue
        try:
            config = parser.parse(element, prefix, config, notation=notation, **parser_options.get(style, {}))
        except Exception:
            # Keep what the lower layers produced
            logger.error(
                f"genx: {style} parser failed on {describe_element(element)}",
                exc_info=True,
            )
    return config


def parse_all_elements(
    elements,
    loaded_parsers,
    cache,
    notation=DEFAULT_NOTATION,
    metrics=None,
    refresh=False,
    parser_options=None,
):
    """
    Parse elements and populate the cache.

    Elements already in the cache are skipped unless ``refresh`` is set, in
    which case the existing dict is updated in place so holders of the old
    reference see the new values. Elements without any recognised prefix
    still get an (empty) configuration.

    Args:
        elements: Tags to parse (typically ``scan(...).elements``)
        loaded_parsers: Mapping of style -> strategy, e.g. ``LoadResult.loaded``
        cache: ConfigCache to populate
        notation: Notation tables
        metrics: Optional PerformanceMetrics
        refresh: Re-parse elements that are already cached
        parser_options: Optional mapping of style -> extra keyword options

    Returns:
        Number of elements parsed by this call
    """
    start = time.perf_counter()
    parsed = 0
    hits = 0
    elements = list(elements or ())

    for element in elements:
        if not isinstance(element, Tag):
            continue
        existing = cache.get(element)
        if existing is not None and not refresh:
            hits += 1
            continue
        if metrics is not None:
            metrics.cache_misses += 1

        prefix = detect_prefix(element, notation)
        config = {}
        if prefix:
            config = resolve_config(element, prefix, loaded_parsers, notation, parser_options)
        else:
            logger.debug(f"No genx prefix on {describe_element(element)}; caching empty configuration")

        if existing is not None:
            existing.clear()
            existing.update(config)
        else:
            cache.set(element, config)
        parsed += 1

    duration_ms = (time.perf_counter() - start) * 1000
    if metrics is not None:
        metrics.cache_hits += hits
        metrics.record_parse(len(elements), parsed, hits, duration_ms)
    logger.debug(f"Parsed {parsed} elements ({hits} cache hits) in {duration_ms:.2f}ms")

    return parsed
