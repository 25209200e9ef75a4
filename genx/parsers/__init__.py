# genx/parsers/__init__.py
"""
Parser strategies, one module per notation style.

Every strategy exposes ``parse(element, prefix, base_config, **options)`` and
returns a new dict: ``base_config`` overlaid with whatever the strategy reads
from the element. Strategies are imported lazily through
``genx.loader.ParserRegistry`` so only the styles present on a page are loaded.
"""

# Applied in this order, lowest priority first; later layers win on conflicts
PRIORITY_ORDER = ("class", "verbose", "colon", "json")
