# genx/conf.py

import copy

from django.conf import settings

DEFAULT_PARSER_PATHS = {
    "verbose": "genx.parsers.verbose",
    "colon": "genx.parsers.colon",
    "json": "genx.parsers.jsonopts",
    "class": "genx.parsers.classnames",
}

DEFAULTS = {
    # Watch the document for inserted content after bootstrap
    "OBSERVE": True,
    # Parser strategy import paths, keyed by notation style
    "PARSER_PATHS": DEFAULT_PARSER_PATHS,
    # Enhancement module factories, keyed by module prefix (dotted paths)
    "MODULES": {},
    # Options handed to each module factory on init
    "MODULE_OPTIONS": {},
    # Extra or replacement notation tables
    "CARDINALITY_ORDERS": {},
    "CLASS_PREFIX_MAP": {},
    "CLASS_PARSER": {
        "coerce_numbers": True,
        "max_segment_length": 64,
    },
    "PERFORMANCE": {
        "warnings": False,
        "logging": False,
        "targets": {
            "scan1000": 5.0,  # ms per 1000 scanned elements
            "parse1000": 100.0,  # ms per 1000 parsed elements
            "bootstrap": 105.0,  # ms for the whole bootstrap
        },
    },
}


def _merge(base, overrides):
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_genx_config(overrides=None):
    """
    Configuration for the genx bootstrap.

    Values come from the ``GENX`` dict in Django settings when settings are
    configured, layered over the built-in defaults. Nested dicts are merged
    key by key, so a project can override a single performance target without
    restating the rest.

    Args:
        overrides: Optional dict applied on top of settings (used by callers
            that build a context programmatically)

    Returns:
        A fresh dict; callers may mutate it freely.
    """
    config = DEFAULTS
    if settings.configured:
        config = _merge(config, getattr(settings, "GENX", None) or {})
    else:
        config = copy.deepcopy(config)
    if overrides:
        config = _merge(config, overrides)
    return config
