"""Detect which notation styles appear among scanned elements."""

from bs4 import Tag

from .notation import (
    DEFAULT_NOTATION,
    NOTATION_STYLES,
    OPTS_SUFFIX,
    RAW_SUFFIX,
    class_list,
    split_prefix,
)


def detect_notation_styles(elements, notation=DEFAULT_NOTATION):
    """
    Return the notation styles present, in canonical order.

    verbose: a ``{prefix}-{option}`` attribute other than ``-opts``/``-raw``
    colon:   such an attribute whose value contains ``:``
    json:    a non-empty ``{prefix}-opts`` attribute
    class:   a ``{classPrefix}-...`` class token

    Stops looking as soon as all four styles have been seen.
    """
    if not elements:
        return []

    prefixes = notation.prefixes
    class_prefixes = notation.class_to_module
    found = set()
    total = len(NOTATION_STYLES)

    for element in elements:
        if not isinstance(element, Tag):
            continue

        for name, value in element.attrs.items():
            head, tail = split_prefix(name)
            if not tail or head not in prefixes:
                continue
            if name.endswith(OPTS_SUFFIX):
                if value:
                    found.add("json")
                continue
            if name.endswith(RAW_SUFFIX):
                continue
            found.add("verbose")
            if isinstance(value, str) and ":" in value:
                found.add("colon")

        if "class" not in found:
            for token in class_list(element):
                head, tail = split_prefix(token)
                if tail and head in class_prefixes:
                    found.add("class")
                    break

        if len(found) == total:
            break

    return [style for style in NOTATION_STYLES if style in found]
