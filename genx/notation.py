"""
Notation tables shared by the scanner, the detector and the parser strategies.

A module prefix (``fx``, ``bx``...) namespaces the attributes an enhancement
module reads. Each prefix also has a class prefix (``fx`` -> ``fmt``) used by
the class notation, and a cardinality order: the fixed list of option names
used to decode positional values such as ``fx-format="currency:USD:2"`` or
``class="fmt-currency-USD-2"``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import cached_property
from typing import Dict, List, Optional, Tuple

from bs4 import Tag

NOTATION_STYLES: Tuple[str, ...] = ("verbose", "colon", "json", "class")

CARDINALITY_ORDERS: Dict[str, List[str]] = {
    "fx": ["format", "currency", "decimals", "pattern", "locale"],
    "bx": ["bind", "debounce", "validate", "transform"],
    "ax": ["label", "icon", "shortcut", "role"],
    "dx": ["draggable", "zone", "handle", "data"],
    "lx": ["src", "debounce", "cache", "transform"],
    "nx": ["route", "pushState", "title", "params"],
    "tx": ["sortable", "paginate", "filter", "columns"],
}

# Module prefix -> class prefix
CLASS_PREFIX_MAP: Dict[str, str] = {
    "fx": "fmt",
    "bx": "bind",
    "ax": "acc",
    "dx": "drag",
    "lx": "load",
    "nx": "nav",
    "tx": "table",
}

# Attribute suffixes no strategy except json reads
OPTS_SUFFIX = "-opts"
RAW_SUFFIX = "-raw"

UNSAFE_KEYS = frozenset({"__proto__", "constructor", "prototype"})

_KEBAB_RE = re.compile(r"-([a-z])")


@dataclass(frozen=True)
class Notation:
    """Resolved notation tables for one context."""

    cardinality_orders: Dict[str, List[str]] = field(
        default_factory=lambda: dict(CARDINALITY_ORDERS)
    )
    class_prefix_map: Dict[str, str] = field(
        default_factory=lambda: dict(CLASS_PREFIX_MAP)
    )

    @cached_property
    def prefixes(self) -> frozenset:
        return frozenset(self.cardinality_orders) | frozenset(self.class_prefix_map)

    @cached_property
    def class_to_module(self) -> Dict[str, str]:
        return {cls: prefix for prefix, cls in self.class_prefix_map.items()}

    def order_for(self, prefix: str) -> List[str]:
        return self.cardinality_orders.get(prefix, [])

    def class_prefix_for(self, prefix: str) -> Optional[str]:
        return self.class_prefix_map.get(prefix)

    @classmethod
    def from_config(cls, config: dict) -> "Notation":
        orders = dict(CARDINALITY_ORDERS)
        orders.update(config.get("CARDINALITY_ORDERS") or {})
        class_map = dict(CLASS_PREFIX_MAP)
        class_map.update(config.get("CLASS_PREFIX_MAP") or {})
        return cls(cardinality_orders=orders, class_prefix_map=class_map)


DEFAULT_NOTATION = Notation()


def is_safe_key(key) -> bool:
    """Reject empty keys, prototype-chain names and dunder names."""
    if not isinstance(key, str) or not key:
        return False
    if key in UNSAFE_KEYS:
        return False
    return not (key.startswith("__") and key.endswith("__"))


def safe_assign(config: dict, key, value) -> bool:
    """Assign ``config[key] = value`` unless the key is unsafe."""
    if not is_safe_key(key):
        return False
    config[key] = value
    return True


def kebab_to_camel(name: str) -> str:
    """``phone-format`` -> ``phoneFormat``."""
    if not name or not isinstance(name, str):
        return ""
    return _KEBAB_RE.sub(lambda m: m.group(1).upper(), name)


def class_list(element) -> List[str]:
    """Return the element's class tokens whether bs4 stored a list or a string."""
    classes = element.get("class", [])
    if isinstance(classes, str):
        classes = classes.split()
    return classes or []


def split_prefix(name: str) -> Tuple[str, str]:
    """``fx-format`` -> ``("fx", "format")``; no dash -> ``(name, "")``."""
    head, _, tail = name.partition("-")
    return head, tail


def is_reserved_attribute(name: str) -> bool:
    return name.endswith(OPTS_SUFFIX) or name.endswith(RAW_SUFFIX)


def detect_prefix(element, notation: Notation = DEFAULT_NOTATION) -> Optional[str]:
    """
    Resolve which single module owns an element.

    Attribute-encoded prefixes win over class-encoded ones; within each
    kind the first match in source order wins.
    """
    if not isinstance(element, Tag):
        return None

    prefixes = notation.prefixes
    for name in element.attrs:
        head, tail = split_prefix(name)
        if tail and head in prefixes:
            return head

    class_to_module = notation.class_to_module
    for token in class_list(element):
        head, tail = split_prefix(token)
        if tail and head in class_to_module:
            return class_to_module[head]

    return None


def describe_element(element) -> str:
    """Short selector-like description of an element for log messages."""
    if not isinstance(element, Tag):
        return repr(element)
    element_id = element.get("id")
    if element_id:
        return f"#{element_id}"
    classes = class_list(element)
    if classes:
        return f"{element.name}.{classes[0]}"
    return element.name or "?"
