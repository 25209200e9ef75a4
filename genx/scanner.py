"""
Unified scan of a document for genx-enhanced elements.

One ``find_all`` call with a combined matcher covers every notation: any
``{prefix}-*`` attribute of a known module prefix and any ``{classPrefix}-*``
class token. Modules never query the tree on their own.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Set

from bs4 import Tag

from .dom import Document
from .notation import DEFAULT_NOTATION, class_list, detect_prefix, split_prefix

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    elements: List[Tag] = field(default_factory=list)
    needed: Set[str] = field(default_factory=set)


class UnifiedMatcher:
    """Combined predicate for every recognised attribute prefix and class prefix."""

    def __init__(self, notation=DEFAULT_NOTATION):
        self.prefixes = notation.prefixes
        self.class_prefixes = frozenset(notation.class_to_module)

    def __call__(self, tag):
        for name in tag.attrs:
            head, tail = split_prefix(name)
            if tail and head in self.prefixes:
                return True
        for token in class_list(tag):
            head, tail = split_prefix(token)
            if tail and head in self.class_prefixes:
                return True
        return False


def resolve_root(root):
    """Accept a Document wrapper, a BeautifulSoup tree or a Tag."""
    if isinstance(root, Document):
        return root.soup
    return root if isinstance(root, Tag) else None


def scan(root, notation=DEFAULT_NOTATION, metrics=None):
    """
    Scan ``root`` for genx elements.

    Args:
        root: Document, BeautifulSoup tree or Tag. The root itself is not
            matched, only its descendants.
        notation: Notation tables
        metrics: Optional PerformanceMetrics receiving the scan timing

    Returns:
        ScanResult with matched elements in document order and the set of
        module prefixes they need
    """
    start = time.perf_counter()
    tag = resolve_root(root)
    if tag is None:
        return ScanResult()

    matcher = UnifiedMatcher(notation)
    elements = tag.find_all(matcher)

    needed = set()
    for element in elements:
        prefix = detect_prefix(element, notation)
        if prefix:
            needed.add(prefix)

    duration_ms = (time.perf_counter() - start) * 1000
    if metrics is not None:
        metrics.record_scan(len(elements), duration_ms)
    logger.debug(f"Scanned {len(elements)} elements ({len(needed)} modules) in {duration_ms:.2f}ms")

    return ScanResult(elements=list(elements), needed=needed)


def collect_elements(nodes, notation=DEFAULT_NOTATION):
    """
    Collect genx elements from a set of subtrees, roots included.

    Used by incremental rescans of inserted or changed nodes. Non-Tag nodes
    are ignored and each element appears once even when subtrees overlap.
    """
    matcher = UnifiedMatcher(notation)
    seen = {}
    for node in nodes:
        if not isinstance(node, Tag):
            continue
        if node.name != "[document]" and matcher(node):
            seen.setdefault(id(node), node)
        for element in node.find_all(matcher):
            seen.setdefault(id(element), element)
    return list(seen.values())
