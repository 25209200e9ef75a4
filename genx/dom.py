"""
Document wrapper and mutation observation for BeautifulSoup trees.

BeautifulSoup has no notion of change notification, so edits that should be
observable go through ``Document``: each helper applies the change to the
tree and queues a ``MutationRecord`` for every observer watching it.

Observers receive their pending records as one batch per tick. With a
running asyncio loop the batch is delivered by ``loop.call_soon``; without
one, records wait until ``Document.flush()`` (or ``observer.flush()``).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

CHILD_LIST = "childList"
ATTRIBUTES = "attributes"


@dataclass(frozen=True, eq=False)
class MutationRecord:
    type: str
    target: Tag
    added_nodes: Tuple = ()
    removed_nodes: Tuple = ()
    attribute_name: Optional[str] = None
    old_value: Optional[str] = None


def _is_within(node, ancestor):
    while node is not None:
        if node is ancestor:
            return True
        node = node.parent
    return False


class MutationObserver:
    """
    Batched mutation observer bound to one or more documents.

    ``callback(records, observer)`` is called once per delivered batch.
    """

    def __init__(self, callback: Callable):
        if not callable(callback):
            raise TypeError("MutationObserver callback must be callable")
        self.callback = callback
        self._targets = []
        self._pending: List[MutationRecord] = []
        self._scheduled = False

    def observe(self, document, *, child_list=True, attributes=True, subtree=True, target=None):
        """
        Start observing ``document``.

        Args:
            document: Document to observe
            child_list: Receive node insertions/removals
            attributes: Receive attribute changes
            subtree: Include changes below ``target``, not only on it
            target: Node to watch (default: the document root)
        """
        options = {
            "child_list": child_list,
            "attributes": attributes,
            "subtree": subtree,
            "target": target if target is not None else document.soup,
        }
        self._targets.append((document, options))
        document._register(self, options)

    def disconnect(self):
        for document, _options in self._targets:
            document._unregister(self)
        self._targets = []
        self._pending = []

    def take_records(self):
        records, self._pending = self._pending, []
        return records

    def _enqueue(self, record):
        self._pending.append(record)
        if self._scheduled:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._scheduled = True
        loop.call_soon(self._deliver)

    def _deliver(self):
        self._scheduled = False
        self.flush()

    def flush(self):
        """Deliver pending records now; returns the number delivered."""
        records = self.take_records()
        if records:
            self.callback(records, self)
        return len(records)


class Document:
    """A BeautifulSoup tree whose edits are visible to mutation observers."""

    def __init__(self, soup: BeautifulSoup):
        self.soup = soup
        self._observers = []

    @classmethod
    def from_html(cls, html, features="html.parser"):
        return cls(BeautifulSoup(html or "", features))

    @property
    def body(self):
        return self.soup.body or self.soup

    @property
    def observer_count(self):
        return len(self._observers)

    def _register(self, observer, options):
        self._observers.append((observer, options))

    def _unregister(self, observer):
        self._observers = [(o, opts) for o, opts in self._observers if o is not observer]

    def _notify(self, record):
        for observer, options in list(self._observers):
            if record.type == CHILD_LIST and not options["child_list"]:
                continue
            if record.type == ATTRIBUTES and not options["attributes"]:
                continue
            watched = options["target"]
            if options["subtree"]:
                if not _is_within(record.target, watched):
                    continue
            elif record.target is not watched:
                continue
            observer._enqueue(record)

    def flush(self):
        """Deliver every observer's pending batch; returns the number of records."""
        return sum(observer.flush() for observer, _options in list(self._observers))

    def __str__(self):
        return str(self.soup)

    # Tree construction

    def create_element(self, name, attrs=None, text=None):
        tag = self.soup.new_tag(name, attrs=attrs or {})
        if text is not None:
            tag.string = text
        return tag

    def parse_fragment(self, html):
        fragment = BeautifulSoup(html, "html.parser")
        return [node.extract() for node in list(fragment.contents)]

    # Observable edits

    def append_child(self, parent, child):
        parent = parent if parent is not None else self.body
        parent.append(child)
        self._notify(MutationRecord(CHILD_LIST, parent, added_nodes=(child,)))
        return child

    def insert_html(self, parent, html):
        """Parse ``html`` and append the resulting nodes to ``parent`` as one mutation."""
        parent = parent if parent is not None else self.body
        nodes = self.parse_fragment(html)
        for node in nodes:
            parent.append(node)
        if nodes:
            self._notify(MutationRecord(CHILD_LIST, parent, added_nodes=tuple(nodes)))
        return nodes

    def remove(self, node):
        parent = node.parent
        node.extract()
        if parent is not None:
            self._notify(MutationRecord(CHILD_LIST, parent, removed_nodes=(node,)))
        return node

    def set_attribute(self, element, name, value):
        old_value = element.get(name)
        element[name] = value
        self._notify(MutationRecord(ATTRIBUTES, element, attribute_name=name, old_value=old_value))

    def remove_attribute(self, element, name):
        if name not in element.attrs:
            return
        old_value = element[name]
        del element[name]
        self._notify(MutationRecord(ATTRIBUTES, element, attribute_name=name, old_value=old_value))
