"""
Shared mutation observer for all genx modules.

Instead of every enhancement module watching the document on its own, modules
subscribe here and a single underlying MutationObserver fans each batch out
to them. The observer is created on the first subscription and stays in
place until ``disconnect()`` is called explicitly.

Each subscription can narrow what it receives:

    bridge.subscribe("fmtx", on_change, attribute_filter=["fx-"])

Attribute records pass when the attribute name starts with one of the
filter prefixes; child-list records pass when an added node, or one of its
descendants, carries such an attribute. Without a filter every record is
delivered (child-list records only when ``child_list`` is true).
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, List, Optional, Sequence

from bs4 import Tag

from .dom import ATTRIBUTES, CHILD_LIST, MutationObserver
from .errors import SubscriptionError

logger = logging.getLogger(__name__)


class BridgeState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    OBSERVING = "observing"
    DISCONNECTED = "disconnected"


def _has_matching_attribute(tag, prefixes):
    return any(name.startswith(prefix) for name in tag.attrs for prefix in prefixes)


def _node_matches(node, prefixes):
    if not isinstance(node, Tag):
        return False
    if _has_matching_attribute(node, prefixes):
        return True
    return node.find(lambda tag: _has_matching_attribute(tag, prefixes)) is not None


def filter_mutations(records, attribute_filter=None, child_list=True):
    """
    Select the records a subscription should see.

    Args:
        records: Batch of MutationRecords
        attribute_filter: Attribute-name prefixes (e.g. ["fx-"]); empty means no filter
        child_list: Whether child-list records are wanted at all

    Returns:
        List of matching records, in batch order
    """
    matched = []
    for record in records:
        if record.type == CHILD_LIST:
            if not child_list:
                continue
            if attribute_filter and not any(
                _node_matches(node, attribute_filter) for node in record.added_nodes
            ):
                continue
            matched.append(record)
        elif record.type == ATTRIBUTES:
            if attribute_filter and not (
                record.attribute_name
                and any(record.attribute_name.startswith(prefix) for prefix in attribute_filter)
            ):
                continue
            matched.append(record)
    return matched


class Subscription:
    def __init__(self, module_id, callback, attribute_filter=None, child_list=True, debounce=None):
        self.module_id = module_id
        self.callback = callback
        self.attribute_filter = tuple(attribute_filter or ())
        self.child_list = child_list
        self.debounce = debounce
        self.active = True
        self._buffer = []
        self._timer = None

    def matching(self, records):
        return filter_mutations(records, self.attribute_filter, self.child_list)

    def deliver(self, records):
        if not self.active:
            return
        if self.debounce:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._buffer.extend(records)
                if self._timer is not None:
                    self._timer.cancel()
                self._timer = loop.call_later(self.debounce, self._fire)
                return
        self._invoke(records)

    def _fire(self):
        self._timer = None
        records, self._buffer = self._buffer, []
        if records and self.active:
            self._invoke(records)

    def _invoke(self, records):
        try:
            self.callback(records)
        except Exception as e:
            logger.error(f"[genx.bridge] Error in {self.module_id} callback: {e}", exc_info=True)

    def cancel(self):
        self.active = False
        self._buffer = []
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class MutationBridge:
    """Multiplexes one MutationObserver on ``document`` to many subscribers."""

    def __init__(self, document, observer_factory=MutationObserver):
        self.document = document
        self.observer_factory = observer_factory
        self.observer: Optional[MutationObserver] = None
        self.state = BridgeState.UNINITIALIZED
        self._subscriptions = {}
        self._preprocessors: List[Callable] = []

    def _connect(self):
        if self.observer is not None:
            return
        self.observer = self.observer_factory(self._handle_mutations)
        self.observer.observe(self.document, child_list=True, attributes=True, subtree=True)
        self.state = BridgeState.OBSERVING
        logger.debug("[genx.bridge] Shared observer connected")

    def add_preprocessor(self, fn):
        """
        Register ``fn(records)`` to run before subscribers are dispatched.

        Preprocessors see the full batch, in registration order. The bootstrap
        uses this to cache newly inserted elements before modules hear about them.
        """
        self._preprocessors.append(fn)

    def remove_preprocessor(self, fn):
        if fn in self._preprocessors:
            self._preprocessors.remove(fn)

    def subscribe(
        self,
        module_id: str,
        callback: Callable,
        attribute_filter: Optional[Sequence[str]] = None,
        child_list: bool = True,
        debounce: Optional[float] = None,
    ):
        """
        Subscribe a module to mutation batches.

        Subscribing an id that is already active replaces the old subscription;
        the old unsubscribe function then does nothing.

        Args:
            module_id: Unique module identifier (e.g. "fmtx")
            callback: Called with the list of matching records
            attribute_filter: Attribute-name prefixes to watch
            child_list: Receive child-list records
            debounce: Optional window in seconds to coalesce bursts

        Returns:
            Function that removes this subscription
        """
        if not module_id or not isinstance(module_id, str):
            raise SubscriptionError("invalid_module_id", "module_id must be a non-empty string")
        if not callable(callback):
            raise SubscriptionError(
                "invalid_callback",
                f"Callback must be callable for module {module_id}",
                {"module_id": module_id},
            )

        previous = self._subscriptions.get(module_id)
        if previous is not None:
            logger.warning(f"[genx.bridge] Replacing existing subscription for {module_id}")
            previous.cancel()

        subscription = Subscription(module_id, callback, attribute_filter, child_list, debounce)
        self._subscriptions[module_id] = subscription
        self._connect()

        def unsubscribe():
            if self._subscriptions.get(module_id) is subscription:
                del self._subscriptions[module_id]
            subscription.cancel()

        return unsubscribe

    def unsubscribe(self, module_id):
        subscription = self._subscriptions.pop(module_id, None)
        if subscription is not None:
            subscription.cancel()

    def is_subscribed(self, module_id):
        return module_id in self._subscriptions

    @property
    def subscription_count(self):
        return len(self._subscriptions)

    def disconnect(self):
        """Tear down the observer and drop every subscription."""
        for subscription in self._subscriptions.values():
            subscription.cancel()
        self._subscriptions.clear()
        if self.observer is not None:
            self.observer.disconnect()
            self.observer = None
        self.state = BridgeState.DISCONNECTED

    def _handle_mutations(self, records, observer=None):
        for preprocessor in list(self._preprocessors):
            try:
                preprocessor(records)
            except Exception as e:
                logger.error(f"[genx.bridge] Mutation preprocessor failed: {e}", exc_info=True)

        for subscription in list(self._subscriptions.values()):
            if not subscription.active:
                continue
            matched = subscription.matching(records)
            if matched:
                subscription.deliver(matched)
