"""
Identity-keyed store of resolved element configurations.

bs4 tags compare and hash by their markup, so two identical ``<span>`` tags
are "equal" and hashing one serialises the whole subtree. The cache therefore
keys entries by ``id(element)`` and keeps a weak reference next to each entry:
the reference both guards against id reuse and removes the entry once the
element has been garbage collected. Nothing here keeps an element alive.

There is no invalidation API. Attribute edits made after an
element was parsed show up only after an explicit ``rescan(refresh=True)``.
"""

import weakref

from bs4 import Tag


class ConfigCache:
    def __init__(self):
        # id(element) -> (weakref to element, config dict)
        self._entries = {}

    def _reclaim(self, key, ref):
        entry = self._entries.get(key)
        if entry is not None and entry[0] is ref:
            del self._entries[key]

    def get(self, element):
        """
        Return the cached configuration for ``element``.

        Returns None for None, non-Tag input and elements never parsed.
        Repeated calls return the same dict object.
        """
        if not isinstance(element, Tag):
            return None
        entry = self._entries.get(id(element))
        if entry is None or entry[0]() is not element:
            return None
        return entry[1]

    def set(self, element, config):
        """Store ``config`` for ``element``, replacing any previous entry."""
        key = id(element)
        ref = weakref.ref(element, lambda r, key=key: self._reclaim(key, r))
        self._entries[key] = (ref, config)
        return config

    def has(self, element):
        return self.get(element) is not None

    def __contains__(self, element):
        return self.has(element)

    def __len__(self):
        return len(self._entries)

    def clear(self):
        self._entries.clear()


def get_config(element, cache):
    """Public lookup; None for anything that was not parsed."""
    if cache is None:
        return None
    return cache.get(element)
