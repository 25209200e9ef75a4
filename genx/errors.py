"""
Error hierarchy for genx.

Errors carry a short machine-readable code plus a frozen context mapping so
they can be logged with structure. Most of them never reach callers: parse
errors degrade to partial configuration, load errors are collected into
``LoadResult.failed`` and subscriber errors are isolated by the bridge.
"""

import time
from types import MappingProxyType


class GenXError(Exception):
    """Base class for all genx errors."""

    def __init__(self, code, message, context=None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.context = MappingProxyType(dict(context or {}))
        self.timestamp = time.time()

    def __str__(self):
        return f"[{self.code}] {self.message}"


class ParseError(GenXError):
    """Malformed notation on an element (bad JSON, unusable segment)."""


class LoadError(GenXError):
    """A parser strategy could not be loaded."""


class SubscriptionError(GenXError):
    """Invalid mutation bridge subscription."""


class ModuleInitError(GenXError):
    """An enhancement module failed to initialise."""
