"""
On-demand loading of parser strategies.

Only the strategies for notation styles actually present on a page are
imported. Loaded strategies are kept in a registry for the lifetime of the
process, so a second request for the same style costs nothing, and a failed
style never prevents the others from loading.
"""

import asyncio
import importlib
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable

from .conf import DEFAULT_PARSER_PATHS
from .errors import LoadError

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    loaded: Dict[str, object] = field(default_factory=dict)
    failed: Dict[str, LoadError] = field(default_factory=dict)


class ParserRegistry:
    """
    Registry of loaded parser strategies, keyed by notation style.

    ``fetch_count`` counts actual imports; served-from-registry requests do
    not increment it.
    """

    def __init__(self, parser_paths=None):
        self.parser_paths = dict(DEFAULT_PARSER_PATHS)
        if parser_paths:
            self.parser_paths.update(parser_paths)
        self._parsers = {}
        self._pending = {}
        self.fetch_count = 0

    def get(self, style):
        return self._parsers.get(style)

    def is_loaded(self, style):
        return style in self._parsers

    @property
    def loaded_styles(self):
        return list(self._parsers)

    def reset(self):
        self._parsers.clear()
        self._pending.clear()
        self.fetch_count = 0

    def _fetch(self, style):
        path = self.parser_paths.get(style)
        if not path:
            raise LoadError("unknown_style", f"No parser registered for style '{style}'", {"style": style})

        self.fetch_count += 1
        try:
            module = importlib.import_module(path)
        except Exception as e:
            raise LoadError(
                "import_failed",
                f"Failed to load {style} parser from {path}: {e}",
                {"style": style, "path": path},
            ) from e

        if not callable(getattr(module, "parse", None)):
            raise LoadError(
                "missing_parse",
                f"{path} does not expose a parse() function",
                {"style": style, "path": path},
            )
        return module

    def load(self, style):
        """
        Load a strategy synchronously, serving it from the registry when present.

        Raises:
            LoadError: If the strategy cannot be imported
        """
        parser = self._parsers.get(style)
        if parser is None:
            parser = self._fetch(style)
            self._parsers[style] = parser
        return parser

    async def aload(self, style):
        """Async load; concurrent requests for the same style share one fetch."""
        parser = self._parsers.get(style)
        if parser is not None:
            return parser

        task = self._pending.get(style)
        if task is None:
            task = asyncio.ensure_future(self._load_soon(style))
            self._pending[style] = task
            task.add_done_callback(lambda _t, style=style: self._pending.pop(style, None))
        return await task

    async def _load_soon(self, style):
        # Yield once so parallel requests can attach to the pending load
        await asyncio.sleep(0)
        return self.load(style)


default_registry = ParserRegistry()


def _dedupe(styles: Iterable[str]):
    return list(dict.fromkeys(styles or ()))


async def load_parsers(styles, registry=None):
    """
    Load the strategies for ``styles`` in parallel.

    Args:
        styles: Notation styles to load
        registry: ParserRegistry to use (default: the process-wide registry)

    Returns:
        LoadResult; failures are collected in ``failed`` and logged
    """
    registry = registry if registry is not None else default_registry
    styles = _dedupe(styles)
    result = LoadResult()
    if not styles:
        return result

    outcomes = await asyncio.gather(*(registry.aload(style) for style in styles), return_exceptions=True)

    for style, outcome in zip(styles, outcomes):
        if isinstance(outcome, LoadError):
            logger.error(f"genx: {outcome.message}")
            result.failed[style] = outcome
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            result.loaded[style] = outcome

    return result


def load_parsers_now(styles, registry=None):
    """Synchronous counterpart of ``load_parsers`` sharing the same registry."""
    registry = registry if registry is not None else default_registry
    result = LoadResult()
    for style in _dedupe(styles):
        try:
            result.loaded[style] = registry.load(style)
        except LoadError as e:
            logger.error(f"genx: {e.message}")
            result.failed[style] = e
    return result
