"""
Registry of enhancement modules (fmtx, bindx, accx...).

genx does not implement the modules themselves. A module is any object with
an ``init(context, options)`` method, registered under its prefix either
directly or through ``GENX["MODULES"]``:

    GENX = {
        "MODULES": {"fx": "myproject.enhancers.fmtx.FormatModule"},
        "MODULE_OPTIONS": {"fx": {"locale": "en-US"}},
    }

``init`` may return an awaitable; the bootstrap awaits it.
"""

import asyncio
import inspect
import logging

from django.utils.module_loading import import_string

from .errors import ModuleInitError

logger = logging.getLogger(__name__)


class ModuleRegistry:
    def __init__(self, paths=None, options=None):
        self.paths = dict(paths or {})
        self.options = dict(options or {})
        self._factories = {}
        self._initialized = {}

    def register(self, prefix, factory):
        self._factories[prefix] = factory

    def get_factory(self, prefix):
        """Return the factory for ``prefix``, importing it from settings on first use."""
        factory = self._factories.get(prefix)
        if factory is not None:
            return factory

        path = self.paths.get(prefix)
        if not path:
            return None
        try:
            factory = import_string(path)
        except ImportError as e:
            raise ModuleInitError(
                "import_failed",
                f"Failed to load module {prefix} from {path}: {e}",
                {"prefix": prefix, "path": path},
            ) from e
        self._factories[prefix] = factory
        return factory

    def is_loaded(self, prefix):
        return prefix in self._initialized

    @property
    def loaded(self):
        return list(self._initialized)

    def _start(self, prefix, context):
        factory = self.get_factory(prefix)
        if factory is None:
            logger.debug(f"No enhancement module registered for prefix '{prefix}'")
            return False, None
        init = getattr(factory, "init", None)
        if not callable(init):
            raise ModuleInitError(
                "missing_init",
                f"Module {prefix} does not expose init()",
                {"prefix": prefix},
            )
        return True, init(context, dict(self.options.get(prefix) or {}))

    async def init(self, prefix, context):
        """
        Initialise one module once.

        Returns:
            Whatever the module's ``init`` returned, or None when no module is registered

        Raises:
            ModuleInitError: If the module cannot be imported or has no init()
        """
        if prefix in self._initialized:
            return self._initialized[prefix]
        found, result = self._start(prefix, context)
        if not found:
            return None
        if inspect.isawaitable(result):
            result = await result
        self._initialized[prefix] = result
        return result

    async def init_all(self, prefixes, context):
        """
        Initialise every module in ``prefixes``; one failure does not stop the rest.

        Returns:
            Dict of prefix -> init result (None for failures and unregistered prefixes)
        """
        results = {}
        for prefix in sorted(prefixes):
            try:
                results[prefix] = await self.init(prefix, context)
            except Exception as e:
                logger.error(f"genx: Failed to initialize {prefix}: {e}", exc_info=True)
                results[prefix] = None
        return results

    def init_soon(self, prefixes, context):
        """
        Initialise modules from synchronous code such as mutation dispatch.

        Async ``init`` results are scheduled on the running loop; without a
        loop they cannot be awaited and the module is skipped.
        """
        for prefix in sorted(prefixes):
            if prefix in self._initialized:
                continue
            try:
                found, result = self._start(prefix, context)
            except Exception as e:
                logger.error(f"genx: Failed to initialize {prefix}: {e}", exc_info=True)
                continue
            if not found:
                continue
            if not inspect.isawaitable(result):
                self._initialized[prefix] = result
                continue
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                logger.warning(f"genx: Cannot await init of {prefix} without a running event loop")
                if inspect.iscoroutine(result):
                    result.close()
                continue
            self._initialized[prefix] = None
            task = asyncio.ensure_future(result)
            task.add_done_callback(lambda t, prefix=prefix: self._finish(prefix, t))

    def _finish(self, prefix, task):
        if task.cancelled():
            self._initialized.pop(prefix, None)
            return
        error = task.exception()
        if error is not None:
            logger.error(f"genx: Failed to initialize {prefix}: {error}")
            self._initialized.pop(prefix, None)
            return
        self._initialized[prefix] = task.result()
