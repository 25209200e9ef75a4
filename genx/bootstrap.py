"""
Bootstrap pipeline and incremental rescans.

The bootstrap runs once per page, in this order:

1. Scan the document with the unified matcher
2. Detect which notation styles are used
3. Load the parser strategies for those styles
4. Parse every element once and cache the result
5. Initialise the enhancement modules the page needs
6. Watch the document for inserted content through the mutation bridge

and then sends ``bootstrap_complete``. Content inserted later is picked up
by a bridge preprocessor, so it is parsed and cached before any subscriber
is told about it.
"""

import logging
import time

from bs4 import Tag

from .dom import ATTRIBUTES, CHILD_LIST
from .metrics import PHASES
from .notation import detect_prefix
from .scanner import UnifiedMatcher, collect_elements, resolve_root
from .signals import bootstrap_complete

logger = logging.getLogger(__name__)

BOOTLOADER_MODULE_ID = "genx.bootloader"


def _elapsed_ms(start):
    return (time.perf_counter() - start) * 1000


async def bootstrap(context):
    """
    Run the full bootstrap for ``context``.

    Returns:
        Stats dict: phase timings, element counts, styles, loaded and failed
        parsers, initialised modules and total time

    Raises:
        Exception: Anything that breaks the pipeline itself is logged and
            re-raised. Parser load failures and module init failures are not
            pipeline failures; they are reported in the stats.
    """
    bootstrap_start = time.perf_counter()
    phases = {phase: 0.0 for phase in PHASES}

    try:
        start = time.perf_counter()
        result = context.scan()
        phases["scan"] = _elapsed_ms(start)

        start = time.perf_counter()
        styles = context.detect_notation_styles(result.elements)
        phases["detect_styles"] = _elapsed_ms(start)

        start = time.perf_counter()
        loaded = await context.load_parsers(styles)
        phases["load_parsers"] = _elapsed_ms(start)

        start = time.perf_counter()
        parsed = context.parse_all_elements(result.elements, loaded.loaded)
        phases["parse_elements"] = _elapsed_ms(start)

        start = time.perf_counter()
        await context.modules.init_all(result.needed, context)
        phases["init_modules"] = _elapsed_ms(start)

        start = time.perf_counter()
        if context.config.get("OBSERVE", True):
            watch_mutations(context)
        phases["setup_observer"] = _elapsed_ms(start)
    except Exception as e:
        logger.error(f"genx bootstrap failed: {e}", exc_info=True)
        raise

    total_ms = _elapsed_ms(bootstrap_start)
    context.metrics.record_bootstrap(total_ms, phases)

    stats = {
        "total": total_ms,
        "phases": phases,
        "elements": {"total": len(result.elements), "parsed": parsed},
        "styles": styles,
        "parsers": list(loaded.loaded),
        "failed": list(loaded.failed),
        "modules": context.modules.loaded,
    }
    context.bootstrap_stats = stats

    if context.config["PERFORMANCE"].get("logging"):
        logger.info(
            f"genx bootstrap complete in {total_ms:.2f}ms: "
            + ", ".join(f"{name}={value:.2f}ms" for name, value in phases.items())
            + f", cache hit rate {context.metrics.cache_hit_rate:.1f}%"
        )

    for receiver, response in bootstrap_complete.send_robust(
        sender=context.__class__,
        context=context,
        loaded=context.modules.loaded,
        stats=stats,
    ):
        if isinstance(response, Exception):
            logger.error(
                f"genx: bootstrap_complete receiver {receiver!r} failed: {response}",
                exc_info=response,
            )

    return stats


def _elements_for(context, root_or_elements):
    if root_or_elements is None:
        return context.scan().elements
    if isinstance(root_or_elements, (list, tuple, set)):
        return [element for element in root_or_elements if isinstance(element, Tag)]
    root = resolve_root(root_or_elements)
    if root is None:
        return []
    return collect_elements([root], context.notation)


async def rescan(context, root_or_elements=None, refresh=False):
    """
    Re-run detect/load/parse over part of the document.

    Args:
        context: GenxContext
        root_or_elements: Document, Tag (included itself when it matches),
            list of Tags, or None for the whole document
        refresh: Re-parse elements that are already cached. This is the only
            way attribute edits reach an existing configuration.

    Returns:
        Number of elements parsed
    """
    elements = _elements_for(context, root_or_elements)
    if not elements:
        return 0
    styles = context.detect_notation_styles(elements)
    loaded = await context.load_parsers(styles)
    return context.parse_all_elements(elements, loaded.loaded, refresh=refresh)


def rescan_now(context, elements, refresh=False):
    """Synchronous rescan of ``elements``, used from mutation dispatch."""
    if not elements:
        return 0
    styles = context.detect_notation_styles(elements)
    loaded = context.load_parsers_now(styles)
    return context.parse_all_elements(elements, loaded.loaded, refresh=refresh)


def watch_mutations(context):
    """
    Hook the bootstrap into the mutation bridge.

    Inserted nodes (and attribute targets not parsed yet) are scanned and
    cached by a preprocessor before subscribers are dispatched. Modules newly
    needed by that content are initialised from the bootloader subscription.
    """
    if context.watching:
        return
    context.watching = True
    pending_prefixes = set()

    matcher = UnifiedMatcher(context.notation)

    def rescan_mutations(records):
        added = {}
        targets = {}
        for record in records:
            if record.type == CHILD_LIST:
                for node in record.added_nodes:
                    if isinstance(node, Tag):
                        added[id(node)] = node
            elif record.type == ATTRIBUTES:
                # Only the edited element itself, never its subtree
                target = record.target
                if context.cache.get(target) is None and matcher(target):
                    targets[id(target)] = target

        if not added and not targets:
            return

        found = {id(element): element for element in collect_elements(added.values(), context.notation)}
        for key, target in targets.items():
            found.setdefault(key, target)
        elements = [element for element in found.values() if context.cache.get(element) is None]
        if not elements:
            return

        parsed = rescan_now(context, elements)
        logger.debug(f"genx: cached {parsed} inserted element(s)")

        for element in elements:
            prefix = detect_prefix(element, context.notation)
            if prefix and not context.modules.is_loaded(prefix):
                pending_prefixes.add(prefix)

    def init_new_modules(records):
        if not pending_prefixes:
            return
        prefixes = set(pending_prefixes)
        pending_prefixes.clear()
        context.modules.init_soon(prefixes, context)

    context.bridge.add_preprocessor(rescan_mutations)
    context.bridge.subscribe(BOOTLOADER_MODULE_ID, init_new_modules, child_list=True)
