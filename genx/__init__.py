"""
genx: one resolved configuration per element, whatever notation the author used.

Typical use:

    context = GenxContext(html)
    await context.bootstrap()
    config = context.get_config(element)
"""

from .bootstrap import bootstrap, rescan
from .bridge import BridgeState, MutationBridge
from .cache import ConfigCache, get_config
from .context import GenxContext
from .detector import detect_notation_styles
from .dom import Document, MutationObserver, MutationRecord
from .errors import GenXError, LoadError, ModuleInitError, ParseError, SubscriptionError
from .loader import LoadResult, ParserRegistry, load_parsers, load_parsers_now
from .notation import NOTATION_STYLES, Notation, detect_prefix
from .resolver import parse_all_elements
from .scanner import ScanResult, scan
from .signals import bootstrap_complete

__version__ = "0.1.0"

__all__ = [
    "BridgeState",
    "ConfigCache",
    "Document",
    "GenXError",
    "GenxContext",
    "LoadError",
    "LoadResult",
    "ModuleInitError",
    "MutationBridge",
    "MutationObserver",
    "MutationRecord",
    "NOTATION_STYLES",
    "Notation",
    "ParseError",
    "ParserRegistry",
    "ScanResult",
    "SubscriptionError",
    "bootstrap",
    "bootstrap_complete",
    "detect_notation_styles",
    "detect_prefix",
    "get_config",
    "load_parsers",
    "load_parsers_now",
    "parse_all_elements",
    "rescan",
    "scan",
]
