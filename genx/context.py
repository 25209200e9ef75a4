"""
GenxContext: the owner of all page-lifetime genx state.

Everything that would otherwise be a process-wide singleton (config cache,
mutation bridge, module registry, metrics) hangs off one context object that
is passed to whoever needs it. Tests build a fresh context per case.
"""

from bs4 import BeautifulSoup

from .bridge import MutationBridge
from .cache import ConfigCache
from .conf import DEFAULT_PARSER_PATHS, get_genx_config
from .detector import detect_notation_styles
from .dom import Document
from .loader import ParserRegistry, default_registry, load_parsers, load_parsers_now
from .metrics import PerformanceMetrics
from .modules import ModuleRegistry
from .notation import Notation
from .resolver import parse_all_elements
from .scanner import scan


def _as_document(document):
    if isinstance(document, Document):
        return document
    if isinstance(document, BeautifulSoup):
        return Document(document)
    return Document.from_html(document)


class GenxContext:
    """
    Args:
        document: Document, BeautifulSoup tree or HTML string
        config: Optional overrides layered over ``settings.GENX``
        registry: ParserRegistry to use; defaults to the process-wide registry
            unless the configuration names different parser paths
    """

    def __init__(self, document, config=None, registry=None):
        self.document = _as_document(document)
        self.config = get_genx_config(config)
        self.notation = Notation.from_config(self.config)

        if registry is None:
            parser_paths = self.config["PARSER_PATHS"]
            registry = default_registry if parser_paths == DEFAULT_PARSER_PATHS else ParserRegistry(parser_paths)
        self.registry = registry

        performance = self.config["PERFORMANCE"]
        self.metrics = PerformanceMetrics(
            targets=performance.get("targets"),
            warnings=performance.get("warnings", False),
        )
        self.cache = ConfigCache()
        self.bridge = MutationBridge(self.document)
        self.modules = ModuleRegistry(self.config["MODULES"], self.config["MODULE_OPTIONS"])
        self.parser_options = {"class": dict(self.config["CLASS_PARSER"])}
        self.bootstrap_stats = None
        self.watching = False

    def scan(self, root=None):
        return scan(root if root is not None else self.document, self.notation, self.metrics)

    def detect_notation_styles(self, elements):
        return detect_notation_styles(elements, self.notation)

    async def load_parsers(self, styles):
        return await load_parsers(styles, self.registry)

    def load_parsers_now(self, styles):
        return load_parsers_now(styles, self.registry)

    def parse_all_elements(self, elements, loaded_parsers, refresh=False):
        return parse_all_elements(
            elements,
            loaded_parsers,
            self.cache,
            notation=self.notation,
            metrics=self.metrics,
            refresh=refresh,
            parser_options=self.parser_options,
        )

    def get_config(self, element):
        return self.cache.get(element)

    async def bootstrap(self):
        from .bootstrap import bootstrap

        return await bootstrap(self)

    async def rescan(self, root_or_elements=None, refresh=False):
        from .bootstrap import rescan

        return await rescan(self, root_or_elements, refresh=refresh)
