import django
import pytest
from django.conf import settings

from genx.context import GenxContext
from genx.loader import ParserRegistry


def pytest_configure(config):
    if not settings.configured:
        settings.configure(
            INSTALLED_APPS=["genx"],
            GENX={},
        )
        django.setup()


@pytest.fixture
def registry():
    return ParserRegistry()


@pytest.fixture
def make_context(registry):
    """Build a GenxContext with its own parser registry."""

    def _make(html, config=None):
        return GenxContext(html, config=config, registry=registry)

    return _make
