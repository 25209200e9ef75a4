import logging

from bs4 import BeautifulSoup

from genx.cache import ConfigCache
from genx.loader import load_parsers_now
from genx.metrics import PerformanceMetrics
from genx.parsers import PRIORITY_ORDER
from genx.resolver import parse_all_elements, resolve_config
from genx.scanner import scan

ALL_STYLES = ["verbose", "colon", "json", "class"]


def _parsers(registry, styles=ALL_STYLES):
    return load_parsers_now(styles, registry).loaded


def _one(html):
    return BeautifulSoup(html, "html.parser").find()


def test_priority_order_is_lowest_first():
    assert PRIORITY_ORDER == ("class", "verbose", "colon", "json")


def test_json_wins_over_every_other_notation(registry):
    element = _one(
        '<span fx-format="currency" fx-opts=\'{"format":"json-wins"}\' class="fmt-class-wins"></span>'
    )

    config = resolve_config(element, "fx", _parsers(registry))

    assert config["format"] == "json-wins"
    # "wins" came from the class layer and nothing above it set currency
    assert config["currency"] == "wins"


def test_colon_beats_verbose_and_verbose_beats_class(registry):
    element = _one('<span class="fmt-number-EUR-4" fx-format="currency:USD" fx-locale="de"></span>')

    config = resolve_config(element, "fx", _parsers(registry))

    assert config == {"format": "currency", "currency": "USD", "decimals": 4, "locale": "de"}


def test_colon_example(registry):
    element = _one('<span fx-format="currency:USD:2"></span>')

    config = resolve_config(element, "fx", _parsers(registry))

    assert config == {"format": "currency", "currency": "USD", "decimals": "2"}


def test_missing_strategies_are_skipped(registry):
    element = _one('<span fx-format="currency:USD:2" class="fmt-date"></span>')

    config = resolve_config(element, "fx", _parsers(registry, ["verbose"]))

    assert config == {"format": "currency:USD:2"}


def test_failing_strategy_keeps_lower_layers(caplog):
    class Broken:
        @staticmethod
        def parse(element, prefix, base_config=None, **options):
            raise RuntimeError("boom")

    from genx.parsers import classnames

    element = _one('<span id="x" class="fmt-date"></span>')

    with caplog.at_level(logging.ERROR, logger="genx.resolver"):
        config = resolve_config(element, "fx", {"class": classnames, "json": Broken})

    assert config == {"format": "date"}
    assert "json parser failed on #x" in caplog.text


def test_parse_all_elements_populates_cache(registry):
    soup = BeautifulSoup(
        '<span fx-format="currency"></span><input bx-bind="user.email:300"><b>plain</b>',
        "html.parser",
    )
    elements = scan(soup).elements
    cache = ConfigCache()

    for element in elements:
        assert cache.get(element) is None

    parsed = parse_all_elements(elements, _parsers(registry), cache)

    assert parsed == 2
    assert cache.get(elements[0]) == {"format": "currency"}
    assert cache.get(elements[1]) == {"bind": "user.email", "debounce": "300"}
    assert cache.get(soup.b) is None


def test_unsafe_option_names_never_reach_the_config(registry):
    element = _one(
        '<span fx-__proto__="x" fx-opts=\'{"__proto__": {"polluted": true}, "format": "ok"}\'></span>'
    )
    cache = ConfigCache()

    parse_all_elements([element], _parsers(registry), cache)

    config = cache.get(element)
    assert config == {"format": "ok"}
    assert not hasattr({}, "polluted")


def test_element_without_prefix_gets_empty_config(registry):
    element = _one('<span class="plain"></span>')
    cache = ConfigCache()

    parse_all_elements([element], _parsers(registry), cache)

    assert cache.get(element) == {}
    assert cache.get(element) is not None


def test_cached_elements_are_not_parsed_again(registry):
    element = _one('<span fx-format="currency"></span>')
    cache = ConfigCache()
    metrics = PerformanceMetrics()
    parsers = _parsers(registry)

    assert parse_all_elements([element], parsers, cache, metrics=metrics) == 1
    first = cache.get(element)
    element["fx-format"] = "date"

    assert parse_all_elements([element], parsers, cache, metrics=metrics) == 0
    assert cache.get(element) is first
    assert first == {"format": "currency"}
    assert metrics.cache_hits == 1
    assert metrics.cache_misses == 1
    assert metrics.cache_hit_rate == 50.0


def test_refresh_updates_config_in_place(registry):
    element = _one('<span fx-format="currency" fx-currency="USD"></span>')
    cache = ConfigCache()
    parsers = _parsers(registry)
    parse_all_elements([element], parsers, cache)
    first = cache.get(element)

    element["fx-format"] = "date"
    del element["fx-currency"]
    parsed = parse_all_elements([element], parsers, cache, refresh=True)

    assert parsed == 1
    assert cache.get(element) is first
    assert first == {"format": "date"}


def test_non_tag_inputs_are_ignored(registry):
    cache = ConfigCache()

    assert parse_all_elements([None, "text"], _parsers(registry), cache) == 0
    assert parse_all_elements(None, _parsers(registry), cache) == 0
    assert len(cache) == 0


def test_leading_empty_colon_segment_replaces_the_verbose_value(registry):
    element = _one('<span fx-format=":USD:2"></span>')

    config = resolve_config(element, "fx", _parsers(registry))

    assert config == {"format": "", "currency": "USD", "decimals": "2"}
