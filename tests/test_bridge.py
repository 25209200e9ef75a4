import asyncio
import logging

import pytest

from genx.bridge import BridgeState, MutationBridge, filter_mutations
from genx.dom import ATTRIBUTES, CHILD_LIST, Document, MutationRecord
from genx.errors import SubscriptionError


@pytest.fixture
def document():
    return Document.from_html("<html><body><main id='app'></main></body></html>")


@pytest.fixture
def bridge(document):
    return MutationBridge(document)


class Recorder:
    def __init__(self):
        self.batches = []

    def __call__(self, records):
        self.batches.append(list(records))


def test_observer_is_created_lazily_and_shared(document, bridge):
    assert bridge.state is BridgeState.UNINITIALIZED
    assert bridge.observer is None
    assert document.observer_count == 0

    for module_id in ("fmtx", "bindx", "accx", "dragx", "loadx"):
        bridge.subscribe(module_id, Recorder())
    observer = bridge.observer

    assert bridge.state is BridgeState.OBSERVING
    assert document.observer_count == 1
    assert bridge.subscription_count == 5

    bridge.subscribe("navx", Recorder())
    assert bridge.observer is observer
    assert document.observer_count == 1


def test_attribute_filter_on_inserted_elements(document, bridge):
    fmtx = Recorder()
    unsubscribe = bridge.subscribe("fmtx", fmtx, attribute_filter=["fx-"])

    document.insert_html(None, '<input bx-model="user.name">')
    document.flush()
    assert fmtx.batches == []

    document.insert_html(None, '<span fx-format="currency">5</span>')
    document.flush()
    assert len(fmtx.batches) == 1
    assert fmtx.batches[0][0].type == CHILD_LIST

    unsubscribe()
    assert not bridge.is_subscribed("fmtx")

    document.insert_html(None, '<span fx-format="date">x</span>')
    document.flush()
    assert len(fmtx.batches) == 1


def test_filter_matches_descendants_of_added_nodes(document, bridge):
    fmtx = Recorder()
    bridge.subscribe("fmtx", fmtx, attribute_filter=["fx-"])

    document.insert_html(None, '<div><p><span fx-format="currency"></span></p></div>')
    document.flush()

    assert len(fmtx.batches) == 1


def test_attribute_records_filtered_by_name(document, bridge):
    fmtx = Recorder()
    bridge.subscribe("fmtx", fmtx, attribute_filter=["fx-"], child_list=False)
    main = document.soup.find(id="app")

    document.set_attribute(main, "bx-bind", "x")
    document.set_attribute(main, "fx-format", "currency")
    document.insert_html(main, '<span fx-format="x"></span>')
    document.flush()

    assert len(fmtx.batches) == 1
    [record] = fmtx.batches[0]
    assert record.type == ATTRIBUTES
    assert record.attribute_name == "fx-format"
    assert record.old_value is None


def test_unfiltered_subscription_receives_every_record(document, bridge):
    everything = Recorder()
    bridge.subscribe("logger", everything)
    main = document.soup.find(id="app")

    document.set_attribute(main, "data-x", "1")
    document.insert_html(main, "<p>text</p>")
    document.flush()

    assert [r.type for r in everything.batches[0]] == [ATTRIBUTES, CHILD_LIST]


def test_callback_errors_are_isolated(document, bridge, caplog):
    def broken(records):
        raise ValueError("module bug")

    healthy = Recorder()
    bridge.subscribe("broken", broken)
    bridge.subscribe("healthy", healthy)

    with caplog.at_level(logging.ERROR, logger="genx.bridge"):
        document.insert_html(None, "<p></p>")
        document.flush()

    assert len(healthy.batches) == 1
    assert "Error in broken callback" in caplog.text


def test_callback_may_unsubscribe_during_dispatch(document, bridge):
    calls = []
    unsubscribe_holder = {}

    def once(records):
        calls.append("once")
        unsubscribe_holder["fn"]()

    after = Recorder()
    unsubscribe_holder["fn"] = bridge.subscribe("once", once)
    bridge.subscribe("after", after)

    document.insert_html(None, "<p></p>")
    document.flush()
    document.insert_html(None, "<p></p>")
    document.flush()

    assert calls == ["once"]
    assert len(after.batches) == 2
    assert not bridge.is_subscribed("once")


def test_resubscribe_replaces_previous_subscription(document, bridge, caplog):
    old, new = Recorder(), Recorder()

    with caplog.at_level(logging.WARNING, logger="genx.bridge"):
        old_unsubscribe = bridge.subscribe("fmtx", old)
        bridge.subscribe("fmtx", new)

    assert "Replacing existing subscription for fmtx" in caplog.text

    old_unsubscribe()
    assert bridge.is_subscribed("fmtx")

    document.insert_html(None, "<p></p>")
    document.flush()

    assert old.batches == []
    assert len(new.batches) == 1
    assert bridge.subscription_count == 1


@pytest.mark.parametrize("module_id", ["", None, 42])
def test_invalid_module_id(bridge, module_id):
    with pytest.raises(SubscriptionError) as exc:
        bridge.subscribe(module_id, Recorder())
    assert exc.value.code == "invalid_module_id"


def test_callback_must_be_callable(bridge):
    with pytest.raises(SubscriptionError) as exc:
        bridge.subscribe("fmtx", "not callable")
    assert exc.value.code == "invalid_callback"
    assert bridge.observer is None


def test_unsubscribing_everyone_keeps_observing(document, bridge):
    bridge.subscribe("fmtx", Recorder())
    bridge.unsubscribe("fmtx")
    bridge.unsubscribe("never-subscribed")

    assert bridge.state is BridgeState.OBSERVING
    assert document.observer_count == 1


def test_disconnect_tears_down_observer(document, bridge):
    recorder = Recorder()
    bridge.subscribe("fmtx", recorder)
    document.insert_html(None, "<p></p>")

    bridge.disconnect()
    document.flush()

    assert bridge.state is BridgeState.DISCONNECTED
    assert document.observer_count == 0
    assert bridge.subscription_count == 0
    assert recorder.batches == []


def test_preprocessors_run_before_subscribers(document, bridge):
    order = []
    bridge.add_preprocessor(lambda records: order.append("pre"))
    bridge.subscribe("fmtx", lambda records: order.append("sub"))

    document.insert_html(None, "<p></p>")
    document.flush()

    assert order == ["pre", "sub"]


def test_filter_mutations_without_records():
    assert filter_mutations([], ["fx-"]) == []


def test_filter_mutations_child_list_without_matching_nodes():
    document = Document.from_html("<body></body>")
    record = MutationRecord(CHILD_LIST, document.body, added_nodes=("just text",))

    assert filter_mutations([record], ["fx-"]) == []
    assert filter_mutations([record]) == [record]
    assert filter_mutations([record], child_list=False) == []


@pytest.mark.asyncio
async def test_records_in_one_tick_arrive_as_one_batch(document, bridge):
    recorder = Recorder()
    bridge.subscribe("fmtx", recorder)

    document.insert_html(None, "<p>1</p>")
    document.insert_html(None, "<p>2</p>")
    await asyncio.sleep(0)

    assert len(recorder.batches) == 1
    assert len(recorder.batches[0]) == 2


@pytest.mark.asyncio
async def test_debounced_subscription_coalesces_bursts(document, bridge):
    debounced, immediate = Recorder(), Recorder()
    bridge.subscribe("loadx", debounced, debounce=0.05)
    bridge.subscribe("fmtx", immediate)

    for i in range(3):
        document.insert_html(None, f"<p>{i}</p>")
        await asyncio.sleep(0)

    assert len(immediate.batches) == 3
    assert debounced.batches == []

    await asyncio.sleep(0.1)

    assert len(debounced.batches) == 1
    assert len(debounced.batches[0]) == 3


@pytest.mark.asyncio
async def test_unsubscribe_cancels_pending_debounce(document, bridge):
    debounced = Recorder()
    unsubscribe = bridge.subscribe("loadx", debounced, debounce=0.05)

    document.insert_html(None, "<p></p>")
    await asyncio.sleep(0)
    unsubscribe()
    await asyncio.sleep(0.1)

    assert debounced.batches == []
