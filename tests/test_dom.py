import pytest

from genx.dom import ATTRIBUTES, CHILD_LIST, Document, MutationObserver


@pytest.fixture
def document():
    return Document.from_html('<body><div id="a"><p id="b">x</p></div><div id="c"></div></body>')


def _collector():
    batches = []

    def callback(records, observer):
        batches.append(records)

    return batches, callback


def test_callback_must_be_callable():
    with pytest.raises(TypeError):
        MutationObserver(None)


def test_records_wait_for_flush_without_a_loop(document):
    batches, callback = _collector()
    observer = MutationObserver(callback)
    observer.observe(document)

    added = document.append_child(document.soup.find(id="c"), document.create_element("span", {"fx-format": "x"}, "1"))
    assert batches == []

    assert document.flush() == 1
    [record] = batches[0]
    assert record.type == CHILD_LIST
    assert record.added_nodes == (added,)
    assert str(added) == '<span fx-format="x">1</span>'


def test_options_restrict_what_is_observed(document):
    batches, callback = _collector()
    observer = MutationObserver(callback)
    observer.observe(document, child_list=False, attributes=True, subtree=False, target=document.soup.find(id="a"))

    document.set_attribute(document.soup.find(id="b"), "title", "nested")
    document.set_attribute(document.soup.find(id="a"), "title", "direct")
    document.insert_html(document.soup.find(id="a"), "<i></i>")
    document.flush()

    [records] = batches
    assert [(r.type, r.target["id"]) for r in records] == [(ATTRIBUTES, "a")]


def test_remove_and_remove_attribute(document):
    batches, callback = _collector()
    observer = MutationObserver(callback)
    observer.observe(document)
    paragraph = document.soup.find(id="b")

    document.remove_attribute(paragraph, "missing")
    document.remove_attribute(paragraph, "id")
    document.remove(paragraph)
    records = observer.take_records()

    assert [r.type for r in records] == [ATTRIBUTES, CHILD_LIST]
    assert records[0].old_value == "b"
    assert records[1].removed_nodes == (paragraph,)
    assert paragraph.parent is None
    assert observer.flush() == 0


def test_insert_html_emits_one_record(document):
    batches, callback = _collector()
    MutationObserver(callback).observe(document)

    nodes = document.insert_html(None, '<span fx-format="a"></span><span bx-bind="b"></span>')
    document.flush()

    assert len(nodes) == 2
    assert len(batches) == 1
    assert batches[0][0].added_nodes == tuple(nodes)
    assert document.soup.body.contents[-1] is nodes[-1]


def test_disconnect_stops_delivery(document):
    batches, callback = _collector()
    observer = MutationObserver(callback)
    observer.observe(document)

    observer.disconnect()
    document.insert_html(None, "<p></p>")
    document.flush()

    assert batches == []
    assert document.observer_count == 0
