"""
Tests del arbol del feed: multiplicidad de hijos y colecciones.
"""
import pytest

from catalog_sync.infrastructure.feed.document import parse_document
from catalog_sync.shared.exceptions import ParseError
from tests.conftest import feed_xml


def test_collection_missing_container_is_none():
    tree = parse_document(feed_xml(currencies='<currencies><currency id="USD" rate="1"/></currencies>'))
    assert tree.collection("offers", "offer") is None
    assert len(tree.collection("currencies", "currency")) == 1


def test_collection_present_without_items_is_empty_list():
    tree = parse_document(feed_xml(offers="<offers></offers>"))
    assert tree.collection("offers", "offer") == []


def test_shop_can_be_root_element():
    tree = parse_document(b'<shop><offers><offer id="1"/></offers></shop>')
    assert tree.shop is not None
    assert [o.attr("id") for o in tree.collection("offers", "offer")] == ["1"]


def test_missing_shop_yields_no_collections():
    tree = parse_document(b"<yml_catalog><other/></yml_catalog>")
    assert tree.shop is None
    assert tree.collection("currencies", "currency") is None


def test_children_are_always_a_list():
    tree = parse_document(
        feed_xml(
            offers=(
                "<offers>"
                '<offer id="1"><param name="a">x</param></offer>'
                '<offer id="2"><param name="a">x</param><param name="b">y</param><param name="c"/></offer>'
                '<offer id="3"/>'
                "</offers>"
            )
        )
    )
    one, many, none = tree.collection("offers", "offer")
    assert len(one.children("param")) == 1
    assert len(many.children("param")) == 3
    assert none.children("param") == []


def test_child_text_takes_first_occurrence():
    tree = parse_document(
        feed_xml(offers='<offers><offer id="1"><picture>a.jpg</picture><picture>b.jpg</picture></offer></offers>')
    )
    (offer,) = tree.collection("offers", "offer")
    assert offer.child_text("picture") == "a.jpg"
    assert offer.child_text("url") is None


def test_node_text_includes_descendants():
    tree = parse_document(
        feed_xml(offers='<offers><offer id="1"><description>Good <b>drill</b>!</description></offer></offers>')
    )
    (offer,) = tree.collection("offers", "offer")
    assert offer.child_text("description") == "Good drill!"


def test_declared_encoding_is_honoured():
    raw = feed_xml(categories='<categories><category id="1">Инструменты</category></categories>', encoding="windows-1251")
    tree = parse_document(raw)
    (category,) = tree.collection("categories", "category")
    assert category.text == "Инструменты"


@pytest.mark.parametrize("raw", [b"", b"   ", b"<yml_catalog><shop>", b"not xml"])
def test_malformed_document_raises_parse_error(raw):
    with pytest.raises(ParseError) as exc:
        parse_document(raw)
    assert exc.value.error_code == "FEED_PARSE_ERROR"


def test_has_attr_distinguishes_empty_from_absent():
    tree = parse_document(feed_xml(offers='<offers><offer id=""/><offer/></offers>'))
    empty, absent = tree.collection("offers", "offer")
    assert empty.has_attr("id")
    assert empty.attr("id") == ""
    assert not absent.has_attr("id")
