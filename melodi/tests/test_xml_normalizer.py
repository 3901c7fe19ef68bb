from xml.etree import ElementTree

import pytest

from melodi.core.exceptions import ContractViolation, DepthLimitExceeded, MalformedInput
from melodi.core.normalization import (
    ListValue,
    NormalizerOptions,
    ObjectValue,
    ScalarValue,
    normalize,
    normalize_document,
    parse_xml,
    to_plain,
)

CATALOG_DOC = """<?xml version="1.0" encoding="UTF-8"?>
<ContentTypes siteid="631">
    <ContentType>
        <ContentTypeID>67</ContentTypeID>
        <Name>Ringtones</Name>
    </ContentType>
    <ContentType>
        <ContentTypeID>68</ContentTypeID>
        <Name>Wallpapers</Name>
    </ContentType>
    <Total>2</Total>
</ContentTypes>
"""


def test_leaf_without_attributes_collapses_to_scalar() -> None:
    doc = parse_xml("<A><Count>42</Count></A>")

    assert doc["Count"] == ScalarValue("42")
    assert to_plain(doc) == {"Count": "42"}


def test_leaf_with_attribute_becomes_object_with_value_field() -> None:
    doc = parse_xml('<A><Item id="7">Name</Item></A>')

    item = doc["Item"]
    assert isinstance(item, ObjectValue)
    assert item == ObjectValue({"id": ScalarValue("7"), "value": ScalarValue("Name")})
    assert list(item.keys()) == ["id", "value"]


def test_empty_leaf_with_attributes_stays_object_without_value() -> None:
    doc = parse_xml('<A><Img src="x.png"/></A>')

    assert to_plain(doc) == {"Img": {"src": "x.png"}}


def test_empty_leaf_without_attributes_is_empty_scalar() -> None:
    doc = parse_xml("<A><Empty/><Blank>   </Blank></A>")

    assert doc["Empty"] == ScalarValue("")
    assert doc["Blank"] == ScalarValue("")


def test_single_branch_child_is_bare_object() -> None:
    doc = parse_xml("<A><B><C>1</C></B></A>")

    assert isinstance(doc["B"], ObjectValue)
    assert to_plain(doc) == {"B": {"C": "1"}}


def test_branch_with_several_children_seen_once_is_bare_object() -> None:
    doc = parse_xml("<A><B><C>1</C><E>2</E></B></A>")

    assert isinstance(doc["B"], ObjectValue)
    assert to_plain(doc) == {"B": {"C": "1", "E": "2"}}


def test_repeated_branch_is_promoted_to_list_on_second_occurrence() -> None:
    doc = parse_xml("<A><B><C>1</C></B><B><C>2</C></B></A>")

    assert isinstance(doc["B"], ListValue)
    assert to_plain(doc) == {"B": [{"C": "1"}, {"C": "2"}]}


def test_repeated_tags_accumulate_in_document_order_across_siblings() -> None:
    doc = parse_xml("<A><B><C>1</C></B><D>x</D><B><C>2</C></B><B><C>3</C></B></A>")

    assert list(doc.keys()) == ["B", "D"]
    assert [item["C"] for item in doc["B"]] == [ScalarValue("1"), ScalarValue("2"), ScalarValue("3")]
    assert doc["D"] == ScalarValue("x")


def test_repeated_attributed_leaves_are_promoted_to_list() -> None:
    doc = parse_xml('<A><Tag lang="en">Hi</Tag><Tag lang="fr">Salut</Tag></A>')

    assert to_plain(doc) == {
        "Tag": [{"lang": "en", "value": "Hi"}, {"lang": "fr", "value": "Salut"}]
    }


def test_repeated_scalar_leaves_overwrite_each_other() -> None:
    doc = parse_xml("<A><Id>1</Id><Id>2</Id></A>")

    assert doc["Id"] == ScalarValue("2")


def test_branch_attributes_are_folded_after_children_and_win_collisions() -> None:
    doc = parse_xml('<A><B id="9" kind="song"><id>child</id><C>1</C></B></A>')

    b = doc["B"]
    assert to_plain(b) == {"id": "9", "C": "1", "kind": "song"}
    assert list(b.keys()) == ["id", "C", "kind"]


def test_root_attributes_are_folded_into_top_level_object() -> None:
    doc = parse_xml('<Response status="ok"><X>1</X></Response>')

    assert to_plain(doc) == {"X": "1", "status": "ok"}


def test_leaf_text_wins_over_attribute_named_value() -> None:
    doc = parse_xml('<A><Price value="1" currency="EUR">9.99</Price></A>')

    assert to_plain(doc) == {"Price": {"value": "9.99", "currency": "EUR"}}


def test_leaf_split_by_comment_keeps_each_text_segment() -> None:
    doc = parse_xml("<A><Note>first<!-- split -->second</Note></A>")

    note = doc["Note"]
    assert isinstance(note, ObjectValue)
    assert to_plain(note) == {"1": "second", "value": "first"}


def test_namespaces_are_stripped_from_tags_and_attributes() -> None:
    xml = '<r:Root xmlns:r="urn:x"><r:Item r:id="1">a</r:Item></r:Root>'

    assert to_plain(parse_xml(xml)) == {"Item": {"id": "1", "value": "a"}}

    raw = parse_xml(xml, NormalizerOptions(strip_namespaces=False))
    assert "{urn:x}Item" in raw


def test_pretty_printed_catalog_document() -> None:
    res = normalize_document(CATALOG_DOC)

    assert res.root_tag == "ContentTypes"
    assert to_plain(res.value) == {
        "ContentType": [
            {"ContentTypeID": "67", "Name": "Ringtones"},
            {"ContentTypeID": "68", "Name": "Wallpapers"},
        ],
        "Total": "2",
        "siteid": "631",
    }


def test_bytes_input_honours_declared_encoding() -> None:
    doc = parse_xml('<?xml version="1.0" encoding="UTF-8"?><A><T>café</T></A>'.encode("utf-8"))

    assert doc["T"] == ScalarValue("café")


def test_normalization_is_deterministic() -> None:
    first = parse_xml(CATALOG_DOC)
    second = parse_xml(CATALOG_DOC)

    assert first == second
    assert to_plain(first) == to_plain(second)


def test_normalize_accepts_stdlib_element_tree() -> None:
    root = ElementTree.fromstring("<A><B><C>1</C></B></A>")

    assert to_plain(normalize(root)) == {"B": {"C": "1"}}


def test_max_depth_bounds_nesting() -> None:
    xml = "<A><B><C>1</C></B></A>"

    assert to_plain(parse_xml(xml, NormalizerOptions(max_depth=3))) == {"B": {"C": "1"}}

    with pytest.raises(DepthLimitExceeded) as excinfo:
        parse_xml(xml, NormalizerOptions(max_depth=2))
    assert isinstance(excinfo.value, MalformedInput)
    assert excinfo.value.depth == 3
    assert excinfo.value.max_depth == 2


def test_unbounded_deep_document_raises_malformed_input() -> None:
    xml = "<a>" * 5000 + "x" + "</a>" * 5000

    with pytest.raises(MalformedInput) as excinfo:
        parse_xml(xml)
    assert isinstance(excinfo.value.__cause__, RecursionError)


def test_unclosed_tag_raises_malformed_input_with_parser_cause() -> None:
    with pytest.raises(MalformedInput) as excinfo:
        parse_xml("<A><B></A>")

    cause = excinfo.value.__cause__
    assert cause is not None
    assert "mismatched tag" in str(cause)
    assert "mismatched tag" in str(excinfo.value)


def test_empty_document_raises_malformed_input() -> None:
    with pytest.raises(MalformedInput) as excinfo:
        parse_xml("")
    assert excinfo.value.__cause__ is not None


def test_entity_declarations_are_rejected() -> None:
    xml = '<!DOCTYPE a [<!ENTITY x "boom">]><a><b>&x;</b></a>'

    with pytest.raises(MalformedInput) as excinfo:
        parse_xml(xml)
    assert excinfo.value.__cause__ is not None


def test_non_element_root_is_a_contract_violation() -> None:
    with pytest.raises(ContractViolation):
        normalize("<A/>")  # type: ignore[arg-type]


def test_processing_instruction_child_is_a_contract_violation() -> None:
    root = ElementTree.Element("A")
    root.append(ElementTree.ProcessingInstruction("target", "data"))

    with pytest.raises(ContractViolation):
        normalize(root)


def test_comment_children_are_not_elements() -> None:
    root = ElementTree.Element("A")
    root.append(ElementTree.Comment("ignored"))
    child = ElementTree.SubElement(root, "B")
    child.text = "1"

    assert to_plain(normalize(root)) == {"B": "1"}
