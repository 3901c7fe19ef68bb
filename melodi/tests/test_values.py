from collections.abc import Hashable

import pytest

from melodi.core.exceptions import ContractViolation
from melodi.core.normalization import (
    ListValue,
    ObjectValue,
    ScalarValue,
    from_plain,
    occurrences,
    parse_xml,
    to_plain,
)


def test_object_value_behaves_like_a_read_only_mapping() -> None:
    obj = ObjectValue({"id": ScalarValue("7"), "name": ScalarValue("Song")})

    assert obj["id"] == ScalarValue("7")
    assert "name" in obj
    assert "missing" not in obj
    assert obj.get("missing") is None
    assert len(obj) == 2
    assert list(obj) == ["id", "name"]
    with pytest.raises(KeyError):
        obj["missing"]


def test_object_value_owns_a_copy_of_its_fields() -> None:
    fields = {"a": ScalarValue("1")}
    obj = ObjectValue(fields)
    fields["b"] = ScalarValue("2")

    assert "b" not in obj


def test_list_value_behaves_like_a_sequence() -> None:
    items = ListValue([ScalarValue("a"), ScalarValue("b")])

    assert isinstance(items.items, tuple)
    assert len(items) == 2
    assert items[1] == ScalarValue("b")
    assert list(items) == [ScalarValue("a"), ScalarValue("b")]
    assert ScalarValue("a") in items


def test_scalar_value_str_is_its_text() -> None:
    assert str(ScalarValue("42")) == "42"


def test_occurrences_treats_single_and_repeated_fields_alike() -> None:
    once = parse_xml("<A><B><C>1</C></B></A>")
    twice = parse_xml("<A><B><C>1</C></B><B><C>2</C></B></A>")

    assert [to_plain(v) for v in occurrences(once["B"])] == [{"C": "1"}]
    assert [to_plain(v) for v in occurrences(twice["B"])] == [{"C": "1"}, {"C": "2"}]


def test_from_plain_rebuilds_the_normalized_tree() -> None:
    doc = parse_xml('<A><B id="1"><C>x</C></B><B id="2"><C>y</C></B><D>z</D></A>')

    assert from_plain(to_plain(doc)) == doc


def test_from_plain_stringifies_non_string_scalars() -> None:
    assert from_plain({"n": 1, "flag": None}) == ObjectValue(
        {"n": ScalarValue("1"), "flag": ScalarValue("")}
    )


def test_to_plain_rejects_foreign_objects() -> None:
    with pytest.raises(ContractViolation):
        to_plain({"not": "a value"})  # type: ignore[arg-type]


def test_object_value_is_unhashable() -> None:
    obj = ObjectValue({"id": ScalarValue("7")})

    assert not isinstance(obj, Hashable)
    with pytest.raises(TypeError):
        hash(obj)


def test_list_value_slices_stay_list_values() -> None:
    items = ListValue((ScalarValue("a"), ScalarValue("b"), ScalarValue("c")))

    head = items[:2]

    assert isinstance(head, ListValue)
    assert to_plain(head) == ["a", "b"]
    assert items[-1] == ScalarValue("c")
