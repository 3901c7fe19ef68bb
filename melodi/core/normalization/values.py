"""Value model produced by the XML normalizer.

A normalized document is a tree of three immutable variants:

- ScalarValue: bare text of a leaf element.
- ObjectValue: uniquely named fields (insertion order preserved).
- ListValue: repeated occurrences of one field name under one parent.

Callers branch on the variant with isinstance() instead of guessing the
shape of a field from its runtime type.
"""
from __future__ import annotations

from collections.abc import Mapping as MappingABC
from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Tuple, Union

from melodi.core.exceptions import ContractViolation


@dataclass(frozen=True)
class ScalarValue:
    """Bare text value of a leaf element."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class ObjectValue(MappingABC):
    """Ordered, read-only set of named fields.

    Supports the Mapping protocol: ``obj["ContentType"]``, ``"id" in obj``,
    ``obj.get("title")``.
    """

    fields: Dict[str, "Value"]

    # Mutable dict field; equality is by content, so instances are unhashable.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        # Own a private copy so later edits to the source dict cannot leak in.
        object.__setattr__(self, "fields", dict(self.fields))

    def __getitem__(self, key: str) -> "Value":
        return self.fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


@dataclass(frozen=True)
class ListValue(SequenceABC):
    """Repeated occurrences of one field, in document order."""

    items: Tuple["Value", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ListValue(self.items[index])
        return self.items[index]

    def __len__(self) -> int:
        return len(self.items)


Value = Union[ScalarValue, ObjectValue, ListValue]


def occurrences(value: Value) -> List[Value]:
    """Return a field's occurrences as a list.

    A field seen once is a bare value; a repeated field is a ListValue. This
    helper lets callers iterate both shapes the same way.
    """

    if isinstance(value, ListValue):
        return list(value.items)
    return [value]


def to_plain(value: Value) -> Any:
    """Convert a Value tree to plain str / dict / list data (JSON-ready)."""

    if isinstance(value, ScalarValue):
        return value.text
    if isinstance(value, ObjectValue):
        return {k: to_plain(v) for k, v in value.fields.items()}
    if isinstance(value, ListValue):
        return [to_plain(v) for v in value.items]
    raise ContractViolation(f"not a Value: {type(value).__name__}")


def from_plain(data: Any) -> Value:
    """Build a Value tree from plain str / mapping / list data.

    Non-string scalars (ints, bools) are stored as their string form, matching
    what the normalizer would produce for the same text.
    """

    if isinstance(data, (ScalarValue, ObjectValue, ListValue)):
        return data
    if isinstance(data, MappingABC):
        return ObjectValue({str(k): from_plain(v) for k, v in data.items()})
    if isinstance(data, (list, tuple)):
        return ListValue(tuple(from_plain(v) for v in data))
    if data is None:
        return ScalarValue("")
    return ScalarValue(str(data))
