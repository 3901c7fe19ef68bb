"""Normalization of catalog XML responses.

Security notes:
- Never assume response documents are well-formed or benign.
- Transforms are pure and deterministic; recursion depth can be bounded
  with NormalizerOptions.max_depth.
"""

from .values import ListValue, ObjectValue, ScalarValue, Value, from_plain, occurrences, to_plain
from .xml_normalizer import (
    VALUE_FIELD,
    NormalizationResult,
    NormalizerOptions,
    normalize,
    normalize_document,
    parse_tree,
    parse_xml,
)

__all__ = [
    "Value",
    "ScalarValue",
    "ObjectValue",
    "ListValue",
    "to_plain",
    "from_plain",
    "occurrences",
    "VALUE_FIELD",
    "NormalizerOptions",
    "NormalizationResult",
    "normalize",
    "normalize_document",
    "parse_tree",
    "parse_xml",
]
