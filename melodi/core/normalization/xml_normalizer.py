from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Union
from xml.etree import ElementTree

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import DefusedXMLParser, ParseError

from melodi.core.exceptions import ContractViolation, DepthLimitExceeded, MalformedInput

from .values import ListValue, ObjectValue, ScalarValue, Value

# Reserved field holding the text of a leaf once it has to be an ObjectValue.
VALUE_FIELD: str = "value"


@dataclass(frozen=True)
class NormalizerOptions:
    """Knobs for the XML normalizer.

    max_depth bounds element nesting (root is depth 1). None means unbounded.
    """

    max_depth: Optional[int] = None
    strip_namespaces: bool = True


@dataclass(frozen=True)
class NormalizationResult:
    """Normalized document together with the name of its root element."""

    root_tag: str
    value: ObjectValue


def parse_tree(content: Union[str, bytes]) -> ElementTree.Element:
    """Parse raw XML into an element tree.

    Security notes:
    - Parsing goes through defusedxml; entity expansion and external
      references are rejected.
    - Comments are kept in the tree so a leaf split by comments exposes each
      text segment.
    """

    parser = DefusedXMLParser(target=ElementTree.TreeBuilder(insert_comments=True))
    try:
        parser.feed(content)
        return parser.close()
    except (ParseError, ElementTree.ParseError, DefusedXmlException) as e:
        raise MalformedInput(f"document could not be parsed: {e}") from e


def parse_xml(content: Union[str, bytes], options: Optional[NormalizerOptions] = None) -> ObjectValue:
    """Parse raw XML and normalize its root element."""

    return normalize(parse_tree(content), options)


def normalize_document(
    content: Union[str, bytes], options: Optional[NormalizerOptions] = None
) -> NormalizationResult:
    """Like parse_xml, but also reports the root element name."""

    root = parse_tree(content)
    opts = options or NormalizerOptions()
    return NormalizationResult(root_tag=_local_name(root.tag, opts), value=normalize(root, opts))


def normalize(root: ElementTree.Element, options: Optional[NormalizerOptions] = None) -> ObjectValue:
    """Normalize a parsed XML element into an ObjectValue.

    Rules, applied to each direct child element in document order:

    - A child with child elements of its own (branch) is normalized
      recursively; its attributes are then written over the result.
    - A leaf without attributes and with at most one text segment collapses
      to a ScalarValue. Repeated scalar tags overwrite each other.
    - Any other leaf becomes an ObjectValue of its attributes, with its text
      under the reserved "value" field.
    - ObjectValue children are grouped by tag: the first occurrence is kept
      as a bare ObjectValue, a second one promotes the field to a ListValue
      holding every occurrence in document order.

    The root's own attributes are folded into the returned object.

    Documents nested deeper than the interpreter's recursion limit raise
    MalformedInput even when max_depth is None.
    """

    opts = options or NormalizerOptions()
    if not ElementTree.iselement(root) or not isinstance(root.tag, str):
        raise ContractViolation(f"root must be an XML element, got {type(root).__name__}")

    _check_depth(1, opts)
    try:
        fields = _normalize_branch(root, opts, depth=1)
    except RecursionError as e:
        raise MalformedInput("document is nested too deeply to normalize") from e
    fields.update(_attributes(root, opts))
    return ObjectValue(fields)


def _normalize_branch(node: ElementTree.Element, opts: NormalizerOptions, depth: int) -> Dict[str, Value]:
    # Each slot is either a terminal ScalarValue or the occurrences of an
    # object-valued tag collected so far.
    slots: Dict[str, Union[ScalarValue, List[ObjectValue]]] = {}

    for child in _child_elements(node):
        child_depth = depth + 1
        _check_depth(child_depth, opts)
        tag = _local_name(child.tag, opts)

        if _child_elements(child):
            fields = _normalize_branch(child, opts, child_depth)
            fields.update(_attributes(child, opts))
            _collect(slots, tag, ObjectValue(fields))
            continue

        segments = _text_segments(child)
        attrs = _attributes(child, opts)
        if not attrs and len(segments) < 2:
            slots[tag] = ScalarValue(segments[0] if segments else "")
            continue

        leaf: Dict[str, Value] = {str(i): ScalarValue(s) for i, s in enumerate(segments)}
        leaf.update(attrs)
        if "0" in leaf:
            text = leaf.pop("0")
            leaf[VALUE_FIELD] = text
        _collect(slots, tag, ObjectValue(leaf))

    out: Dict[str, Value] = {}
    for tag, slot in slots.items():
        if isinstance(slot, list):
            out[tag] = slot[0] if len(slot) == 1 else ListValue(tuple(slot))
        else:
            out[tag] = slot
    return out


def _collect(slots: Dict[str, Union[ScalarValue, List[ObjectValue]]], tag: str, value: ObjectValue) -> None:
    seen = slots.get(tag)
    if isinstance(seen, list):
        seen.append(value)
    else:
        # First occurrence, or an earlier scalar under the same tag (last write wins).
        slots[tag] = [value]


def _child_elements(node: ElementTree.Element) -> List[ElementTree.Element]:
    out: List[ElementTree.Element] = []
    for child in node:
        if isinstance(child.tag, str):
            out.append(child)
        elif child.tag is ElementTree.Comment:
            continue
        else:
            raise ContractViolation(f"unsupported node kind under <{node.tag}>: {child.tag!r}")
    return out


def _text_segments(node: ElementTree.Element) -> List[str]:
    """Text of a leaf, split where comments interrupt it. Blank segments are dropped."""

    raw = [node.text] + [c.tail for c in node if c.tag is ElementTree.Comment]
    return [s for s in raw if s and s.strip()]


def _attributes(node: ElementTree.Element, opts: NormalizerOptions) -> Dict[str, ScalarValue]:
    return {_local_name(k, opts): ScalarValue(str(v)) for k, v in node.attrib.items()}


def _local_name(name: str, opts: NormalizerOptions) -> str:
    if opts.strip_namespaces and name.startswith("{") and "}" in name:
        return name.split("}", 1)[1]
    return name


def _check_depth(depth: int, opts: NormalizerOptions) -> None:
    if opts.max_depth is not None and depth > opts.max_depth:
        raise DepthLimitExceeded(depth, opts.max_depth)
