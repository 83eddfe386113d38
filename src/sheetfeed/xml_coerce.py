"""Generic XML to value-tree conversion with lexical number coercion.

The converter knows nothing about feeds or spreadsheets. Any XML payload maps
onto the same three shapes:

- a scalar (``str``, ``int`` or ``float``) for an element that has neither
  attributes nor child elements;
- a ``dict`` for an element with attributes and/or children. Attributes and
  children become keys, and non-whitespace text of the element itself is kept
  under ``TEXT_KEY``;
- a ``list`` when several sibling elements share a tag name, in document order.

Tag and attribute names are kept verbatim. Prefixes such as ``gs:`` or
``batch:`` are not resolved against their namespace declarations, so payloads
with undeclared prefixes still parse.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from typing import Any, Union
from xml.parsers import expat

from sheetfeed.exceptions import XmlParseError

TEXT_KEY = "$t"

Scalar = Union[str, int, float]
CoercedValue = Union[Scalar, dict[str, Any], list[Any]]

_INT_RE = re.compile(r"^[-+]?\d+$", re.ASCII)
_FLOAT_RE = re.compile(r"^[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?$", re.ASCII)


def coerce(text: str) -> Scalar:
    """Convert integer- or float-looking text to a number.

    Examples: "45" -> 45, "1.20" -> 1.2, " 7 " -> 7, "Income" -> "Income"

    Only ASCII digits count. Integers too long for ``int()`` stay text.
    """
    stripped = text.strip()
    if _INT_RE.match(stripped):
        try:
            return int(stripped)
        except ValueError:
            # over sys.get_int_max_str_digits()
            return text
    if _FLOAT_RE.match(stripped):
        return float(stripped)
    return text


def parse(xml_text: str | bytes) -> dict[str, CoercedValue]:
    """Parse an XML document into a coerced value tree.

    Returns a single-key mapping from the root tag to its converted value.

    Raises:
        XmlParseError: If the document is not well-formed.
    """
    root = _build_tree(xml_text)
    return {root.tag: _convert(root)}


def as_list(value: CoercedValue | None) -> list[Any]:
    """Normalize a child value to a list of occurrences.

    A repeated element is already a list; a single occurrence is wrapped and
    a missing one becomes an empty list.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def text_of(value: CoercedValue | None) -> Scalar | None:
    """Return the text content of a leaf or of a node's ``$t`` key."""
    if isinstance(value, dict):
        return value.get(TEXT_KEY)
    if isinstance(value, list):
        return text_of(value[0]) if value else None
    return value


def _build_tree(xml_text: str | bytes) -> ET.Element:
    # expat without a namespace separator reports "gs:cell" as the tag name
    builder = ET.TreeBuilder()
    parser = expat.ParserCreate()
    parser.buffer_text = True
    parser.StartElementHandler = builder.start
    parser.EndElementHandler = builder.end
    parser.CharacterDataHandler = builder.data
    try:
        parser.Parse(xml_text, True)
    except expat.ExpatError as e:
        raise XmlParseError(f"Invalid XML: {e}", line=e.lineno) from e
    return builder.close()


def _convert(element: ET.Element) -> CoercedValue:
    children = list(element)
    if not element.attrib and not children:
        return coerce(element.text or "")

    node: dict[str, Any] = {}
    for name, value in element.attrib.items():
        node[name] = coerce(value)

    grouped: dict[str, list[CoercedValue]] = {}
    for child in children:
        grouped.setdefault(child.tag, []).append(_convert(child))
    for tag, values in grouped.items():
        node[tag] = values[0] if len(values) == 1 else values

    fragments = [element.text or ""] + [child.tail or "" for child in children]
    own_text = "".join(fragments).strip()
    if own_text:
        node[TEXT_KEY] = coerce(own_text)

    return node
