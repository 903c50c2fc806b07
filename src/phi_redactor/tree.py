"""Document trees for structured redaction.

JSON values and XML elements are both normalised into one small tagged
union, so the leaf-redaction walk is written once:

    TextLeaf   a string that gets scanned
    ValueLeaf  passed through untouched (JSON number, bool, null; XML
               namespace declarations)
    ListNode   ordered children
    MapNode    ordered (key, child) entries; keys are never redacted

An XML element ``<tag a="1">text<child/>tail</tag>`` becomes a MapNode
with the single entry ``tag -> MapNode(@attributes, #text, #children)``;
each child element carries its own ``#tail``.  Namespace declarations
sit under ``@xmlns`` as a pass-through value, and names are kept in their
source ``prefix:local`` form.

Input nested deeper than the interpreter can recurse is reported as a
ParseFailure like any other unparseable document.
"""

from __future__ import annotations
import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, Callable, Union

from .errors import ParseFailure


@dataclass(frozen=True, slots=True)
class TextLeaf:
    value: str


@dataclass(frozen=True, slots=True)
class ValueLeaf:
    value: Any


@dataclass(frozen=True, slots=True)
class ListNode:
    items: tuple[Node, ...]


@dataclass(frozen=True, slots=True)
class MapNode:
    entries: tuple[tuple[str, Node], ...]


Node = Union[TextLeaf, ValueLeaf, ListNode, MapNode]


def walk(node: Node, redact_leaf: Callable[[str], str]) -> Node:
    """Return a copy of ``node`` with every TextLeaf passed through ``redact_leaf``."""
    if isinstance(node, TextLeaf):
        return TextLeaf(redact_leaf(node.value))
    if isinstance(node, ListNode):
        return ListNode(tuple(walk(item, redact_leaf) for item in node.items))
    if isinstance(node, MapNode):
        return MapNode(tuple((key, walk(value, redact_leaf)) for key, value in node.entries))
    return node


# ── JSON ─────────────────────────────────────────────────────────────

def from_json_value(value: Any) -> Node:
    if isinstance(value, str):
        return TextLeaf(value)
    if isinstance(value, list):
        return ListNode(tuple(from_json_value(v) for v in value))
    if isinstance(value, dict):
        return MapNode(tuple((k, from_json_value(v)) for k, v in value.items()))
    return ValueLeaf(value)


def to_json_value(node: Node) -> Any:
    if isinstance(node, (TextLeaf, ValueLeaf)):
        return node.value
    if isinstance(node, ListNode):
        return [to_json_value(item) for item in node.items]
    return {key: to_json_value(value) for key, value in node.entries}


def parse_json(text: str) -> Node:
    try:
        return from_json_value(json.loads(text))
    except (ValueError, RecursionError) as e:
        raise ParseFailure(f"invalid JSON: {e}") from e


def dump_json(node: Node, *, indent: int | None = 2) -> str:
    return json.dumps(to_json_value(node), indent=indent, ensure_ascii=False)


# ── XML ──────────────────────────────────────────────────────────────

ATTRIBUTES = "@attributes"
NAMESPACES = "@xmlns"
TEXT = "#text"
TAIL = "#tail"
CHILDREN = "#children"

_XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
_XML_NS = "http://www.w3.org/XML/1998/namespace"

# (prefix, uri) pairs in declaration order; "" is the default namespace
Scope = tuple[tuple[str, str], ...]


def _qualified(name: str, scope: Scope, *, attribute: bool = False) -> str:
    """Turn ElementTree's ``{uri}local`` back into the prefix used in the source."""
    if name[:1] != "{":
        return name
    uri, local = name[1:].split("}", 1)
    if uri == _XML_NS:
        return f"xml:{local}"
    current = dict(scope)
    for prefix, bound in reversed(scope):
        # unprefixed attributes are never in a namespace
        if bound == uri and current[prefix] == uri and (prefix or not attribute):
            return f"{prefix}:{local}" if prefix else local
    return name


def from_element(
    element: ET.Element,
    declared: dict[int, Scope] | None = None,
    scope: Scope = (),
) -> MapNode:
    """Normalise an element.  ``declared`` maps ``id(element)`` to the
    namespace declarations written on that element."""
    own = (declared or {}).get(id(element), ())
    scope = scope + own

    body: list[tuple[str, Node]] = []
    if own:
        # declarations are passed through, never scanned
        body.append((NAMESPACES, ValueLeaf(own)))
    if element.attrib:
        body.append((ATTRIBUTES, MapNode(tuple(
            (_qualified(name, scope, attribute=True), TextLeaf(value))
            for name, value in element.attrib.items()
        ))))
    if element.text is not None:
        body.append((TEXT, TextLeaf(element.text)))
    children = list(element)
    if children:
        body.append((CHILDREN, ListNode(tuple(
            from_element(c, declared, scope) for c in children
        ))))
    if element.tail is not None:
        body.append((TAIL, TextLeaf(element.tail)))
    return MapNode(((_qualified(element.tag, scope), MapNode(tuple(body))),))


def to_element(node: MapNode) -> ET.Element:
    (tag, body), = node.entries
    element = ET.Element(tag)
    for key, value in body.entries:
        if key == NAMESPACES:
            for prefix, uri in value.value:
                element.set(f"xmlns:{prefix}" if prefix else "xmlns", uri)
        elif key == ATTRIBUTES:
            for name, leaf in value.entries:
                element.set(name, leaf.value)
        elif key == TEXT:
            element.text = value.value
        elif key == TAIL:
            element.tail = value.value
        elif key == CHILDREN:
            element.extend(to_element(child) for child in value.items)
    return element


def parse_xml(text: str) -> MapNode:
    """Parse and normalise, keeping each element's namespace declarations
    so names come back out exactly as written."""
    parser = ET.XMLPullParser(events=("start-ns", "start"))
    declared: dict[int, Scope] = {}
    pending: list[tuple[str, str]] = []
    root: ET.Element | None = None

    def drain() -> None:
        nonlocal root
        for event, item in parser.read_events():
            if event == "start-ns":
                pending.append(item)
                continue
            if root is None:
                root = item
            if pending:
                declared[id(item)] = tuple(pending)
                pending.clear()

    try:
        parser.feed(text.strip())
        drain()
        parser.close()
        drain()
        if root is None:
            raise ParseFailure("invalid XML: no root element")
        return from_element(root, declared)
    except (ET.ParseError, ValueError, RecursionError) as e:
        raise ParseFailure(f"invalid XML: {e}") from e


def dump_xml(node: MapNode, *, declaration: bool = False) -> str:
    """Serialise back to XML text.  The root's tail is dropped."""
    root = to_element(node)
    root.tail = None
    body = ET.tostring(root, encoding="unicode")
    return f"{_XML_DECLARATION}\n{body}" if declaration else body
