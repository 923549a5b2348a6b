"""Tagged intermediate tree for loosely shaped upstream payloads.

Both engines answer with documents whose shape is only partly fixed: an
element may occur once or many times, a JSON field may be a list or a
bare value, and any field may be missing. Parsing them into `RawNode`s
makes that explicit:

- `Absent`: the path does not exist
- `Scalar`: a leaf value (XML text without attributes, JSON primitive)
- `Element`: an XML element with attributes/children, or a JSON object
- `Sequence`: repeated XML elements, or a JSON array

Lookups never raise. Call sites read `.first()` where one value is
expected and `.all()` where several may occur, so nothing downstream has
to check "is it a list".

Example:
    ```python
    root = from_xml("<root><a x='1'>t</a><a>u</a></root>")
    root.get("a").all()        # two nodes
    root.get("a").get("x")     # Scalar('1'), a sequence answers through its first item
    text_of(root.get("b"))     # None
    ```
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
import re
from typing import Any

from lxml import etree

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class RawNode:
    """Base class of the tagged tree. Behaves like `Absent`."""

    __slots__ = ()

    def get(self, key: str) -> RawNode:
        """Child (or merged attribute) named `key`."""
        return ABSENT

    def first(self) -> RawNode:
        """The node itself, or the first item of a sequence."""
        return self

    def all(self) -> list[RawNode]:
        """Every occurrence: [] when absent, [self] for a single node."""
        return [self]

    def elements(self) -> list[RawNode]:
        """Child elements in document order (attributes excluded)."""
        return []

    def text(self) -> str | None:
        """Stripped text content, None when empty."""
        return None

    @property
    def present(self) -> bool:
        return True

    def __iter__(self) -> Iterator[RawNode]:
        return iter(self.all())


@dataclass(frozen=True, slots=True)
class Absent(RawNode):
    """A missing path."""

    def all(self) -> list[RawNode]:
        return []

    @property
    def present(self) -> bool:
        return False


ABSENT = Absent()


@dataclass(frozen=True, slots=True)
class Scalar(RawNode):
    """A leaf value."""

    value: Any

    def text(self) -> str | None:
        if self.value is None:
            return None
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        value = str(self.value).strip()
        return value or None


@dataclass(frozen=True, slots=True)
class Element(RawNode):
    """A node with named children; attributes are merged into lookups."""

    children: dict[str, RawNode] = field(default_factory=dict)
    attributes: dict[str, str] = field(default_factory=dict)
    ordered: tuple[RawNode, ...] = ()
    content: str | None = None

    def get(self, key: str) -> RawNode:
        if key in self.children:
            return self.children[key]
        if key in self.attributes:
            return Scalar(self.attributes[key])
        return ABSENT

    def elements(self) -> list[RawNode]:
        return list(self.ordered)

    def text(self) -> str | None:
        return self.content or None


@dataclass(frozen=True, slots=True)
class Sequence(RawNode):
    """Repeated occurrences of the same field."""

    items: tuple[RawNode, ...] = ()

    def get(self, key: str) -> RawNode:
        # A sequence answers lookups through its first item
        return self.first().get(key)

    def first(self) -> RawNode:
        return self.items[0] if self.items else ABSENT

    def all(self) -> list[RawNode]:
        return list(self.items)

    def elements(self) -> list[RawNode]:
        return self.first().elements()

    def text(self) -> str | None:
        return self.first().text()

    @property
    def present(self) -> bool:
        return bool(self.items)


def _group(tagged: list[tuple[str, RawNode]]) -> dict[str, RawNode]:
    grouped: dict[str, list[RawNode]] = {}
    for tag, node in tagged:
        grouped.setdefault(tag, []).append(node)
    return {
        tag: nodes[0] if len(nodes) == 1 else Sequence(tuple(nodes))
        for tag, nodes in grouped.items()
    }


def from_element(el: etree._Element) -> RawNode:
    """Convert an lxml element into a `RawNode` (attributes merged)."""
    tagged: list[tuple[str, RawNode]] = []
    for child in el:
        if not isinstance(child.tag, str):
            # comments, processing instructions
            continue
        tagged.append((etree.QName(child).localname, from_element(child)))

    attributes = {etree.QName(k).localname: v for k, v in el.attrib.items()}
    content = (el.text or "").strip() or None

    if not tagged and not attributes:
        return Scalar(content or "")

    return Element(
        children=_group(tagged),
        attributes=attributes,
        ordered=tuple(node for _, node in tagged),
        content=content,
    )


def from_xml(text: str | bytes) -> RawNode:
    """Parse XML into a tree rooted at a synthetic element.

    The returned node has the document element as its only child, so
    `from_xml(body).get("root")` is `Absent` when the root is missing.

    Raises:
        etree.XMLSyntaxError: When the payload is not well-formed XML
    """
    data = text.encode("utf-8") if isinstance(text, str) else text
    root = etree.fromstring(data, parser=_PARSER)
    node = from_element(root)
    return Element(
        children={etree.QName(root).localname: node},
        ordered=(node,),
    )


def from_json(value: Any) -> RawNode:
    """Convert decoded JSON into a `RawNode`."""
    if value is None:
        return ABSENT
    if isinstance(value, dict):
        children = {key: from_json(item) for key, item in value.items()}
        return Element(
            children=children,
            ordered=tuple(node for node in children.values() if node.present),
        )
    if isinstance(value, list):
        return Sequence(tuple(from_json(item) for item in value if item is not None))
    return Scalar(value)


# --- extractors -------------------------------------------------------------


def text_of(node: RawNode) -> str | None:
    """Text of the first occurrence."""
    return node.first().text()


def texts_of(node: RawNode) -> list[str] | None:
    """Non-empty texts of every occurrence, None when there are none."""
    values = [value for value in (item.text() for item in node.all()) if value]
    return values or None


def int_of(node: RawNode) -> int | None:
    """Leading integer of the first occurrence, like a lenient parseInt."""
    return parse_int(text_of(node))


def parse_int(value: str | int | None) -> int | None:
    """Parse the leading integer of a string ('12abc' -> 12, '2.5' -> 2)."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None
