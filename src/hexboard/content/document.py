from __future__ import annotations

import re
import xml.etree.ElementTree as ElementTree
from typing import Iterable, Iterator, Protocol, TextIO
from xml.sax.saxutils import escape

from hexboard.content.errors import InvalidStructureError

TRUE_STRINGS = {"true", "yes", "on", "1"}
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")
_ATTRIBUTE_ENTITIES = {'"': "&quot;", "\n": "&#10;", "\r": "&#13;", "\t": "&#9;"}

Attributes = Iterable[tuple[str, object]]


class DocumentNode(Protocol):
    """Parsed document element: a tag name, ordered children and string attributes."""

    @property
    def name(self) -> str | None: ...

    def children(self) -> Iterator["DocumentNode"]: ...

    def attribute(self, name: str) -> str | None: ...


class ElementNode:
    """DocumentNode backed by an ``xml.etree.ElementTree.Element``."""

    __slots__ = ("_element",)

    def __init__(self, element: ElementTree.Element) -> None:
        self._element = element

    @property
    def name(self) -> str | None:
        tag = self._element.tag
        return tag if isinstance(tag, str) else None

    def children(self) -> Iterator["ElementNode"]:
        for child in self._element:
            yield ElementNode(child)

    def attribute(self, name: str) -> str | None:
        return self._element.get(name)

    def __repr__(self) -> str:
        return f"ElementNode({self.name!r})"


def parse_document(text: str) -> ElementNode:
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as exc:
        raise InvalidStructureError(f"document is not well-formed XML: {exc}") from exc
    return ElementNode(root)


def _format_attributes(attributes: Attributes | None) -> str:
    if attributes is None:
        return ""
    parts = []
    for key, value in attributes:
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        parts.append(f' {key}="{escape(str(value), _ATTRIBUTE_ENTITIES)}"')
    return "".join(parts)


def write_start(sink: TextIO, tag: str, attributes: Attributes | None = None) -> None:
    sink.write(f"<{tag}{_format_attributes(attributes)}>")


def write_empty(sink: TextIO, tag: str, attributes: Attributes | None = None) -> None:
    sink.write(f"<{tag}{_format_attributes(attributes)}/>")


def write_end(sink: TextIO, tag: str) -> None:
    sink.write(f"</{tag}>")


def require_attribute(node: DocumentNode, name: str, *, element: str) -> str:
    value = node.attribute(name)
    if value is None:
        raise InvalidStructureError(f"{element} element is missing required attribute '{name}'")
    return value


def parse_int_attribute(node: DocumentNode, name: str, *, element: str, default: int | None = None) -> int:
    raw = node.attribute(name)
    if raw is None:
        if default is None:
            raise InvalidStructureError(f"{element} element is missing required attribute '{name}'")
        return default
    text = raw.strip()
    if not _INTEGER_PATTERN.fullmatch(text):
        raise InvalidStructureError(f"{element}.{name} must be an integer, got {raw!r}")
    return int(text)


def parse_bool(value: str | None) -> bool:
    """Lenient boolean: recognised true spellings in any case, everything else false."""
    if value is None:
        return False
    return value.strip().lower() in TRUE_STRINGS
