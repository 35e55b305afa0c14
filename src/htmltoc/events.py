"""Markup event model shared by the reader, the indexing engine and the writer.

Events are immutable records. The set is closed: every consumer dispatches
with ``match`` over ``XmlEvent`` rather than open-ended type tests.
"""
from __future__ import annotations

from typing import TypeAlias

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class Location:
    """Source position of an event in the input document."""

    offset: int
    line: int | None = None
    column: int | None = None

    def describe(self) -> str:
        if self.line is None:
            return f"at offset {self.offset}"
        return f"at offset {self.offset}, line {self.line}, column {self.column}"


@dataclass(frozen=True, slots=True)
class StartDocument:
    location: Location | None = None


@dataclass(frozen=True, slots=True)
class EndDocument:
    location: Location | None = None


@dataclass(frozen=True, slots=True)
class StartElement:
    """Element start tag.

    ``self_closing`` records that the input used the ``<name/>`` form, so the
    writer can reproduce it when the matching end follows immediately.
    """

    name: str
    attributes: tuple[tuple[str, str], ...] = ()
    self_closing: bool = False
    location: Location | None = None

    def get(self, name: str) -> str | None:
        for attr_name, value in self.attributes:
            if attr_name == name:
                return value
        return None

    def with_attribute(self, name: str, value: str) -> StartElement:
        """Return a copy with *name* appended, or replaced if already present."""
        attrs = [(n, v) for n, v in self.attributes if n != name]
        attrs.append((name, value))
        return replace(self, attributes=tuple(attrs))


@dataclass(frozen=True, slots=True)
class EndElement:
    name: str
    location: Location | None = None


@dataclass(frozen=True, slots=True)
class Characters:
    text: str
    cdata: bool = False
    location: Location | None = None


@dataclass(frozen=True, slots=True)
class ProcessingInstruction:
    target: str
    data: str = ""
    location: Location | None = None


@dataclass(frozen=True, slots=True)
class Comment:
    text: str
    location: Location | None = None


@dataclass(frozen=True, slots=True)
class Doctype:
    text: str
    location: Location | None = None


@dataclass(frozen=True, slots=True)
class EntityReference:
    name: str
    location: Location | None = None


XmlEvent: TypeAlias = (
    StartDocument
    | EndDocument
    | StartElement
    | EndElement
    | Characters
    | ProcessingInstruction
    | Comment
    | Doctype
    | EntityReference
)


def describe_event(event: XmlEvent) -> str:
    """Short human-readable label for error messages."""
    match event:
        case StartElement(name=name):
            return f"element <{name}>"
        case EndElement(name=name):
            return f"end of element <{name}>"
        case ProcessingInstruction(target=target, data=data):
            return f"processing instruction <?{target} {data}?>"
        case Characters(text=text):
            preview = text if len(text) <= 40 else text[:37] + "..."
            return f"text {preview!r}"
        case Comment():
            return "comment"
        case Doctype(text=text):
            return text
        case EntityReference(name=name):
            return f"entity reference &{name};"
        case StartDocument():
            return "start of document"
        case EndDocument():
            return "end of document"


@dataclass(frozen=True, slots=True)
class EventFactory:
    """Builds synthesized events, stamping them with an optional location."""

    location: Location | None = None

    def at(self, location: Location | None) -> EventFactory:
        return EventFactory(location=location)

    def start_element(
        self,
        name: str,
        attributes: dict[str, str] | None = None,
    ) -> StartElement:
        attrs = tuple((attributes or {}).items())
        return StartElement(name=name, attributes=attrs, location=self.location)

    def end_element(self, name: str) -> EndElement:
        return EndElement(name=name, location=self.location)

    def characters(self, text: str) -> Characters:
        return Characters(text=text, location=self.location)

    def eol(self) -> Characters:
        return self.characters("\n")

    def doctype_for(self, root: StartElement) -> Doctype:
        """DOCTYPE declaration named after the (possibly prefixed) root element."""
        return Doctype(text=f"<!DOCTYPE {root.name}>", location=self.location)
