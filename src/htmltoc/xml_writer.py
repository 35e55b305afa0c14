"""Event serializer. Never writes an XML declaration."""
from __future__ import annotations

import io
from collections.abc import Iterable
from typing import TextIO
from xml.sax.saxutils import escape

from htmltoc.events import (
    Characters,
    Comment,
    Doctype,
    EndDocument,
    EndElement,
    EntityReference,
    ProcessingInstruction,
    StartDocument,
    StartElement,
    XmlEvent,
)

_ATTR_ENTITIES = {'"': "&quot;", "\n": "&#10;", "\r": "&#13;", "\t": "&#9;"}


def _start_tag(event: StartElement, *, empty: bool) -> str:
    parts = [f"<{event.name}"]
    for name, value in event.attributes:
        parts.append(f' {name}="{escape(value, _ATTR_ENTITIES)}"')
    parts.append("/>" if empty else ">")
    return "".join(parts)


class XmlWriter:
    """Writes events to a text stream.

    A start tag read as ``<x/>`` is held back for one event: if its end tag
    follows immediately the element is written in the empty form.
    """

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._held: StartElement | None = None
        self.events_written = 0

    def write(self, event: XmlEvent) -> None:
        self.events_written += 1
        match event:
            case EndElement(name=name) if self._held is not None and self._held.name == name:
                self._out.write(_start_tag(self._held, empty=True))
                self._held = None
                return
            case _:
                self._release()
        match event:
            case StartElement(self_closing=True):
                self._held = event
            case StartElement():
                self._out.write(_start_tag(event, empty=False))
            case EndElement(name=name):
                self._out.write(f"</{name}>")
            case Characters(text=text, cdata=True):
                self._out.write(f"<![CDATA[{text}]]>")
            case Characters(text=text):
                self._out.write(escape(text))
            case Comment(text=text):
                self._out.write(f"<!--{text}-->")
            case ProcessingInstruction(target=target, data=data):
                self._out.write(f"<?{target} {data}?>" if data else f"<?{target}?>")
            case Doctype(text=text):
                self._out.write(text)
            case EntityReference(name=name):
                self._out.write(f"&{name};")
            case EndDocument():
                self.flush()
            case StartDocument():
                pass

    def write_all(self, events: Iterable[XmlEvent]) -> None:
        for event in events:
            self.write(event)

    def flush(self) -> None:
        self._release()
        self._out.flush()

    def _release(self) -> None:
        if self._held is not None:
            self._out.write(_start_tag(self._held, empty=False))
            self._held = None


def serialize(events: Iterable[XmlEvent]) -> str:
    buffer = io.StringIO()
    XmlWriter(buffer).write_all(events)
    return buffer.getvalue()
