"""Pull-based event reader built on the expat push parser.

Input is fed to expat in chunks; events collected by the callbacks are
yielded after each chunk, so memory use is bounded by the chunk size plus the
events one chunk produces.

The XML declaration and any DOCTYPE are dropped. The document's external DTD
is never fetched; the HTML entity table is declared in its place, so named
entities resolve in text and in attribute values alike.
"""
from __future__ import annotations

import codecs
import logging
import re
from collections.abc import Iterator
from html.entities import name2codepoint
from typing import BinaryIO
from xml.parsers import expat

from htmltoc.errors import XmlSyntaxError
from htmltoc.events import (
    Characters,
    Comment,
    EndDocument,
    EndElement,
    EntityReference,
    Location,
    ProcessingInstruction,
    StartDocument,
    StartElement,
    XmlEvent,
)
from htmltoc.reporting import ErrorReporter

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

XML_PREDEFINED_ENTITIES = frozenset({"amp", "lt", "gt", "quot", "apos"})

HTML_ENTITY_DTD = "\n".join(
    f'<!ENTITY {name} "&#{codepoint};">'
    for name, codepoint in sorted(name2codepoint.items())
    if name not in XML_PREDEFINED_ENTITIES
)

_ENTITY_REF = re.compile(rb"&([^\s&;#]+);")


def _start_tag(context: bytes | None) -> bytes:
    """The start tag at the head of *context*, up to and including ``>``."""
    if not context:
        return b""
    quote = 0
    for pos in range(1, len(context)):
        byte = context[pos]
        if quote:
            if byte == quote:
                quote = 0
        elif byte in (0x22, 0x27):
            quote = byte
        elif byte == 0x3E:
            return context[:pos + 1]
    return b""


class _ExpatEventSource:
    def __init__(self, reporter: ErrorReporter | None) -> None:
        self._reporter = reporter or ErrorReporter()
        self._pending: list[XmlEvent] = []
        self._in_cdata = False
        self._dtd_loaded = False
        self._declared: set[str] = set(XML_PREDEFINED_ENTITIES)
        parser = expat.ParserCreate("UTF-8")
        parser.buffer_text = True
        parser.ordered_attributes = True
        # Every document gets the HTML entity DTD as its external subset.
        # Names it does not declare are reported as skipped, not fatal.
        parser.SetParamEntityParsing(expat.XML_PARAM_ENTITY_PARSING_ALWAYS)
        parser.UseForeignDTD(True)
        parser.ExternalEntityRefHandler = self._external_entity
        parser.StartElementHandler = self._start_element
        parser.EndElementHandler = self._end_element
        parser.CharacterDataHandler = self._characters
        parser.ProcessingInstructionHandler = self._instruction
        parser.CommentHandler = self._comment
        parser.StartCdataSectionHandler = self._start_cdata
        parser.EndCdataSectionHandler = self._end_cdata
        parser.SkippedEntityHandler = self._skipped_entity
        parser.EntityDeclHandler = self._entity_decl
        self._parser = parser

    def location(self) -> Location:
        parser = self._parser
        return Location(
            offset=max(parser.CurrentByteIndex, 0),
            line=parser.CurrentLineNumber,
            column=parser.CurrentColumnNumber + 1,
        )

    def feed(self, data: str, final: bool = False) -> list[XmlEvent]:
        try:
            self._parser.Parse(data, final)
        except expat.ExpatError as exc:
            raise XmlSyntaxError(
                expat.ErrorString(exc.code),
                location=Location(
                    offset=max(self._parser.ErrorByteIndex, 0),
                    line=exc.lineno,
                    column=exc.offset + 1,
                ),
            ) from exc
        events, self._pending = self._pending, []
        return events

    # -- expat callbacks ----------------------------------------------------

    def _start_element(self, name: str, attributes: list[str]) -> None:
        pairs = tuple(zip(attributes[0::2], attributes[1::2]))
        tag = _start_tag(self._parser.GetInputContext())
        location = self.location()
        self._check_attribute_entities(name, tag, location)
        self._pending.append(StartElement(
            name=name,
            attributes=pairs,
            self_closing=tag.endswith(b"/>"),
            location=location,
        ))

    def _check_attribute_entities(self, name: str, tag: bytes, location: Location) -> None:
        # expat drops undeclared entities in attribute values without a
        # skipped-entity callback.
        for match in _ENTITY_REF.finditer(tag):
            entity = match.group(1).decode("utf-8", "replace")
            if entity in self._declared:
                continue
            self._reporter.warning(XmlSyntaxError(
                f"Unknown entity &{entity}; dropped from an attribute of <{name}>",
                location=location,
            ))

    def _end_element(self, name: str) -> None:
        self._pending.append(EndElement(name=name, location=self.location()))

    def _characters(self, data: str) -> None:
        self._pending.append(
            Characters(text=data, cdata=self._in_cdata, location=self.location()),
        )

    def _instruction(self, target: str, data: str) -> None:
        self._pending.append(
            ProcessingInstruction(target=target, data=data, location=self.location()),
        )

    def _comment(self, data: str) -> None:
        self._pending.append(Comment(text=data, location=self.location()))

    def _start_cdata(self) -> None:
        self._in_cdata = True

    def _end_cdata(self) -> None:
        self._in_cdata = False

    def _entity_decl(
        self,
        name: str,
        is_parameter_entity: bool,
        value: str | None,
        base: str | None,
        system_id: str | None,
        public_id: str | None,
        notation_name: str | None,
    ) -> None:
        if not is_parameter_entity:
            self._declared.add(name)

    def _external_entity(
        self,
        context: str | None,
        base: str | None,
        system_id: str | None,
        public_id: str | None,
    ) -> int:
        if context is None and not self._dtd_loaded:
            self._dtd_loaded = True
            if system_id:
                log.debug("Using HTML entity table in place of DTD %s", system_id)
            dtd = self._parser.ExternalEntityParserCreate(None)
            dtd.Parse(HTML_ENTITY_DTD, True)
            return 1
        log.debug("Not loading external entity %s", system_id or public_id)
        return 1

    def _skipped_entity(self, name: str, is_parameter_entity: bool) -> None:
        if is_parameter_entity:
            return
        location = self.location()
        self._reporter.warning(XmlSyntaxError(
            f"Unknown entity &{name}; passed through unresolved",
            location=location,
        ))
        self._pending.append(EntityReference(name=name, location=location))


def iter_events(
    source: BinaryIO,
    *,
    encoding: str | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    reporter: ErrorReporter | None = None,
) -> Iterator[XmlEvent]:
    """Yield the events of the document read from *source*.

    Args:
        source: Binary stream positioned at the start of the document.
        encoding: Character encoding of the input. ``None`` means UTF-8.
        chunk_size: Number of bytes read per parser feed.
        reporter: Sink for non-fatal warnings.
    """
    decoder = codecs.getincrementaldecoder(encoding or "utf-8")()
    events = _ExpatEventSource(reporter)
    consumed = 0
    yield StartDocument(location=Location(offset=0, line=1, column=1))
    while True:
        chunk = source.read(chunk_size)
        if not chunk:
            break
        yield from events.feed(_decode(decoder, chunk, consumed, encoding))
        consumed += len(chunk)
    yield from events.feed(_decode(decoder, b"", consumed, encoding, final=True), final=True)
    yield EndDocument(location=events.location())


def iter_text_events(text: str, *, reporter: ErrorReporter | None = None) -> Iterator[XmlEvent]:
    """Yield the events of an in-memory document."""
    events = _ExpatEventSource(reporter)
    yield StartDocument(location=Location(offset=0, line=1, column=1))
    yield from events.feed(text, final=True)
    yield EndDocument(location=events.location())


def _decode(
    decoder: codecs.IncrementalDecoder,
    chunk: bytes,
    consumed: int,
    encoding: str | None,
    *,
    final: bool = False,
) -> str:
    try:
        return decoder.decode(chunk, final=final)
    except UnicodeDecodeError as exc:
        raise XmlSyntaxError(
            f"Input is not valid {encoding or 'utf-8'}: {exc.reason}",
            location=Location(offset=consumed + max(exc.start, 0)),
        ) from exc
