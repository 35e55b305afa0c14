"""TOC formatter: turns indexed elements into a level-structured TOC fragment.

The formatter never writes output directly. Generated events accumulate in a
queue that the engine drains after every call, which keeps the TOC in step
with the document it is built from.

State is two optional values: the current level (``None`` means above every
level) and the currently open entry. ``current_level`` only changes through
``_jump_to``, which opens or closes block wrappers one level at a time so the
TOC nesting always mirrors the outline order.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from htmltoc.directive import Directive
from htmltoc.errors import (
    ContentOutsideItem,
    ItemAlreadyOpen,
    NoOpenItem,
    NotInOutline,
    UnclosedItem,
    UnexpectedEventType,
    UnmatchedClose,
)
from htmltoc.events import (
    Characters,
    EndElement,
    EventFactory,
    Location,
    StartElement,
    XmlEvent,
    describe_event,
)
from htmltoc.outline import Level, resolve_levels

ANCHOR_ELEMENT = "a"
HREF_ATTR = "href"


@dataclass(slots=True)
class TocEntry:
    """One generated TOC line, kept for reporting."""

    id: str
    level: int
    element: str
    text: str = ""


def _where(event: XmlEvent) -> str:
    return event.location.describe() if event.location else "at unknown location"


class TocFormatter:
    def __init__(
        self,
        levels: Mapping[str, Level],
        factory: EventFactory | None = None,
    ) -> None:
        self._levels = dict(levels)
        self._by_index = tuple(sorted(self._levels.values(), key=lambda lv: lv.index))
        self._factory = factory or EventFactory()
        self._queue: deque[XmlEvent] = deque()
        self.current_level: Level | None = None
        self.open_entry: StartElement | None = None
        self.entries: list[TocEntry] = []

    @classmethod
    def for_directive(
        cls,
        directive: Directive,
        factory: EventFactory | None = None,
        *,
        location: Location | None = None,
    ) -> TocFormatter:
        return cls(resolve_levels(directive, location=location), factory)

    @property
    def levels(self) -> tuple[Level, ...]:
        return self._by_index

    def accept(self, event: XmlEvent) -> bool:
        """Whether *event* starts a TOC entry under this outline."""
        return isinstance(event, StartElement) and event.name in self._levels

    def open_item(self, start: XmlEvent, entry_id: str) -> None:
        if self.open_entry is not None:
            raise ItemAlreadyOpen(
                f"TOC item {describe_event(start)} is improperly nested within "
                f"another TOC item {describe_event(self.open_entry)} that began "
                f"{_where(self.open_entry)}",
                location=start.location,
            )
        if not isinstance(start, StartElement):
            raise UnexpectedEventType(
                f"Unexpected event type {describe_event(start)} opening a TOC item",
                location=start.location,
            )
        level = self._levels.get(start.name)
        if level is None:
            raise NotInOutline(
                f"TOC item {describe_event(start)} is not included in the outline",
                location=start.location,
            )
        self.open_entry = start
        self._jump_to(level)
        line_start = level.start_line(self._factory)
        if line_start is not None:
            self._queue.append(line_start)
        self._queue.append(
            self._factory.start_element(ANCHOR_ELEMENT, {HREF_ATTR: f"#{entry_id}"}),
        )
        self.entries.append(TocEntry(id=entry_id, level=level.index, element=start.name))

    def close_item(self, end: XmlEvent) -> None:
        if self.open_entry is None:
            raise NoOpenItem(
                f"Attempted to close a TOC item {_where(end)} that was never opened",
                location=end.location,
            )
        if not isinstance(end, EndElement):
            raise UnexpectedEventType(
                f"Unexpected event type {describe_event(end)} closing the TOC item "
                f"{describe_event(self.open_entry)} {_where(self.open_entry)}",
                location=end.location,
            )
        if end.name != self.open_entry.name:
            raise UnmatchedClose(
                f"Closing event {describe_event(end)} does not match the opening of "
                f"the TOC item {describe_event(self.open_entry)} "
                f"{_where(self.open_entry)}",
                location=end.location,
            )
        self._queue.append(self._factory.end_element(ANCHOR_ELEMENT))
        if self.current_level is not None:
            line_end = self.current_level.end_line(self._factory)
            if line_end is not None:
                self._queue.append(line_end)
        self._queue.append(self._factory.eol())
        self.open_entry = None

    def add_content(self, event: XmlEvent) -> None:
        """Copy the text of an open entry into the TOC; markup is dropped."""
        if self.open_entry is None:
            raise ContentOutsideItem(
                f"TOC content {describe_event(event)} is not expected outside of "
                "a TOC item",
                location=event.location,
            )
        # Whitespace-only runs are kept; no element declarations make any ignorable.
        if isinstance(event, Characters):
            self._queue.append(Characters(text=event.text, cdata=event.cdata))
            if self.entries:
                self.entries[-1].text += event.text

    def end(self) -> None:
        """Close every block wrapper still open."""
        if self.open_entry is not None:
            raise UnclosedItem(
                f"TOC item {describe_event(self.open_entry)} has never been closed.",
                location=self.open_entry.location,
            )
        self._jump_to(None)

    def has_pending(self) -> bool:
        return bool(self._queue)

    def drain(self) -> Iterator[XmlEvent]:
        while self._queue:
            yield self._queue.popleft()

    def _jump_to(self, level: Level | None) -> None:
        at = -1 if self.current_level is None else self.current_level.index
        target = -1 if level is None else level.index
        while at < target:
            at += 1
            block_start = self._by_index[at].start_block(self._factory)
            if block_start is not None:
                self._queue.append(block_start)
                self._queue.append(self._factory.eol())
        while at > target:
            block_end = self._by_index[at].end_block(self._factory)
            if block_end is not None:
                self._queue.append(block_end)
                self._queue.append(self._factory.eol())
            at -= 1
        self.current_level = level
