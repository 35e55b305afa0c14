"""Streaming indexer: the directive-driven state machine.

States::

    root -> passthrough -> placeholder -> indexed
                 \\______________________/

* ``root``: before the root element. The first start tag is preceded by a
  synthesized DOCTYPE; a TOC directive here is an error.
* ``passthrough``: events go straight to output until a TOC directive.
* ``placeholder``: markup between an opening and a closing directive is
  checked for balanced nesting and discarded.
* ``indexed``: the TOC is emitted in place of the directive while original
  content is held in the deferred buffer. Outline elements get an id and an
  ``<a name>`` anchor; their text is mirrored into the TOC. The buffer is
  released at the end of the document or when a new directive restarts the
  cycle.

The indexer is pull-based: ``transform`` is a generator, so nothing is read
from the input until the caller asks for output.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from htmltoc.context import ContextTracker
from htmltoc.directive import (
    Directive,
    Malformed,
    NotApplicable,
    Parsed,
    is_directive,
    parse_directive,
)
from htmltoc.errors import (
    DirectiveNesting,
    DirectiveOutsideRoot,
    InvariantViolation,
    MalformedDirective,
    NoOpenDirective,
    PI_LABEL,
    TocError,
    UnclosedElement,
)
from htmltoc.events import (
    EndDocument,
    EndElement,
    EventFactory,
    ProcessingInstruction,
    StartElement,
    XmlEvent,
    describe_event,
)
from htmltoc.formatter import TocEntry, TocFormatter
from htmltoc.ids import ID_WIDTH, IdAllocator

log = logging.getLogger(__name__)

IndexerState: TypeAlias = Literal["root", "passthrough", "placeholder", "indexed"]

ID_ATTR = "id"
ANCHOR_ELEMENT = "a"
ANCHOR_NAME_ATTR = "name"
ANCHOR_TEXT = " "


@dataclass(slots=True)
class _RunState:
    """Everything that lives for one document."""

    state: IndexerState = "root"
    context: ContextTracker = field(default_factory=ContextTracker)
    deferred: list[XmlEvent] = field(default_factory=list)
    ids: IdAllocator = field(default_factory=IdAllocator)
    formatter: TocFormatter | None = None
    entries: list[TocEntry] = field(default_factory=list)
    directives: int = 0


class StreamIndexer:
    def __init__(
        self,
        factory: EventFactory | None = None,
        *,
        id_width: int = ID_WIDTH,
    ) -> None:
        self._factory = factory or EventFactory()
        self._id_width = id_width
        self._run = self._new_run()
        self._out: list[XmlEvent] = []

    @property
    def state(self) -> IndexerState:
        return self._run.state

    @property
    def entries(self) -> tuple[TocEntry, ...]:
        """TOC entries generated so far, across every directive of the document."""
        current = self._run.formatter.entries if self._run.formatter else []
        return tuple(self._run.entries + current)

    @property
    def directives(self) -> int:
        return self._run.directives

    def reset(self) -> None:
        self._run = self._new_run()
        self._out = []

    def _new_run(self) -> _RunState:
        return _RunState(ids=IdAllocator(width=self._id_width))

    def transform(self, events: Iterable[XmlEvent]) -> Iterator[XmlEvent]:
        """Rewrite a full document. Resets state first."""
        self.reset()
        for event in events:
            yield from self.feed(event)

    def feed(self, event: XmlEvent) -> list[XmlEvent]:
        """Consume one input event and return the output it releases."""
        try:
            match self._run.state:
                case "root":
                    self._on_root(event)
                case "passthrough":
                    self._on_passthrough(event)
                case "placeholder":
                    self._on_placeholder(event)
                case "indexed":
                    self._on_indexed(event)
        except TocError as exc:
            raise exc.at(event.location)
        out, self._out = self._out, []
        return out

    # -- states -------------------------------------------------------------

    def _on_root(self, event: XmlEvent) -> None:
        match event:
            case ProcessingInstruction() if is_directive(event):
                raise DirectiveOutsideRoot(
                    f"Processing instructions {PI_LABEL} cannot be placed outside "
                    "the root element.",
                )
            case StartElement():
                factory = self._factory.at(event.location)
                self._out.append(factory.doctype_for(event))
                self._out.append(factory.eol())
                self._out.append(event)
                self._run.state = "passthrough"
            case _:
                self._out.append(event)

    def _on_passthrough(self, event: XmlEvent) -> None:
        directive = self._directive_of(event)
        if directive is None:
            self._out.append(event)
            return
        if not directive.opening:
            raise NoOpenDirective(
                f"Closing instruction {PI_LABEL} without a matching opening instruction",
            )
        self._start_directive(directive, event)

    def _on_placeholder(self, event: XmlEvent) -> None:
        run = self._run
        directive = self._directive_of(event)
        if directive is None:
            run.context.track(event)
            return
        if directive.opening:
            origin = run.context.origin
            began = origin.location.describe() if origin and origin.location else "earlier"
            raise DirectiveNesting(
                f"Processing instruction {PI_LABEL} cannot be nested. "
                f"Nesting instruction began {began}",
            )
        run.context.exit()
        self._out.append(self._factory.eol())
        run.state = "indexed"
        log.debug("Placeholder closed, indexing with %d levels", self._levels_count())

    def _on_indexed(self, event: XmlEvent) -> None:
        run = self._run
        formatter = run.formatter
        if formatter is None:
            raise InvariantViolation("Indexed state without an active formatter")

        if not run.context.active:
            directive = self._directive_of(event)
            if directive is not None:
                if not directive.opening:
                    raise NoOpenDirective(
                        f"Closing instruction {PI_LABEL} without a matching opening "
                        "instruction",
                    )
                self._finish_cycle()
                self._start_directive(directive, event)
                return

        match event:
            case EndDocument():
                if run.context.active:
                    run.context.track(event)
                self._finish_cycle()
                self._out.append(event)
            case EndElement() if run.context.balanced:
                origin = run.context.origin
                if not isinstance(origin, StartElement) or origin.name != event.name:
                    where = origin.location.describe() if origin and origin.location else ""
                    label = describe_event(origin) if origin else "subtree"
                    raise UnclosedElement(f"Unclosed {label} {where}".rstrip())
                run.context.exit()
                formatter.close_item(event)
                self._drain()
                run.deferred.append(event)
            case _ if not run.context.active:
                if formatter.accept(event) and isinstance(event, StartElement):
                    self._index_element(event, formatter)
                else:
                    run.deferred.append(event)
            case _:
                run.context.track(event)
                run.deferred.append(event)
                formatter.add_content(event)
                self._drain()

    # -- helpers ------------------------------------------------------------

    def _directive_of(self, event: XmlEvent) -> Directive | None:
        if not isinstance(event, ProcessingInstruction):
            return None
        match parse_directive(event):
            case NotApplicable():
                return None
            case Malformed(reason=reason):
                raise MalformedDirective(f"Error parsing {describe_event(event)}: {reason}")
            case Parsed(directive=directive):
                return directive

    def _start_directive(self, directive: Directive, event: XmlEvent) -> None:
        run = self._run
        run.formatter = TocFormatter.for_directive(
            directive, self._factory, location=event.location,
        )
        run.directives += 1
        log.debug(
            "TOC directive %s with outline %s",
            event.location.describe() if event.location else "",
            ",".join(directive.outline),
        )
        if directive.closing:
            self._out.append(self._factory.eol())
            run.state = "indexed"
        else:
            run.context.enter(event)
            run.state = "placeholder"

    def _index_element(self, event: StartElement, formatter: TocFormatter) -> None:
        run = self._run
        entry_id = event.get(ID_ATTR)
        if entry_id is None:
            entry_id = run.ids.allocate()
            event = event.with_attribute(ID_ATTR, entry_id)
        factory = self._factory.at(event.location)
        run.deferred.append(event)
        run.deferred.append(
            factory.start_element(ANCHOR_ELEMENT, {ANCHOR_NAME_ATTR: entry_id}),
        )
        run.deferred.append(factory.characters(ANCHOR_TEXT))
        run.deferred.append(factory.end_element(ANCHOR_ELEMENT))
        formatter.open_item(event, entry_id)
        self._drain()
        run.context.enter(event)

    def _finish_cycle(self) -> None:
        run = self._run
        if run.formatter is not None:
            run.formatter.end()
            self._drain()
            run.entries.extend(run.formatter.entries)
            run.formatter = None
        self._out.extend(run.deferred)
        run.deferred.clear()

    def _drain(self) -> None:
        if self._run.formatter is not None:
            self._out.extend(self._run.formatter.drain())

    def _levels_count(self) -> int:
        return len(self._run.formatter.levels) if self._run.formatter else 0
