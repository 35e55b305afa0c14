"""Balanced-nesting tracker for one captured subtree."""
from __future__ import annotations

from htmltoc.directive import PI_TARGET, is_directive
from htmltoc.errors import (
    DisallowedDirectiveNesting,
    InvariantViolation,
    NestedContext,
    UnclosedElement,
)
from htmltoc.events import (
    EndDocument,
    EndElement,
    ProcessingInstruction,
    StartElement,
    XmlEvent,
    describe_event,
)


def _where(event: XmlEvent) -> str:
    return event.location.describe() if event.location else "at unknown location"


class ContextTracker:
    """Tracks elements opened inside a subtree started by ``origin``.

    The origin is either an indexed element or the directive that opened a
    placeholder region. The stack is empty exactly when the next end tag at
    this depth closes the subtree itself.
    """

    def __init__(self) -> None:
        self.origin: XmlEvent | None = None
        self._stack: list[StartElement] = []

    @property
    def active(self) -> bool:
        return self.origin is not None

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def balanced(self) -> bool:
        return self.active and not self._stack

    def enter(self, event: XmlEvent) -> None:
        if self.origin is not None:
            raise NestedContext(
                f"Cannot create nested context for {describe_event(event)} within a "
                f"context of {describe_event(self.origin)} {_where(self.origin)}",
                location=event.location,
            )
        self.origin = event
        self._stack.clear()

    def track(self, event: XmlEvent) -> None:
        if self.origin is None:
            raise InvariantViolation(
                f"No context to track {describe_event(event)}",
                location=event.location,
            )
        match event:
            case StartElement():
                self._stack.append(event)
            case EndElement() | EndDocument():
                if not self._stack:
                    raise UnclosedElement(
                        f"Unclosed {describe_event(self.origin)} {_where(self.origin)}",
                        location=event.location,
                    )
                open_element = self._stack.pop()
                if not isinstance(event, EndElement) or event.name != open_element.name:
                    raise UnclosedElement(
                        f"Unclosed {describe_event(open_element)} {_where(open_element)}",
                        location=event.location,
                    )
            case ProcessingInstruction() if is_directive(event):
                raise DisallowedDirectiveNesting(
                    f"Processing instructions <?{PI_TARGET}?> are not allowed within "
                    f"the context of {describe_event(self.origin)}",
                    location=event.location,
                )
            case _:
                pass

    def exit(self) -> None:
        if self._stack and self.origin is not None:
            outermost = self._stack[0]
            raise UnclosedElement(
                f"Unclosed element <{outermost.name}> {_where(outermost)} within "
                f"{describe_event(self.origin)}",
                location=outermost.location,
            )
        self.origin = None
