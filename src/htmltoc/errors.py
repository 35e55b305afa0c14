"""Error taxonomy for TOC generation.

``TocContentError`` subclasses describe bad input (malformed directives,
broken structure, unparsable markup). ``TocInternalError`` subclasses flag
tool-side failures so operators can tell bugs apart from bad documents.
"""
from __future__ import annotations

from typing import Self

from htmltoc.events import Location

PI_LABEL = "<?name.livitski.tools.html.toc?>"


class TocError(Exception):
    """Base error carrying the source location of the triggering event."""

    def __init__(self, message: str, *, location: Location | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.location = location

    def at(self, location: Location | None) -> Self:
        """Attach *location* unless one is already recorded."""
        if self.location is None:
            self.location = location
        return self

    def __str__(self) -> str:
        if self.location is None:
            return self.message
        return f"{self.message} ({self.location.describe()})"


class TocContentError(TocError):
    """Problem with the input document or its directives."""


class TocInternalError(TocError):
    """Invariant violation or exhausted resource inside the tool."""


class XmlSyntaxError(TocContentError):
    """Input is not well-formed markup."""


# -- configuration ----------------------------------------------------------


class DirectiveError(TocContentError):
    pass


class MalformedDirective(DirectiveError):
    pass


class EmptyOutline(DirectiveError):
    def __init__(self, *, location: Location | None = None) -> None:
        super().__init__(f"Invalid empty outline in {PI_LABEL}", location=location)


class EmptyOutlineEntry(DirectiveError):
    def __init__(self, index: int, *, location: Location | None = None) -> None:
        super().__init__(
            f"Outline element #{index} is empty in {PI_LABEL}",
            location=location,
        )
        self.index = index


class DuplicateOutlineEntry(DirectiveError):
    def __init__(
        self,
        index: int,
        conflicting_index: int,
        name: str,
        *,
        location: Location | None = None,
    ) -> None:
        super().__init__(
            f"Outline element #{index} <{name}> is the same as element "
            f"#{conflicting_index} in {PI_LABEL}. Outline elements must be unique.",
            location=location,
        )
        self.index = index
        self.conflicting_index = conflicting_index


# -- structure --------------------------------------------------------------


class StructureError(TocContentError):
    pass


class ItemAlreadyOpen(StructureError):
    pass


class UnexpectedEventType(StructureError):
    pass


class NotInOutline(StructureError):
    pass


class NoOpenItem(StructureError):
    pass


class NoOpenDirective(NoOpenItem):
    """Closing instruction without a matching opening instruction."""


class UnmatchedClose(StructureError):
    pass


class ContentOutsideItem(StructureError):
    pass


class UnclosedItem(StructureError):
    pass


class NestedContext(StructureError):
    pass


class UnclosedElement(StructureError):
    pass


class DisallowedDirectiveNesting(StructureError):
    pass


class DirectiveOutsideRoot(StructureError):
    pass


class DirectiveNesting(StructureError):
    pass


# -- internal ---------------------------------------------------------------


class IdSpaceExhausted(TocInternalError):
    pass


class InvariantViolation(TocInternalError):
    pass
