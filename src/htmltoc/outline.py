"""Outline resolution: directive lists -> ordered ``Level`` descriptors."""
from __future__ import annotations

import re
from dataclasses import dataclass

from htmltoc.directive import Directive
from htmltoc.errors import DuplicateOutlineEntry, EmptyOutline, EmptyOutlineEntry
from htmltoc.events import EndElement, EventFactory, Location, StartElement

CLASS_DELIMITER_RE = re.compile(r"\s*\.\s*")
CLASS_ATTR = "class"

# Empty block wrapper means no grouping element around a level's entries.
DEFAULT_BLOCK_WRAPPER = ""
DEFAULT_LINE_WRAPPER = "div"


@dataclass(frozen=True, slots=True)
class WrapperSpec:
    """Generated wrapper element with an optional CSS class."""

    element: str
    css_class: str | None = None

    @classmethod
    def parse(cls, spec: str) -> WrapperSpec | None:
        """Parse ``tag[.class]``; an empty tag part means no wrapper."""
        parts = CLASS_DELIMITER_RE.split(spec.strip(), maxsplit=1)
        if not parts[0]:
            return None
        return cls(element=parts[0], css_class=parts[1] if len(parts) > 1 else None)

    def start(self, factory: EventFactory) -> StartElement:
        attrs = {CLASS_ATTR: self.css_class} if self.css_class is not None else None
        return factory.start_element(self.element, attrs)

    def end(self, factory: EventFactory) -> EndElement:
        return factory.end_element(self.element)


@dataclass(frozen=True, slots=True)
class Level:
    index: int
    indexable: str
    block_wrapper: WrapperSpec | None
    line_wrapper: WrapperSpec | None

    def start_block(self, factory: EventFactory) -> StartElement | None:
        return self.block_wrapper.start(factory) if self.block_wrapper else None

    def end_block(self, factory: EventFactory) -> EndElement | None:
        return self.block_wrapper.end(factory) if self.block_wrapper else None

    def start_line(self, factory: EventFactory) -> StartElement | None:
        return self.line_wrapper.start(factory) if self.line_wrapper else None

    def end_line(self, factory: EventFactory) -> EndElement | None:
        return self.line_wrapper.end(factory) if self.line_wrapper else None


def resolve_levels(
    directive: Directive,
    *,
    location: Location | None = None,
) -> dict[str, Level]:
    """Build the element-name -> Level mapping for an opening directive.

    Wrapper lists shorter than the outline are padded; empty entries fall back
    to ``DEFAULT_BLOCK_WRAPPER`` / ``DEFAULT_LINE_WRAPPER``. Insertion order of
    the returned dict follows the outline.
    """
    if not directive.outline:
        raise EmptyOutline(location=location)
    levels: dict[str, Level] = {}
    for index, indexable in enumerate(directive.outline):
        if not indexable:
            raise EmptyOutlineEntry(index, location=location)
        conflicting = levels.get(indexable)
        if conflicting is not None:
            raise DuplicateOutlineEntry(
                index, conflicting.index, indexable, location=location,
            )
        block_spec = _entry(directive.block_wrappers, index) or DEFAULT_BLOCK_WRAPPER
        line_spec = _entry(directive.line_wrappers, index) or DEFAULT_LINE_WRAPPER
        levels[indexable] = Level(
            index=index,
            indexable=indexable,
            block_wrapper=WrapperSpec.parse(block_spec),
            line_wrapper=WrapperSpec.parse(line_spec),
        )
    return levels


def _entry(specs: tuple[str, ...], index: int) -> str:
    return specs[index] if index < len(specs) else ""
