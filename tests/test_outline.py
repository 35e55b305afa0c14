"""Tests for htmltoc.outline level resolution."""
from __future__ import annotations

import pytest

from htmltoc.directive import Directive
from htmltoc.errors import DuplicateOutlineEntry, EmptyOutline, EmptyOutlineEntry
from htmltoc.events import EventFactory, Location
from htmltoc.outline import (
    DEFAULT_LINE_WRAPPER,
    WrapperSpec,
    resolve_levels,
)


def _directive(
    outline: tuple[str, ...],
    blocks: tuple[str, ...] = ("",),
    lines: tuple[str, ...] = ("",),
) -> Directive:
    return Directive(
        version="1.0",
        outline=outline,
        block_wrappers=blocks,
        line_wrappers=lines,
        opening=True,
        closing=True,
    )


class TestWrapperSpec:
    def test_tag_only(self) -> None:
        assert WrapperSpec.parse("ul") == WrapperSpec("ul", None)

    def test_tag_with_class(self) -> None:
        assert WrapperSpec.parse("ul . toc-list") == WrapperSpec("ul", "toc-list")

    def test_class_keeps_later_dots(self) -> None:
        assert WrapperSpec.parse("li.a.b") == WrapperSpec("li", "a.b")

    def test_empty_tag_means_no_wrapper(self) -> None:
        assert WrapperSpec.parse("") is None
        assert WrapperSpec.parse(".orphan") is None

    def test_start_carries_class_attribute(self) -> None:
        factory = EventFactory()
        start = WrapperSpec("ul", "toc").start(factory)
        assert start.name == "ul"
        assert start.attributes == (("class", "toc"),)
        assert WrapperSpec("ul").start(factory).attributes == ()
        assert WrapperSpec("ul").end(factory).name == "ul"


class TestResolveLevels:
    def test_levels_follow_outline_order(self) -> None:
        levels = resolve_levels(_directive(("h1", "h2", "h3")))
        assert list(levels) == ["h1", "h2", "h3"]
        assert [lv.index for lv in levels.values()] == [0, 1, 2]

    def test_short_wrapper_lists_are_padded_with_defaults(self) -> None:
        levels = resolve_levels(_directive(("h1", "h2"), blocks=("ol.top",), lines=("li",)))
        assert levels["h1"].block_wrapper == WrapperSpec("ol", "top")
        assert levels["h1"].line_wrapper == WrapperSpec("li")
        assert levels["h2"].block_wrapper is None
        assert levels["h2"].line_wrapper == WrapperSpec(DEFAULT_LINE_WRAPPER)

    def test_empty_wrapper_entry_uses_default(self) -> None:
        levels = resolve_levels(_directive(("h1", "h2"), blocks=("", "ul"), lines=("", "p")))
        assert levels["h1"].block_wrapper is None
        assert levels["h1"].line_wrapper == WrapperSpec("div")
        assert levels["h2"].block_wrapper == WrapperSpec("ul")
        assert levels["h2"].line_wrapper == WrapperSpec("p")

    def test_level_helpers_without_block_wrapper(self) -> None:
        level = resolve_levels(_directive(("h1",)))["h1"]
        factory = EventFactory()
        assert level.start_block(factory) is None
        assert level.end_block(factory) is None
        line_start = level.start_line(factory)
        assert line_start is not None and line_start.name == "div"

    def test_empty_outline(self) -> None:
        with pytest.raises(EmptyOutline):
            resolve_levels(_directive(()))

    def test_empty_outline_entry(self) -> None:
        with pytest.raises(EmptyOutlineEntry) as exc_info:
            resolve_levels(_directive(("h1", "", "h3")))
        assert exc_info.value.index == 1

    def test_duplicate_outline_entry(self) -> None:
        loc = Location(offset=10, line=2, column=5)
        with pytest.raises(DuplicateOutlineEntry) as exc_info:
            resolve_levels(_directive(("h1", "h2", "h1")), location=loc)
        assert exc_info.value.index == 2
        assert exc_info.value.conflicting_index == 0
        assert exc_info.value.location == loc
        assert "must be unique" in str(exc_info.value)
