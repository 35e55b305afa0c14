"""Parsing of ``<?name.livitski.tools.html.toc ...?>`` processing instructions.

Opening form::

    <?name.livitski.tools.html.toc version="1.0" outline="h1,h2"
      blocktags="ul.toc,ul" linetags="li,li"?>

A trailing ``/`` before ``?>`` closes the directive in the same instruction.
A bare ``<?name.livitski.tools.html.toc /?>`` closes a previously opened one.

Parsing never raises: callers get ``NotApplicable`` for foreign instructions,
``Malformed`` with a reason for broken ones, and ``Parsed`` otherwise.
"""
from __future__ import annotations

from typing import TypeAlias

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from htmltoc.events import ProcessingInstruction

PI_TARGET = "name.livitski.tools.html.toc"
SUPPORTED_VERSION = "1.0"

_HOLDER_ELEMENT = "toc-pi"
_LIST_SEPARATOR_RE = re.compile(r"\s*,\s*")


@dataclass(frozen=True, slots=True)
class Directive:
    """Parsed content of one TOC processing instruction."""

    version: str | None
    outline: tuple[str, ...]
    block_wrappers: tuple[str, ...]
    line_wrappers: tuple[str, ...]
    opening: bool
    closing: bool

    @property
    def self_closing(self) -> bool:
        return self.opening and self.closing


@dataclass(frozen=True, slots=True)
class NotApplicable:
    """Instruction is addressed to some other processor."""


@dataclass(frozen=True, slots=True)
class Malformed:
    reason: str


@dataclass(frozen=True, slots=True)
class Parsed:
    directive: Directive


DirectiveResult: TypeAlias = NotApplicable | Malformed | Parsed


def split_list(value: str) -> tuple[str, ...]:
    """Split a comma-separated attribute, trimming items and keeping empty ones.

    An empty string yields a single empty item, so positional lists such as
    ``blocktags=",ul"`` line up with the outline.
    """
    return tuple(_LIST_SEPARATOR_RE.split(value.strip()))


def is_directive(event: ProcessingInstruction) -> bool:
    return event.target == PI_TARGET


def parse_directive(event: ProcessingInstruction) -> DirectiveResult:
    if not is_directive(event):
        return NotApplicable()
    raw = (event.data or "").strip()
    closing = raw.endswith("/")
    if closing:
        raw = raw[:-1].strip()
    if not raw:
        if not closing:
            return Malformed("Processing instruction contains no data")
        return Parsed(Directive(
            version=None,
            outline=(),
            block_wrappers=(),
            line_wrappers=(),
            opening=False,
            closing=True,
        ))
    return _parse_attributes(raw, closing=closing)


def _parse_attributes(raw: str, *, closing: bool) -> DirectiveResult:
    try:
        holder = ET.fromstring(f"<{_HOLDER_ELEMENT} {raw} />")
    except ET.ParseError as exc:
        return Malformed(f"Invalid attributes in <?{PI_TARGET}?>: {exc}")
    version = holder.get("version")
    if version is None:
        return Malformed(f"Version attribute missing for <?{PI_TARGET}?>")
    if version != SUPPORTED_VERSION:
        return Malformed(f'Unsupported version "{version}" for <?{PI_TARGET}?>')
    outline = holder.get("outline")
    return Parsed(Directive(
        version=version,
        outline=split_list(outline) if outline else (),
        block_wrappers=split_list(holder.get("blocktags") or ""),
        line_wrappers=split_list(holder.get("linetags") or ""),
        opening=True,
        closing=closing,
    ))
