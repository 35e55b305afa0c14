"""End-to-end transformation: bytes in, bytes out.

Wires the expat reader, the ``StreamIndexer`` and the ``XmlWriter``. Output
uses the same encoding as the input; characters the encoding cannot carry are
written as character references.
"""
from __future__ import annotations

import io
import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from htmltoc.config import ToolConfig
from htmltoc.events import XmlEvent
from htmltoc.formatter import TocEntry
from htmltoc.indexer import StreamIndexer
from htmltoc.reporting import ErrorReporter
from htmltoc.xml_reader import iter_events, iter_text_events
from htmltoc.xml_writer import XmlWriter, serialize

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransformResult:
    entries: tuple[TocEntry, ...]
    directives: int
    events_in: int
    events_out: int
    warnings: int


class _Counter:
    def __init__(self, events: Iterable[XmlEvent]) -> None:
        self._events = events
        self.count = 0

    def __iter__(self) -> Iterator[XmlEvent]:
        for event in self._events:
            self.count += 1
            yield event


def transform_text(text: str, *, reporter: ErrorReporter | None = None) -> str:
    """Transform an in-memory document and return the rewritten markup."""
    indexer = StreamIndexer()
    return serialize(indexer.transform(iter_text_events(text, reporter=reporter)))


def transform_stream(
    source: BinaryIO,
    target: BinaryIO,
    config: ToolConfig,
    *,
    reporter: ErrorReporter | None = None,
) -> TransformResult:
    """Transform the document in *source*, writing the result to *target*.

    *target* is flushed but left open. A failure while flushing is raised
    only if the transformation itself succeeded.
    """
    reporter = reporter or ErrorReporter(debug=config.debug)
    indexer = StreamIndexer()
    events = _Counter(iter_events(
        source,
        encoding=config.encoding,
        chunk_size=config.chunk_size,
        reporter=reporter,
    ))
    text_out = io.TextIOWrapper(
        target,
        encoding=config.encoding,
        errors="xmlcharrefreplace",
        newline="",
        write_through=True,
    )
    writer = XmlWriter(text_out)
    failed = False
    try:
        writer.write_all(indexer.transform(events))
        writer.flush()
    except BaseException:
        failed = True
        raise
    finally:
        try:
            text_out.detach()
        except (OSError, ValueError) as cleanup_error:
            if not failed:
                raise
            log.debug("Ignoring error while releasing output: %s", cleanup_error)

    log.debug(
        "Transformed %d events into %d, %d TOC entries",
        events.count,
        writer.events_written,
        len(indexer.entries),
    )
    return TransformResult(
        entries=indexer.entries,
        directives=indexer.directives,
        events_in=events.count,
        events_out=writer.events_written,
        warnings=reporter.warnings,
    )


def transform_file(
    path: Path,
    target: BinaryIO,
    config: ToolConfig,
    *,
    reporter: ErrorReporter | None = None,
) -> TransformResult:
    with path.open("rb") as source:
        return transform_stream(source, target, config, reporter=reporter)
