#!/usr/bin/env python3
"""Generate the table of contents for one XHTML file.

Usage:
    python3 scripts/process_file.py page.xhtml > page.html
    HTMLTOC_ENCODING=iso-8859-1 python3 scripts/process_file.py -v page.xhtml

The rewritten document goes to stdout; messages go to stderr.

Exit codes:
    0 success, 1 no file argument, 2 extra arguments, 3 file missing or a
    directory, 4 I/O error, 5 content error, -1 internal error, -2 system error.
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from enum import IntEnum
from pathlib import Path
from typing import BinaryIO

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from htmltoc.config import ToolConfig
from htmltoc.errors import TocContentError, TocInternalError
from htmltoc.reporting import ErrorReporter
from htmltoc.run_manifest import build_manifest, generate_run_id, git_commit_hash, write_manifest
from htmltoc.transform import TransformResult, transform_file

log = logging.getLogger("process_file")


class Status(IntEnum):
    OK = 0
    NOARGS = 1
    EXTRAARGS = 2
    NOFILE = 3
    IOERR = 4
    SYNTAX = 5
    INTERNAL = -1
    SYSTEM = -2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Replace TOC processing instructions with a generated table of contents.",
    )
    parser.add_argument("files", nargs="*", type=Path, help="XHTML file to transform")
    parser.add_argument(
        "--encoding",
        help="Character encoding of input and output (default: $HTMLTOC_ENCODING or locale)",
    )
    parser.add_argument(
        "--manifest", type=Path,
        help="Optional JSON path for a run manifest listing the generated entries",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Show debug logging and full tracebacks ($HTMLTOC_DEBUG)",
    )
    return parser


def check_arguments(files: list[Path]) -> Status | None:
    """Validate positional arguments; return a failure status or ``None``."""
    if not files:
        log.error("Please enter location of a file to transform as an argument.")
        return Status.NOARGS
    if len(files) > 1:
        log.error('Cannot process extra argument "%s"', files[1])
        return Status.EXTRAARGS
    if not files[0].exists() or files[0].is_dir():
        log.error('File "%s" does not exist or is a directory', files[0])
        return Status.NOFILE
    return None


def run(
    path: Path,
    config: ToolConfig,
    target: BinaryIO,
    *,
    manifest_path: Path | None = None,
) -> Status:
    reporter = ErrorReporter(debug=config.debug)
    status = Status.OK
    result: TransformResult | None = None
    t0 = time.monotonic()
    try:
        result = transform_file(path, target, config, reporter=reporter)
    except TocInternalError as exc:
        reporter.report("Internal error", exc, subject=path)
        status = Status.INTERNAL
    except TocContentError as exc:
        reporter.report("Data error", exc, subject=path)
        status = Status.SYNTAX
    except OSError as exc:
        reporter.report("Input/output error", exc, subject=path)
        status = Status.IOERR
    except (MemoryError, RecursionError) as exc:
        reporter.report("System error", exc, subject=path)
        status = Status.SYSTEM
    except Exception as exc:
        reporter.report("Internal error", exc, subject=path)
        status = Status.INTERNAL

    if manifest_path is not None:
        manifest = build_manifest(
            run_id=generate_run_id(),
            input_path=path,
            encoding=config.encoding,
            result=result,
            timings_sec={"transform": round(time.monotonic() - t0, 6)},
            errors_count=0 if status is Status.OK else 1,
            git_commit=git_commit_hash(search_from=path),
        )
        try:
            write_manifest(manifest_path, manifest)
        except OSError as exc:
            if status is Status.OK:
                reporter.report("Input/output error", exc, subject=manifest_path)
                status = Status.IOERR
        else:
            log.debug("Wrote run manifest to %s", manifest_path)
    return status


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = ToolConfig.from_env()
        config = config.with_overrides(
            encoding=args.encoding,
            debug=True if args.verbose else None,
        )
    except LookupError as exc:
        logging.basicConfig(format="%(levelname)s %(message)s", stream=sys.stderr)
        log.error("Internal error: %s", exc)
        return Status.INTERNAL

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    status = check_arguments(args.files)
    if status is not None:
        return status

    status = run(args.files[0], config, sys.stdout.buffer, manifest_path=args.manifest)
    try:
        sys.stdout.flush()
    except OSError as exc:
        if status is Status.OK:
            log.error("Input/output error: %s", exc)
            status = Status.IOERR
    return status


if __name__ == "__main__":
    sys.exit(main())
