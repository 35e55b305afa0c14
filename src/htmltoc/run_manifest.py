"""Run manifests: a JSON sidecar describing one TOC generation run."""
from __future__ import annotations

import subprocess
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from htmltoc.io_utils import load_json, save_json
from htmltoc.transform import TransformResult

MANIFEST_VERSION = "1.0"


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format."""
    return datetime.now(UTC).isoformat()


def generate_run_id(prefix: str = "toc_run") -> str:
    """Generate a compact run id suitable for artifact naming."""
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return f"{prefix}_{ts}_{uuid4().hex[:8]}"


def git_commit_hash(*, search_from: Path | None = None) -> str | None:
    """Best-effort current git commit hash of the input's repository."""
    cwd = (search_from or Path.cwd())
    if cwd.is_file():
        cwd = cwd.parent
    try:
        proc = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return None
    if proc.returncode != 0:
        return None
    out = proc.stdout.strip()
    return out if out else None


def build_manifest(
    *,
    run_id: str,
    input_path: Path,
    encoding: str,
    result: TransformResult | None,
    timings_sec: dict[str, float],
    errors_count: int,
    git_commit: str | None = None,
) -> dict[str, Any]:
    """Build the manifest payload. *result* is ``None`` for failed runs."""
    entries = result.entries if result is not None else ()
    return {
        "manifest_version": MANIFEST_VERSION,
        "created_at": utc_now_iso(),
        "run_id": run_id,
        "input_path": str(input_path),
        "encoding": encoding,
        "git_commit": git_commit,
        "timings_sec": timings_sec,
        "errors_count": int(errors_count),
        "stats": {
            "directives": result.directives if result else 0,
            "events_in": result.events_in if result else 0,
            "events_out": result.events_out if result else 0,
            "warnings": result.warnings if result else 0,
            "entries": len(entries),
        },
        "entries": [
            {
                "id": entry.id,
                "level": entry.level,
                "element": entry.element,
                "text": " ".join(entry.text.split()),
            }
            for entry in entries
        ],
    }


def write_manifest(path: Path, manifest: dict[str, Any]) -> Path:
    save_json(manifest, path, pretty=True)
    return path


def load_manifest(path: Path) -> dict[str, Any]:
    """Load a manifest from JSON."""
    data = load_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"Invalid manifest payload in {path}")
    return data
