"""Runtime settings read from the environment, overridable by CLI flags."""
from __future__ import annotations

import codecs
import locale
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

from htmltoc.xml_reader import DEFAULT_CHUNK_SIZE

ENCODING_ENV = "HTMLTOC_ENCODING"
DEBUG_ENV = "HTMLTOC_DEBUG"

_TRUTHY = {"1", "true", "yes", "on"}


def default_encoding(environ: Mapping[str, str] | None = None) -> str:
    """Encoding named by ``HTMLTOC_ENCODING``, else the locale's preferred one."""
    env = os.environ if environ is None else environ
    return env.get(ENCODING_ENV) or locale.getpreferredencoding(False)


@dataclass(frozen=True, slots=True)
class ToolConfig:
    encoding: str
    debug: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self) -> None:
        # Raises LookupError for unknown encodings.
        codecs.lookup(self.encoding)
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {self.chunk_size}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ToolConfig:
        env = os.environ if environ is None else environ
        debug = str(env.get(DEBUG_ENV, "")).strip().lower() in _TRUTHY
        return cls(encoding=default_encoding(env), debug=debug)

    def with_overrides(
        self,
        *,
        encoding: str | None = None,
        debug: bool | None = None,
    ) -> ToolConfig:
        return replace(
            self,
            encoding=encoding if encoding else self.encoding,
            debug=self.debug if debug is None else debug,
        )
