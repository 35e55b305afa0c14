"""Warning/fatal error sink and user-facing error reports."""
from __future__ import annotations

import logging

log = logging.getLogger("htmltoc")


class ErrorReporter:
    """Logs warnings as they happen and renders the final fatal error.

    In debug mode reports carry the full traceback; otherwise only the
    message is shown.
    """

    def __init__(self, *, debug: bool = False, logger: logging.Logger | None = None) -> None:
        self.debug = debug
        self._log = logger or log
        self.warnings = 0

    def warning(self, exc: Exception) -> None:
        self.warnings += 1
        if self.debug:
            self._log.warning("%s", exc, exc_info=exc)
        else:
            self._log.warning("%s", exc)

    def report(self, legend: str, exc: BaseException, *, subject: object) -> None:
        self._log.error('%s while processing file "%s":', legend, subject)
        if self.debug:
            self._log.error("%s", exc, exc_info=exc)
        else:
            self._log.error("%s", exc)
