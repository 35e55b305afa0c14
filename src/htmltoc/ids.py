"""Fixed-width anchor id allocation (``toc000001``, ``toc000002``, ...)."""
from __future__ import annotations

from htmltoc.errors import IdSpaceExhausted

ID_PREFIX = "toc"
ID_WIDTH = 6


class IdAllocator:
    """Monotonic id source; never truncates, fails once the width is used up."""

    def __init__(self, prefix: str = ID_PREFIX, width: int = ID_WIDTH) -> None:
        if width <= 0:
            raise ValueError(f"width must be > 0, got {width}")
        self._prefix = prefix
        self._width = width
        self._last = 0

    @property
    def issued(self) -> int:
        return self._last

    def allocate(self) -> str:
        digits = str(self._last + 1)
        if len(digits) > self._width:
            raise IdSpaceExhausted(
                f"Too many TOC entries: {digits}, cannot allocate an id",
            )
        self._last += 1
        return self._prefix + digits.zfill(self._width)

    def __iter__(self) -> IdAllocator:
        return self

    def __next__(self) -> str:
        return self.allocate()

    def reset(self) -> None:
        self._last = 0
