"""Tests for htmltoc.ids."""
from __future__ import annotations

import pytest

from htmltoc.errors import IdSpaceExhausted, TocInternalError
from htmltoc.ids import IdAllocator


class TestIdAllocator:
    def test_fixed_width_sequence(self) -> None:
        ids = IdAllocator()
        assert ids.allocate() == "toc000001"
        assert next(ids) == "toc000002"
        assert ids.issued == 2

    def test_reset_restarts_sequence(self) -> None:
        ids = IdAllocator()
        ids.allocate()
        ids.allocate()
        ids.reset()
        assert ids.allocate() == "toc000001"

    def test_exhaustion_is_internal_error(self) -> None:
        ids = IdAllocator(width=1)
        issued = [ids.allocate() for _ in range(9)]
        assert issued[-1] == "toc9"
        with pytest.raises(IdSpaceExhausted) as exc_info:
            ids.allocate()
        assert isinstance(exc_info.value, TocInternalError)
        # Stays exhausted; never wraps or truncates.
        with pytest.raises(IdSpaceExhausted):
            ids.allocate()
        assert ids.issued == 9

    def test_last_default_width_id(self) -> None:
        ids = IdAllocator()
        for _ in range(999_998):
            ids.allocate()
        assert ids.allocate() == "toc999999"
        with pytest.raises(IdSpaceExhausted):
            ids.allocate()
        assert ids.issued == 999_999

    def test_invalid_width(self) -> None:
        with pytest.raises(ValueError):
            IdAllocator(width=0)
