"""Tests for source layer value types."""

from __future__ import annotations

import numpy as np
import pytest

from mrxs2ometiff.source.types import SeriesInfo


def _info(dtype: str) -> SeriesInfo:
    return SeriesInfo(width=40, height=30, plane_count=1, dtype=np.dtype(dtype))


class TestSeriesInfo:
    """Tests for SeriesInfo derived properties."""

    def test_dimensions(self) -> None:
        assert _info("uint8").dimensions == (40, 30)

    @pytest.mark.parametrize(
        ("dtype", "integer", "floating"),
        [
            ("uint8", True, False),
            ("<i2", True, False),
            (">u2", True, False),
            ("float32", False, True),
            (">f8", False, True),
            ("bool", False, False),
            ("complex64", False, False),
        ],
    )
    def test_pixel_kind(self, dtype: str, integer: bool, floating: bool) -> None:
        info = _info(dtype)
        assert info.is_integer is integer
        assert info.is_floating_point is floating

    def test_pixel_type_drops_byte_order(self) -> None:
        info = _info(">u2")
        assert info.pixel_type == "uint16"
        assert info.little_endian is False

    def test_single_byte_types_are_little_endian(self) -> None:
        assert _info("uint8").little_endian is True
