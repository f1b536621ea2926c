"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence

import numpy as np
import pytest

from mrxs2ometiff.config import Settings
from mrxs2ometiff.exceptions import FormatError, SourceReadError
from mrxs2ometiff.source.types import SeriesInfo
from mrxs2ometiff.utils.logging import configure_logging


class ArrayReader:
    """In-memory source reader backed by numpy arrays.

    Each series is a sequence of planes. A plane is ``(H, W)``,
    ``(H, W, S)`` or, with ``interleaved=False``, ``(S, H, W)``.
    """

    def __init__(
        self,
        series: Sequence[Sequence[np.ndarray]],
        *,
        interleaved: bool = True,
        names: Sequence[str | None] | None = None,
    ) -> None:
        self._series = [[np.asarray(plane) for plane in planes] for planes in series]
        self._interleaved = interleaved
        self._names = list(names) if names is not None else [None] * len(series)
        self.reads: list[tuple[int, int, int, int, int, int]] = []
        self.closed = False

    @property
    def series_count(self) -> int:
        return len(self._series)

    def get_series_info(self, series: int) -> SeriesInfo:
        if series < 0 or series >= len(self._series):
            raise FormatError(f"Series {series} out of range")
        plane = self._series[series][0]
        if plane.ndim == 2:
            height, width = plane.shape
            samples = 1
        elif self._interleaved:
            height, width, samples = plane.shape
        else:
            samples, height, width = plane.shape
        return SeriesInfo(
            width=width,
            height=height,
            plane_count=len(self._series[series]),
            dtype=plane.dtype,
            samples=samples,
            interleaved=self._interleaved,
            name=self._names[series],
        )

    def read_region(
        self,
        series: int,
        plane: int,
        x: int,
        y: int,
        width: int,
        height: int,
        resolution: int = 0,
    ) -> np.ndarray:
        if resolution != 0:
            raise SourceReadError("Only resolution 0 is stored", series=series)
        info = self.get_series_info(series)
        if x < 0 or y < 0 or x + width > info.width or y + height > info.height:
            raise SourceReadError(
                "Region exceeds image bounds",
                series=series,
                plane=plane,
                location=(x, y),
                size=(width, height),
            )
        self.reads.append((series, plane, x, y, width, height))
        pixels = self._series[series][plane]
        if pixels.ndim == 3 and not self._interleaved:
            return pixels[:, y : y + height, x : x + width].copy()
        return pixels[y : y + height, x : x + width].copy()

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_reader() -> Callable[..., ArrayReader]:
    """Factory for in-memory source readers."""
    return ArrayReader


@pytest.fixture
def rgb_reader() -> ArrayReader:
    """A 64x48 RGB slide with a 20x10 label series."""
    rng = np.random.default_rng(1234)
    slide = rng.integers(0, 256, size=(48, 64, 3), dtype=np.uint8)
    label = np.full((10, 20, 3), 200, dtype=np.uint8)
    return ArrayReader([[slide], [label]], names=["slide", "label"])


@pytest.fixture
def test_settings() -> Settings:
    """Create a Settings instance with test-safe defaults."""
    return Settings(
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
        TILE_WIDTH=64,
        TILE_HEIGHT=64,
        COMPRESSION="Uncompressed",
    )


@pytest.fixture
def configure_test_logging() -> Iterator[None]:
    """Configure logging for tests with console output."""
    configure_logging(level="DEBUG", log_format="console")
    yield
