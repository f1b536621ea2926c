"""Pyramid levels, tiles and the tile grid.

Levels and tiles are transient: created per resolution or per tile and discarded
once the writer has consumed them.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np

from mrxs2ometiff.config import PYRAMID_SCALE


def scale_for(resolution: int) -> int:
    """Return the downsample factor of a resolution index."""
    if resolution < 0:
        raise ValueError(f"resolution must be non-negative, got {resolution}")
    return PYRAMID_SCALE**resolution


@dataclass(frozen=True)
class PyramidLevel:
    """One resolution of one series.

    Attributes:
        series: Series index in the source.
        resolution: Resolution index (0 = full size).
        width: Width at this resolution in pixels.
        height: Height at this resolution in pixels.
    """

    series: int
    resolution: int
    width: int
    height: int

    @property
    def scale(self) -> int:
        """Return the downsample factor relative to resolution 0."""
        return scale_for(self.resolution)

    @classmethod
    def from_base(
        cls,
        series: int,
        resolution: int,
        base_width: int,
        base_height: int,
    ) -> PyramidLevel:
        """Derive a level from the full-resolution size by truncating division."""
        scale = scale_for(resolution)
        return cls(
            series=series,
            resolution=resolution,
            width=base_width // scale,
            height=base_height // scale,
        )


@dataclass(frozen=True)
class TileDescriptor:
    """Nominal tile grid of one resolution.

    Edge tiles may be smaller than the nominal size; the descriptor always
    states the full grid size.
    """

    tile_width: int
    tile_height: int

    @classmethod
    def for_resolution(
        cls, tile_width: int, tile_height: int, resolution: int
    ) -> TileDescriptor:
        scale = scale_for(resolution)
        return cls(tile_width=tile_width // scale, tile_height=tile_height // scale)


@dataclass(frozen=True)
class Tile:
    """A clipped rectangle of one plane and its pixels."""

    plane: int
    x: int
    y: int
    width: int
    height: int
    data: np.ndarray = field(compare=False, repr=False)


def iter_tile_regions(
    width: int, height: int, tile_width: int, tile_height: int
) -> Iterator[tuple[int, int, int, int]]:
    """Yield (x, y, width, height) of a raster-ordered tile grid.

    Rows run top to bottom and tiles left to right within a row. Tiles on
    the right and bottom edges are clipped to the plane; together the tiles
    cover the plane exactly once.
    """
    if tile_width <= 0 or tile_height <= 0:
        raise ValueError(
            f"tile size must be positive, got {tile_width}x{tile_height}"
        )
    for y in range(0, height, tile_height):
        tile_h = min(tile_height, height - y)
        for x in range(0, width, tile_width):
            yield (x, y, min(tile_width, width - x), tile_h)
