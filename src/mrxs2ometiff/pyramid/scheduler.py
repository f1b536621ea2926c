"""Tile scheduling for one resolution.

The tile grid of resolution ``r`` is the configured tile size divided by
``2**r``, so every tile of every level is computed from a base region of
the configured tile size. Tiles are produced lazily in raster order, plane
by plane, and streamed to the writer as it encodes them.
"""

from __future__ import annotations

from collections.abc import Iterator

import structlog

from mrxs2ometiff.output.tiff_writer import ImageLayout, TileWriterProtocol
from mrxs2ometiff.pyramid.downsampler import Downsampler
from mrxs2ometiff.tiling import PyramidLevel, Tile, TileDescriptor, iter_tile_regions
from mrxs2ometiff.utils.logging import get_logger


class TileScheduler:
    """Partitions resolutions into tiles and drives the writer."""

    __slots__ = ("_downsampler", "_logger", "_tile_height", "_tile_width")

    def __init__(
        self,
        downsampler: Downsampler,
        tile_width: int,
        tile_height: int,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        if tile_width <= 0 or tile_height <= 0:
            raise ValueError(
                f"tile size must be positive, got {tile_width}x{tile_height}"
            )
        self._downsampler = downsampler
        self._tile_width = tile_width
        self._tile_height = tile_height
        self._logger = logger or get_logger(__name__)

    def descriptor(self, resolution: int) -> TileDescriptor:
        """Return the nominal tile grid of a resolution."""
        return TileDescriptor.for_resolution(
            self._tile_width, self._tile_height, resolution
        )

    def iter_tiles(self, level: PyramidLevel, plane_count: int) -> Iterator[Tile]:
        """Yield every tile of every plane of a resolution, in write order."""
        descriptor = self.descriptor(level.resolution)
        for plane in range(plane_count):
            self._logger.info(
                "writing plane",
                series=level.series,
                resolution=level.resolution,
                plane=plane,
                plane_count=plane_count,
            )
            for x, y, width, height in iter_tile_regions(
                level.width,
                level.height,
                descriptor.tile_width,
                descriptor.tile_height,
            ):
                data = self._downsampler.get_region(
                    level.series, level.resolution, plane, x, y, width, height
                )
                yield Tile(plane=plane, x=x, y=y, width=width, height=height, data=data)

    def write_resolution(
        self,
        level: PyramidLevel,
        plane_count: int,
        writer: TileWriterProtocol,
        layout: ImageLayout,
    ) -> None:
        """Stream one complete resolution into ``writer``.

        Args:
            level: Resolution to write.
            plane_count: Number of planes of the series.
            writer: Destination container.
            layout: Placement of the resolution in the container.
        """
        writer.write_resolution(
            level,
            layout,
            self.iter_tiles(level, plane_count),
            self.descriptor(level.resolution),
        )
