"""Sequential tiled BigTIFF writer built on tifffile.

Each resolution is handed to tifffile as one lazily evaluated stream of
tiles, so pixels are encoded in the order they are produced and no region
of the file is revisited. The writer checks that tiles, resolutions and
series arrive in that order and rejects anything else.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import imagecodecs
import numpy as np
import structlog
import tifffile

from mrxs2ometiff.exceptions import (
    ConversionError,
    MissingCapabilityError,
    TileWriteError,
)
from mrxs2ometiff.metadata import MetadataStore
from mrxs2ometiff.tiling import PyramidLevel, Tile, TileDescriptor, iter_tile_regions
from mrxs2ometiff.utils.logging import get_logger

if TYPE_CHECKING:
    from types import TracebackType

# tifffile codec name -> imagecodecs codec providing the encoder
_CODEC_PROVIDERS: dict[str, str] = {
    "jpeg2000": "JPEG2K",
    "jpeg": "JPEG8",
    "lzw": "LZW",
    "zlib": "ZLIB",
    "zstd": "ZSTD",
}

# Sample counts written with RGB photometric interpretation
_RGB_SAMPLES = (3, 4)


@dataclass(frozen=True)
class WriterSettings:
    """Options fixed for the whole run before the first tile is written.

    Attributes:
        compression: tifffile codec name, or None for uncompressed.
        ome: Write OME-TIFF (multi-series pyramid) instead of plain TIFF.
        bigtiff: Use 64-bit offsets.
        sequential: Reject out-of-order writes.
    """

    compression: str | None
    ome: bool = True
    bigtiff: bool = True
    sequential: bool = True


@dataclass(frozen=True)
class ImageLayout:
    """Where and how one resolution is stored in the container.

    Attributes:
        image: Metadata store image the resolution belongs to.
        resolution: Resolution index of that image in the store.
        subresolutions: SubIFDs to reserve for the reduced resolutions
            that follow this one.
        reduced: Store as a reduced-resolution SubIFD of the previous image.
        description: ImageDescription text of the first page.
    """

    image: int
    resolution: int = 0
    subresolutions: int = 0
    reduced: bool = False
    description: str | None = None


class TileWriterProtocol(Protocol):
    """Protocol for containers accepting raster-ordered tile streams."""

    def write_resolution(
        self,
        level: PyramidLevel,
        layout: ImageLayout,
        tiles: Iterable[Tile],
        descriptor: TileDescriptor,
    ) -> None:
        """Consume every tile of every plane of one resolution.

        Raises:
            TileWriteError: If tiles are out of order or writing fails.
            MissingCapabilityError: If the configured codec is unavailable.
        """
        ...

    def close(self) -> None:
        """Flush and close the container."""
        ...


def check_codec(compression: str | None) -> None:
    """Ensure the encoder for a tifffile codec name can be constructed.

    Raises:
        MissingCapabilityError: If imagecodecs lacks the encoder.
    """
    if compression is None:
        return
    provider = _CODEC_PROVIDERS.get(compression)
    if provider is None:
        raise MissingCapabilityError(
            f"No encoder known for compression '{compression}'"
        )
    if not getattr(imagecodecs, provider).available:
        raise MissingCapabilityError(
            f"Compression '{compression}' requires the imagecodecs {provider} codec, "
            "which is not available in this installation"
        )


class TiledTiffWriter:
    """Writes pyramid resolutions to a tiled BigTIFF or OME-TIFF.

    Usage:
        settings = WriterSettings(compression="jpeg2000")
        with TiledTiffWriter("out.ome.tiff", store, settings) as writer:
            writer.write_resolution(level, layout, tiles, descriptor)
    """

    __slots__ = (
        "_last_written",
        "_logger",
        "_pending_subresolutions",
        "_path",
        "_settings",
        "_store",
        "_tif",
    )

    def __init__(
        self,
        path: str | Path,
        store: MetadataStore,
        settings: WriterSettings,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Apply the writer settings, then bind the output path.

        Raises:
            MissingCapabilityError: If the codec is unavailable.
            TileWriteError: If the output file cannot be created.
        """
        self._path = Path(path)
        self._store = store
        self._settings = settings
        self._logger = logger or get_logger(__name__)
        self._last_written: tuple[int, int] | None = None
        self._pending_subresolutions = 0
        self._tif: tifffile.TiffWriter | None = None

        check_codec(settings.compression)
        try:
            self._tif = tifffile.TiffWriter(
                self._path, bigtiff=settings.bigtiff, ome=settings.ome
            )
        except OSError as e:
            raise TileWriteError(
                f"Failed to create output: {e}", path=self._path
            ) from e

    @property
    def path(self) -> Path:
        return self._path

    @property
    def store(self) -> MetadataStore:
        return self._store

    def _ensure_open(self) -> tifffile.TiffWriter:
        tif = self._tif
        if tif is None:
            raise TileWriteError("Writer is closed", path=self._path)
        return tif

    def _check_order(self, level: PyramidLevel, layout: ImageLayout) -> None:
        position = (level.series, level.resolution)
        error = None
        if self._last_written is not None and position <= self._last_written:
            error = f"Resolution written after {self._last_written}"
        elif layout.reduced and self._pending_subresolutions == 0:
            error = "Reduced resolution without a reserved SubIFD"
        elif not layout.reduced and self._pending_subresolutions > 0:
            error = (
                f"{self._pending_subresolutions} reserved SubIFDs "
                "not written before the next image"
            )
        if error is not None and self._settings.sequential:
            raise TileWriteError(
                error,
                path=self._path,
                series=level.series,
                resolution=level.resolution,
            )

    def _ordered_tiles(
        self,
        level: PyramidLevel,
        plane_count: int,
        interleaved: bool,
        tiles: Iterator[Tile],
        descriptor: TileDescriptor,
    ) -> Iterator[np.ndarray]:
        """Yield tile pixels, failing on any tile off the raster sequence.

        Planar tiles are interleaved; the container is always contiguous.
        """
        grid = (
            level.width,
            level.height,
            descriptor.tile_width,
            descriptor.tile_height,
        )
        for plane in range(plane_count):
            for x, y, width, height in iter_tile_regions(*grid):
                tile = next(tiles, None)
                if tile is None:
                    raise TileWriteError(
                        f"Tile stream ended before plane {plane} tile at {(x, y)}",
                        path=self._path,
                        series=level.series,
                        resolution=level.resolution,
                    )
                expected = (plane, x, y, width, height)
                got = (tile.plane, tile.x, tile.y, tile.width, tile.height)
                if got != expected:
                    raise TileWriteError(
                        f"Tile out of sequence: expected {expected}, got {got}",
                        path=self._path,
                        series=level.series,
                        resolution=level.resolution,
                    )
                data = tile.data
                if not interleaved and data.ndim == 3:
                    data = np.moveaxis(data, 0, -1)
                # tifffile encodes in native byte order
                native = data.dtype.newbyteorder("=")
                yield np.ascontiguousarray(data, dtype=native)

    def _write_options(
        self,
        level: PyramidLevel,
        layout: ImageLayout,
        descriptor: TileDescriptor,
    ) -> dict[str, Any]:
        pixels = self._store.pixels(layout.image)
        options: dict[str, Any] = {
            "shape": pixels.container_shape(level.width, level.height),
            "dtype": np.dtype(pixels.pixel_type),
            "tile": (descriptor.tile_height, descriptor.tile_width),
            "compression": self._settings.compression,
            "photometric": "rgb" if pixels.samples in _RGB_SAMPLES else "minisblack",
            "description": layout.description,
        }
        if pixels.samples > 1:
            options["planarconfig"] = "contig"
        if layout.subresolutions:
            options["subifds"] = layout.subresolutions
        if not self._settings.ome:
            # Plain TIFF pages carry only the given description
            options["metadata"] = None
        if layout.reduced:
            options["subfiletype"] = 1
        elif self._settings.ome:
            metadata: dict[str, Any] = {"axes": pixels.container_axes}
            if pixels.name:
                metadata["Name"] = pixels.name
            options["metadata"] = metadata
        return options

    def write_resolution(
        self,
        level: PyramidLevel,
        layout: ImageLayout,
        tiles: Iterable[Tile],
        descriptor: TileDescriptor,
    ) -> None:
        """Encode one resolution from a raster-ordered tile stream.

        Args:
            level: Resolution being written.
            layout: Image description and SubIFD placement.
            tiles: Tiles of every plane, planes in increasing order.
            descriptor: Nominal tile grid; becomes the TIFF tile size.

        Raises:
            TileWriteError: If tiles are out of order or tifffile fails.
            MissingCapabilityError: If the codec cannot be loaded.
        """
        tif = self._ensure_open()
        self._check_order(level, layout)

        registered = self._store.resolution_size(layout.image, layout.resolution)
        if registered != (level.width, level.height):
            raise TileWriteError(
                f"Resolution is {level.width}x{level.height} but the metadata "
                f"store registered {registered[0]}x{registered[1]}",
                path=self._path,
                series=level.series,
                resolution=level.resolution,
            )

        tile_iter = iter(tiles)
        pixels = self._store.pixels(layout.image)
        data = self._ordered_tiles(
            level, pixels.plane_count, pixels.interleaved, tile_iter, descriptor
        )
        try:
            tif.write(data, **self._write_options(level, layout, descriptor))
        except ConversionError:
            raise
        except ImportError as e:
            raise MissingCapabilityError(
                f"Codec unavailable: {e}", path=self._path
            ) from e
        except (OSError, ValueError, RuntimeError) as e:
            raise TileWriteError(
                f"Failed to write resolution: {e}",
                path=self._path,
                series=level.series,
                resolution=level.resolution,
            ) from e

        if next(tile_iter, None) is not None:
            raise TileWriteError(
                "Tile outside the resolution grid",
                path=self._path,
                series=level.series,
                resolution=level.resolution,
            )

        if layout.reduced:
            self._pending_subresolutions -= 1
        else:
            self._pending_subresolutions = layout.subresolutions
        self._last_written = (level.series, level.resolution)
        self._logger.debug(
            "resolution written",
            series=level.series,
            resolution=level.resolution,
            width=level.width,
            height=level.height,
        )

    def close(self) -> None:
        """Flush and close the output file."""
        if self._tif is None:
            return
        tif = self._tif
        self._tif = None
        try:
            tif.close()
        except OSError as e:
            raise TileWriteError(
                f"Failed to close output: {e}", path=self._path
            ) from e

    def __enter__(self) -> TiledTiffWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"TiledTiffWriter(path={self._path!r})"
