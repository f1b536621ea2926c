"""On-demand downsampling of source regions.

Every generated resolution is computed straight from resolution 0: a region
at resolution ``r`` reads the ``2**r`` times larger base region and
box-filters it. Reads grow quadratically with depth, but rounding never
compounds across levels.
"""

from __future__ import annotations

import numpy as np
import structlog

from mrxs2ometiff.exceptions import FormatError
from mrxs2ometiff.source.types import SourceReaderProtocol
from mrxs2ometiff.tiling import scale_for
from mrxs2ometiff.utils.logging import get_logger


def box_downsample(
    pixels: np.ndarray, scale: int, *, interleaved: bool = True
) -> np.ndarray:
    """Average non-overlapping ``scale x scale`` blocks of a region.

    Args:
        pixels: Region of shape (H, W), (H, W, S) if interleaved, or
            (S, H, W) if not.
        scale: Power-of-two reduction factor. H and W must be multiples of it.
        interleaved: Whether a 3D region has samples on the last axis.

    Returns:
        Array of the same dtype (byte order included) and layout, with
        H and W divided by ``scale``.

    Note:
        Integer types are summed in 64 bits and rounded half up. Floating
        point types are reduced by repeated pairwise halving, so a uniform
        region stays exactly uniform.
    """
    if scale < 1 or scale & (scale - 1):
        raise ValueError(f"scale must be a positive power of two, got {scale}")
    if scale == 1:
        return pixels

    # Normalize to (H, W, S)
    if pixels.ndim == 2:
        work = pixels[:, :, np.newaxis]
    elif interleaved:
        work = pixels
    else:
        work = np.moveaxis(pixels, 0, -1)

    height, width, samples = work.shape
    if height % scale or width % scale:
        raise ValueError(
            f"Region {width}x{height} is not a multiple of scale {scale}"
        )

    dtype = pixels.dtype
    if np.issubdtype(dtype, np.integer):
        count = scale * scale
        unsigned = np.issubdtype(dtype, np.unsignedinteger)
        accumulator = np.uint64 if unsigned else np.int64
        blocks = work.reshape(height // scale, scale, width // scale, scale, samples)
        total = blocks.sum(axis=(1, 3), dtype=accumulator)
        reduced = (total + count // 2) // count
    elif np.issubdtype(dtype, np.floating):
        reduced = work.astype(np.float64)
        while scale > 1:
            top = (reduced[0::2, 0::2] + reduced[0::2, 1::2]) * 0.5
            bottom = (reduced[1::2, 0::2] + reduced[1::2, 1::2]) * 0.5
            reduced = (top + bottom) * 0.5
            scale //= 2
    else:
        raise ValueError(f"Cannot average pixel type {dtype}")

    result = reduced.astype(dtype)
    if pixels.ndim == 2:
        return result[:, :, 0]
    if interleaved:
        return result
    return np.moveaxis(result, -1, 0)


class Downsampler:
    """Produces region pixels for any resolution of a source series.

    Holds no state between calls: the same arguments against an unchanged
    source always give identical pixels.
    """

    __slots__ = ("_logger", "_reader")

    def __init__(
        self,
        reader: SourceReaderProtocol,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._reader = reader
        self._logger = logger or get_logger(__name__)

    def get_region(
        self,
        series: int,
        resolution: int,
        plane: int,
        x: int,
        y: int,
        width: int,
        height: int,
    ) -> np.ndarray:
        """Return a ``width x height`` region at ``resolution``.

        Args:
            series: Source series.
            resolution: Target resolution (0 reads the source directly).
            plane: Plane index.
            x: Left edge in the target resolution's coordinates.
            y: Top edge in the target resolution's coordinates.
            width: Region width at the target resolution.
            height: Region height at the target resolution.

        Raises:
            FormatError: If the pixel type cannot be averaged.
            SourceReadError: If the underlying read fails.
        """
        if resolution == 0:
            region = self._reader.read_region(
                series, plane, x, y, width, height, resolution=0
            )
            return np.asarray(region)

        info = self._reader.get_series_info(series)
        if not (info.is_integer or info.is_floating_point):
            raise FormatError(
                f"Cannot downsample pixel type {info.pixel_type} of series {series}"
            )

        scale = scale_for(resolution)
        full = self.get_region(
            series, 0, plane, x * scale, y * scale, width * scale, height * scale
        )
        self._logger.debug(
            "downsampling region",
            series=series,
            resolution=resolution,
            plane=plane,
            location=(x, y),
            size=(width, height),
        )
        return box_downsample(full, scale, interleaved=info.interleaved)
