"""Type definitions for the source image layer.

A source is a container of one or more series. Each series has one or more
planes, and every read names its series, plane and resolution explicitly.
Resolution 0 is the full-resolution image.
"""

from dataclasses import dataclass
from typing import Protocol

import numpy as np


@dataclass(frozen=True)
class SeriesInfo:
    """Immutable pixel description of one series.

    Attributes:
        width: Width of resolution 0 in pixels.
        height: Height of resolution 0 in pixels.
        plane_count: Number of 2D planes (channels, z-sections, timepoints).
        dtype: Pixel type. Carries bit depth, signedness, floating-point-ness
            and byte order.
        samples: Samples per pixel (3 for RGB, 1 for grayscale).
        interleaved: True if samples are the last axis of a region array.
        resolution_count: Number of resolutions natively stored in the source.
        name: Optional series name (e.g. "label" or "macro").
    """

    width: int
    height: int
    plane_count: int
    dtype: np.dtype
    samples: int = 1
    interleaved: bool = True
    resolution_count: int = 1
    name: str | None = None

    @property
    def dimensions(self) -> tuple[int, int]:
        """Return resolution 0 dimensions as (width, height)."""
        return (self.width, self.height)

    @property
    def little_endian(self) -> bool:
        """Return True if pixel values are stored little-endian."""
        byteorder = self.dtype.byteorder
        if byteorder == "=":
            return np.little_endian
        return byteorder in ("<", "|")

    @property
    def is_integer(self) -> bool:
        """Return True for signed or unsigned integer pixel types."""
        return np.issubdtype(self.dtype, np.integer)

    @property
    def is_floating_point(self) -> bool:
        """Return True for floating-point pixel types."""
        return np.issubdtype(self.dtype, np.floating)

    @property
    def pixel_type(self) -> str:
        """Return the byte-order-free pixel type name (e.g. "uint16")."""
        return self.dtype.name


class SourceReaderProtocol(Protocol):
    """Protocol defining the interface for source readers.

    This protocol allows for dependency injection and testing with
    in-memory implementations.
    """

    @property
    def series_count(self) -> int:
        """Return the number of series in the source."""
        ...

    def get_series_info(self, series: int) -> SeriesInfo:
        """Return the pixel description of a series.

        Raises:
            FormatError: If the series does not exist or cannot be described.
        """
        ...

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
        """Read a rectangular region of one plane.

        Args:
            series: Series index.
            plane: Plane index within the series.
            x: Left edge in the coordinates of ``resolution``.
            y: Top edge in the coordinates of ``resolution``.
            width: Region width in pixels.
            height: Region height in pixels.
            resolution: Native resolution to read from (0 = full size).

        Returns:
            Array of shape (height, width), (height, width, samples) if the
            series is interleaved, or (samples, height, width) if not.

        Raises:
            SourceReadError: If the read operation fails.
        """
        ...

    def close(self) -> None:
        """Close the source and release resources."""
        ...
