"""Source reader wrapping OpenSlide.

Series 0 is the slide itself. Every associated image OpenSlide reports
(label, macro, thumbnail, ...) becomes one further series, in name order.
All series are single-plane, interleaved 8-bit RGB.
"""

from __future__ import annotations

import ctypes
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import openslide

from mrxs2ometiff.exceptions import FormatError, SourceOpenError, SourceReadError
from mrxs2ometiff.source.types import SeriesInfo

if TYPE_CHECKING:
    from types import TracebackType

# Slide formats handed to OpenSlide (case-insensitive)
OPENSLIDE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".mrxs",  # 3DHISTECH MIRAX
        ".svs",  # Aperio
        ".svslide",  # Aperio SVS (alternate)
        ".ndpi",  # Hamamatsu
        ".vms",  # Hamamatsu VMS
        ".vmu",  # Hamamatsu VMU
        ".scn",  # Leica SCN
        ".bif",  # Ventana BIF
    }
)

_RGB_SAMPLES = 3


class OpenSlideReader:
    """Reader for whole slide images using OpenSlide.

    Usage:
        with OpenSlideReader("/path/to/slide.mrxs") as reader:
            info = reader.get_series_info(0)
            region = reader.read_region(0, 0, 1000, 2000, 512, 512)

    Attributes:
        path: Path to the opened slide.
    """

    __slots__ = ("_associated", "_associated_names", "_path", "_slide")

    def __init__(self, path: str | Path) -> None:
        """Open a slide file.

        Args:
            path: Path to the slide.

        Raises:
            SourceOpenError: If the file doesn't exist, has an unsupported
                extension, or cannot be opened by OpenSlide.
        """
        self._path = Path(path).resolve()
        self._associated: dict[str, np.ndarray] = {}
        self._slide: openslide.OpenSlide | None

        if not self._path.exists():
            raise SourceOpenError("File not found", path=self._path)

        suffix = self._path.suffix.lower()
        if suffix not in OPENSLIDE_EXTENSIONS:
            raise SourceOpenError(
                f"Unsupported file extension '{suffix}'. "
                f"Supported: {', '.join(sorted(OPENSLIDE_EXTENSIONS))}",
                path=self._path,
            )

        try:
            self._slide = openslide.OpenSlide(str(self._path))
        except openslide.OpenSlideError as e:
            raise SourceOpenError(
                f"Failed to open slide: {e}",
                path=self._path,
            ) from e

        self._associated_names = tuple(sorted(self._slide.associated_images))

    @property
    def path(self) -> Path:
        """Return the path to the slide file."""
        return self._path

    @property
    def series_count(self) -> int:
        """Return the slide plus the number of associated images."""
        return 1 + len(self._associated_names)

    def _ensure_open(self) -> openslide.OpenSlide:
        slide = self._slide
        if slide is None:
            raise SourceReadError("Slide is closed", path=self._path)
        return slide

    def _check_series(self, series: int) -> None:
        if series < 0 or series >= self.series_count:
            raise FormatError(
                f"Series {series} out of range [0, {self.series_count - 1}]",
                path=self._path,
            )

    def _associated_image(self, series: int) -> np.ndarray:
        """Decode (once) and return an associated image as an RGB array."""
        name = self._associated_names[series - 1]
        cached = self._associated.get(name)
        if cached is not None:
            return cached

        slide = self._ensure_open()
        try:
            image = slide.associated_images[name].convert("RGB")
        except openslide.OpenSlideError as e:
            raise SourceReadError(
                f"Failed to decode associated image '{name}': {e}",
                path=self._path,
                series=series,
            ) from e
        pixels = np.asarray(image)
        self._associated[name] = pixels
        return pixels

    def get_series_info(self, series: int) -> SeriesInfo:
        """Describe the slide (series 0) or an associated image."""
        self._check_series(series)
        slide = self._ensure_open()

        if series == 0:
            width, height = slide.dimensions
            return SeriesInfo(
                width=width,
                height=height,
                plane_count=1,
                dtype=np.dtype(np.uint8),
                samples=_RGB_SAMPLES,
                interleaved=True,
                resolution_count=slide.level_count,
                name=slide.properties.get(openslide.PROPERTY_NAME_VENDOR),
            )

        pixels = self._associated_image(series)
        height, width = pixels.shape[:2]
        return SeriesInfo(
            width=width,
            height=height,
            plane_count=1,
            dtype=np.dtype(np.uint8),
            samples=_RGB_SAMPLES,
            interleaved=True,
            resolution_count=1,
            name=self._associated_names[series - 1],
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
        """Read an RGB region of the slide or of an associated image.

        For the slide, ``x`` and ``y`` are in the coordinates of
        ``resolution`` and are translated to OpenSlide's Level-0 location.

        Raises:
            SourceReadError: If the request is out of bounds or OpenSlide
                fails to decode it.
        """
        self._check_series(series)
        slide = self._ensure_open()
        context = {
            "series": series,
            "plane": plane,
            "location": (x, y),
            "size": (width, height),
        }

        if plane != 0:
            raise SourceReadError(
                f"Invalid plane {plane}. Slides have a single RGB plane.",
                path=self._path,
                **context,
            )
        if width <= 0 or height <= 0:
            raise SourceReadError(
                f"Invalid size {(width, height)}. Width and height must be positive.",
                path=self._path,
                **context,
            )
        if x < 0 or y < 0:
            raise SourceReadError(
                f"Invalid location {(x, y)}. Coordinates must be non-negative.",
                path=self._path,
                **context,
            )

        if series > 0:
            if resolution != 0:
                raise SourceReadError(
                    f"Invalid resolution {resolution}. "
                    "Associated images have a single resolution.",
                    path=self._path,
                    **context,
                )
            pixels = self._associated_image(series)
            if y + height > pixels.shape[0] or x + width > pixels.shape[1]:
                raise SourceReadError(
                    "Region exceeds image bounds", path=self._path, **context
                )
            return pixels[y : y + height, x : x + width]

        if resolution < 0 or resolution >= slide.level_count:
            raise SourceReadError(
                f"Invalid resolution {resolution}. "
                f"Must be in range [0, {slide.level_count - 1}]",
                path=self._path,
                **context,
            )
        level_width, level_height = slide.level_dimensions[resolution]
        if x + width > level_width or y + height > level_height:
            raise SourceReadError(
                "Region exceeds image bounds", path=self._path, **context
            )

        downsample = slide.level_downsamples[resolution]
        location = (round(x * downsample), round(y * downsample))
        try:
            # OpenSlide.read_region returns RGBA, convert to RGB
            rgba_image = slide.read_region(location, resolution, (width, height))
        except (openslide.OpenSlideError, ctypes.ArgumentError) as e:
            raise SourceReadError(
                f"Failed to read region: {e}",
                path=self._path,
                **context,
            ) from e
        return np.asarray(rgba_image.convert("RGB"))

    def close(self) -> None:
        """Close the slide and release resources."""
        self._associated.clear()
        if self._slide is None:
            return
        self._slide.close()
        self._slide = None

    def __enter__(self) -> OpenSlideReader:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and close the slide."""
        self.close()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"OpenSlideReader(path={self._path!r})"
