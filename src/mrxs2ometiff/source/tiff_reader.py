"""Source reader for TIFF and OME-TIFF files using tifffile.

Each tifffile series is one source series and each page of a series is one
plane. Pages may be grayscale ``(Y, X)``, contiguous ``(Y, X, S)`` or
planar-separate ``(S, Y, X)``. Native pyramid levels are exposed as
resolutions.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import tifffile

from mrxs2ometiff.exceptions import FormatError, SourceOpenError, SourceReadError
from mrxs2ometiff.source.types import SeriesInfo

if TYPE_CHECKING:
    from types import TracebackType

TIFF_EXTENSIONS: frozenset[str] = frozenset({".tif", ".tiff"})

# Planes larger than this are decoded into a temporary memory-mapped file
_MEMMAP_THRESHOLD_BYTES = 1 << 30


class TiffSourceReader:
    """Reader for multi-series TIFF files.

    Decoding is done a whole page at a time. The most recently decoded
    page is kept so that consecutive tiles of one plane decode it once.

    Usage:
        with TiffSourceReader("/path/to/image.ome.tiff") as reader:
            for series in range(reader.series_count):
                info = reader.get_series_info(series)
    """

    __slots__ = ("_cached_key", "_cached_plane", "_path", "_tif")

    def __init__(self, path: str | Path) -> None:
        """Open a TIFF file.

        Raises:
            SourceOpenError: If the file doesn't exist, has an unsupported
                extension, or is not a readable TIFF.
        """
        self._path = Path(path).resolve()
        self._cached_key: tuple[int, int, int] | None = None
        self._cached_plane: np.ndarray | None = None
        self._tif: tifffile.TiffFile | None

        if not self._path.exists():
            raise SourceOpenError("File not found", path=self._path)

        suffix = self._path.suffix.lower()
        if suffix not in TIFF_EXTENSIONS:
            raise SourceOpenError(
                f"Unsupported file extension '{suffix}'. "
                f"Supported: {', '.join(sorted(TIFF_EXTENSIONS))}",
                path=self._path,
            )

        try:
            self._tif = tifffile.TiffFile(self._path)
        except (tifffile.TiffFileError, OSError) as e:
            raise SourceOpenError(f"Failed to open TIFF: {e}", path=self._path) from e

        if not self._tif.series:
            self.close()
            raise SourceOpenError("TIFF contains no image series", path=self._path)

    @property
    def path(self) -> Path:
        """Return the path to the TIFF file."""
        return self._path

    def _ensure_open(self) -> tifffile.TiffFile:
        tif = self._tif
        if tif is None:
            raise SourceReadError("TIFF is closed", path=self._path)
        return tif

    @property
    def series_count(self) -> int:
        return len(self._ensure_open().series)

    def _series(self, series: int) -> tifffile.TiffPageSeries:
        tif = self._ensure_open()
        if series < 0 or series >= len(tif.series):
            raise FormatError(
                f"Series {series} out of range [0, {len(tif.series) - 1}]",
                path=self._path,
            )
        return tif.series[series]

    def get_series_info(self, series: int) -> SeriesInfo:
        """Describe a series from its first page.

        Raises:
            FormatError: If the page layout cannot be expressed as planes.
        """
        tiff_series = self._series(series)
        page = tiff_series.keyframe
        shape = page.shape
        samples = page.samplesperpixel

        if samples == 1 and len(shape) == 2:
            height, width = shape
            interleaved = True
        elif samples > 1 and page.planarconfig == tifffile.PLANARCONFIG.CONTIG:
            height, width = shape[-3:-1]
            interleaved = True
        elif samples > 1 and page.planarconfig == tifffile.PLANARCONFIG.SEPARATE:
            height, width = shape[-2:]
            interleaved = False
        else:
            raise FormatError(
                f"Unsupported page shape {shape} in series {series}",
                path=self._path,
            )

        if page.imagedepth > 1:
            raise FormatError(
                f"Volumetric tiles are not supported (series {series})",
                path=self._path,
            )

        return SeriesInfo(
            width=width,
            height=height,
            plane_count=len(tiff_series.pages),
            dtype=page.dtype,
            samples=samples,
            interleaved=interleaved,
            resolution_count=len(tiff_series.levels),
            name=tiff_series.name or None,
        )

    def _load_plane(self, series: int, plane: int, resolution: int) -> np.ndarray:
        key = (series, plane, resolution)
        if self._cached_key == key and self._cached_plane is not None:
            return self._cached_plane

        tif = self._ensure_open()
        level = self._series(series).levels[resolution]
        out = None
        if level.keyframe.nbytes > _MEMMAP_THRESHOLD_BYTES:
            out = "memmap"
        try:
            pixels = tif.asarray(series=series, level=resolution, key=plane, out=out)
        except (tifffile.TiffFileError, OSError, ValueError) as e:
            raise SourceReadError(
                f"Failed to decode plane: {e}",
                path=self._path,
                series=series,
                plane=plane,
            ) from e

        self._cached_key = key
        self._cached_plane = pixels
        return pixels

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
        """Read a region of one page.

        Raises:
            SourceReadError: If the request is out of bounds or decoding fails.
        """
        info = self.get_series_info(series)
        context = {
            "series": series,
            "plane": plane,
            "location": (x, y),
            "size": (width, height),
        }

        if plane < 0 or plane >= info.plane_count:
            raise SourceReadError(
                f"Invalid plane {plane}. Must be in range [0, {info.plane_count - 1}]",
                path=self._path,
                **context,
            )
        if resolution < 0 or resolution >= info.resolution_count:
            raise SourceReadError(
                f"Invalid resolution {resolution}. "
                f"Must be in range [0, {info.resolution_count - 1}]",
                path=self._path,
                **context,
            )
        if width <= 0 or height <= 0 or x < 0 or y < 0:
            raise SourceReadError(
                "Invalid region. Size must be positive and location non-negative.",
                path=self._path,
                **context,
            )

        pixels = self._load_plane(series, plane, resolution)
        if info.interleaved:
            plane_height, plane_width = pixels.shape[:2]
        else:
            plane_height, plane_width = pixels.shape[1:3]
        if x + width > plane_width or y + height > plane_height:
            raise SourceReadError(
                "Region exceeds image bounds", path=self._path, **context
            )

        if info.interleaved:
            return pixels[y : y + height, x : x + width]
        return pixels[:, y : y + height, x : x + width]

    def close(self) -> None:
        """Close the TIFF file and drop the decoded plane."""
        self._cached_key = None
        self._cached_plane = None
        if self._tif is None:
            return
        self._tif.close()
        self._tif = None

    def __enter__(self) -> TiffSourceReader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"TiffSourceReader(path={self._path!r})"
