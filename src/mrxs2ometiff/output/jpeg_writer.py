"""Flat single-image JPEG output using Pillow."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image

from mrxs2ometiff.exceptions import FormatError, PyramidIOError
from mrxs2ometiff.metadata import MetadataStore

# JPEG quality bounds (PIL accepts 1-100)
_JPEG_QUALITY_MIN = 1
_JPEG_QUALITY_MAX = 100

# Grayscale and RGB
_JPEG_SAMPLES = (1, 3)


class JpegImageWriter:
    """Writes image 0 of a metadata store as a baseline JPEG.

    Only 8-bit grayscale or RGB pixels can be encoded.
    """

    __slots__ = ("_path", "_quality", "_store")

    def __init__(
        self, path: str | Path, store: MetadataStore, quality: int = 85
    ) -> None:
        if not _JPEG_QUALITY_MIN <= quality <= _JPEG_QUALITY_MAX:
            raise ValueError(
                f"quality must be {_JPEG_QUALITY_MIN}-{_JPEG_QUALITY_MAX}, "
                f"got {quality}"
            )
        self._path = Path(path)
        self._store = store
        self._quality = quality

    @property
    def path(self) -> Path:
        return self._path

    def save(self, pixels: np.ndarray) -> None:
        """Encode one full plane.

        Raises:
            FormatError: If the pixel type or sample count has no JPEG form.
            PyramidIOError: If the file cannot be written.
        """
        description = self._store.pixels(0)
        if (
            description.pixel_type != "uint8"
            or description.samples not in _JPEG_SAMPLES
        ):
            raise FormatError(
                f"JPEG output needs 8-bit grayscale or RGB pixels, got "
                f"{description.samples} x {description.pixel_type}",
                path=self._path,
            )

        if description.samples > 1 and not description.interleaved:
            pixels = np.moveaxis(pixels, 0, -1)
        image = Image.fromarray(np.ascontiguousarray(pixels))

        try:
            image.save(self._path, format="JPEG", quality=self._quality)
        except OSError as e:
            raise PyramidIOError(
                f"Failed to write JPEG: {e}", path=self._path
            ) from e
