"""Metadata store describing the images written to the output container.

The store holds, per output image, a pixels description and the
(width, height) of each resolution. It is populated from the source reader
and extended by the resolution planner with one of two strategies:

- legacy: every generated resolution becomes its own image with a full
  pixels description (the legacy container has no notion of sub-resolutions);
- modern: generated resolutions are appended to image 0 as sizes only, since
  the OME-TIFF container models the rest.
"""

from __future__ import annotations

from typing import Self

import numpy as np
import tifffile
from pydantic import BaseModel, Field, ValidationError

from mrxs2ometiff.exceptions import FormatError
from mrxs2ometiff.source.types import SeriesInfo, SourceReaderProtocol

DIMENSION_ORDER = "XYCZT"


class PixelsDescription(BaseModel, frozen=True):
    """Pixel layout of one output image at its full resolution.

    Attributes:
        size_x: Width in pixels.
        size_y: Height in pixels.
        plane_count: Number of planes.
        samples: Samples per pixel.
        pixel_type: Byte-order-free numpy type name (e.g. "uint8").
        little_endian: Byte order of the pixel values.
        interleaved: Whether samples are interleaved in source regions.
        dimension_order: Axis order of the planes.
        name: Optional image name.
    """

    size_x: int = Field(..., gt=0, description="Width in pixels")
    size_y: int = Field(..., gt=0, description="Height in pixels")
    plane_count: int = Field(default=1, gt=0)
    samples: int = Field(default=1, gt=0)
    pixel_type: str
    little_endian: bool = True
    interleaved: bool = True
    dimension_order: str = DIMENSION_ORDER
    name: str | None = None

    @classmethod
    def from_series(
        cls,
        info: SeriesInfo,
        width: int | None = None,
        height: int | None = None,
    ) -> Self:
        """Build a description from a source series, optionally resized."""
        return cls(
            size_x=info.width if width is None else width,
            size_y=info.height if height is None else height,
            plane_count=info.plane_count,
            samples=info.samples,
            pixel_type=info.pixel_type,
            little_endian=info.little_endian,
            interleaved=info.interleaved,
            name=info.name,
        )

    @property
    def dtype(self) -> np.dtype:
        """Return the numpy dtype including byte order."""
        return np.dtype(self.pixel_type).newbyteorder(
            "<" if self.little_endian else ">"
        )

    def container_shape(self, width: int, height: int) -> tuple[int, ...]:
        """Return the array shape of this image at the given size.

        Samples are always stored contiguously. A single plane drops the
        plane axis.
        """
        shape: tuple[int, ...] = (height, width)
        if self.samples > 1:
            shape = (*shape, self.samples)
        if self.plane_count > 1:
            shape = (self.plane_count, *shape)
        return shape

    @property
    def container_axes(self) -> str:
        """Return the axes string matching container_shape()."""
        axes = "YX"
        if self.samples > 1:
            axes += "S"
        if self.plane_count > 1:
            axes = "C" + axes
        return axes


class ImageEntry(BaseModel):
    """One image of the store with its resolution sizes."""

    pixels: PixelsDescription
    resolutions: list[tuple[int, int]]


class MetadataStore:
    """Mutable per-run description of the output images.

    Example:
        >>> store = MetadataStore.for_series(info)
        >>> store.add_resolution(0, 1, info.width // 2, info.height // 2)
        >>> store.resolution_count(0)
        2
    """

    __slots__ = ("_images",)

    def __init__(self) -> None:
        self._images: list[ImageEntry] = []

    @classmethod
    def from_reader(cls, reader: SourceReaderProtocol) -> Self:
        """Populate one image per source series at its native size.

        Raises:
            FormatError: If a series has no usable pixel dimensions.
        """
        store = cls()
        for series in range(reader.series_count):
            store.set_pixels(series, _describe(reader.get_series_info(series)))
        return store

    @classmethod
    def for_series(cls, info: SeriesInfo) -> Self:
        """Build a fresh single-image store for one series."""
        store = cls()
        store.set_pixels(0, _describe(info))
        return store

    @property
    def image_count(self) -> int:
        return len(self._images)

    def _entry(self, image: int) -> ImageEntry:
        if image < 0 or image >= len(self._images):
            raise IndexError(
                f"Image {image} out of range [0, {len(self._images) - 1}]"
            )
        return self._images[image]

    def pixels(self, image: int) -> PixelsDescription:
        return self._entry(image).pixels

    def set_pixels(self, image: int, pixels: PixelsDescription) -> None:
        """Set the full description of an image, resetting its resolutions.

        ``image`` may replace an existing image or append one directly after
        the last.
        """
        entry = ImageEntry(
            pixels=pixels, resolutions=[(pixels.size_x, pixels.size_y)]
        )
        if image == len(self._images):
            self._images.append(entry)
        elif 0 <= image < len(self._images):
            self._images[image] = entry
        else:
            raise IndexError(
                f"Image {image} cannot be set; store has {len(self._images)} images"
            )

    def add_resolution(
        self, image: int, resolution: int, width: int, height: int
    ) -> None:
        """Set the size of a resolution of an image.

        Resolutions are registered in order; an existing index is replaced.
        """
        resolutions = self._entry(image).resolutions
        if resolution == len(resolutions):
            resolutions.append((width, height))
        elif 0 <= resolution < len(resolutions):
            resolutions[resolution] = (width, height)
        else:
            raise IndexError(
                f"Resolution {resolution} cannot be set; image {image} has "
                f"{len(resolutions)} resolutions"
            )

    def resolution_count(self, image: int) -> int:
        return len(self._entry(image).resolutions)

    def resolution_size(self, image: int, resolution: int) -> tuple[int, int]:
        """Return (width, height) of a resolution of an image."""
        resolutions = self._entry(image).resolutions
        if resolution < 0 or resolution >= len(resolutions):
            raise IndexError(
                f"Resolution {resolution} out of range [0, {len(resolutions) - 1}]"
            )
        return resolutions[resolution]

    def to_ome_xml(self) -> str:
        """Render every image at full resolution as OME-XML."""
        omexml = tifffile.OmeXml()
        for entry in self._images:
            pixels = entry.pixels
            shape = pixels.container_shape(pixels.size_x, pixels.size_y)
            stored_shape = (
                pixels.plane_count,
                1,
                1,
                pixels.size_y,
                pixels.size_x,
                pixels.samples,
            )
            metadata: dict[str, str] = {"axes": pixels.container_axes}
            if pixels.name:
                metadata["Name"] = pixels.name
            omexml.addimage(
                np.dtype(pixels.pixel_type), shape, stored_shape, **metadata
            )
        return omexml.tostring()


def _describe(info: SeriesInfo) -> PixelsDescription:
    try:
        return PixelsDescription.from_series(info)
    except ValidationError as e:
        raise FormatError(f"Series has no usable pixel dimensions: {e}") from e
