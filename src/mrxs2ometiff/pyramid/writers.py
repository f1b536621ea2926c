"""Pyramid writers for the two output layouts.

Legacy layout:
    One BigTIFF holding only series 0. Every resolution is a top-level
    page, the first page carries the OME-XML description, the file comment
    is patched afterwards, and every further series is exported as a JPEG
    next to the pyramid.

Multi-series layout:
    One OME-TIFF holding every series. Series 0 stores its generated
    resolutions as SubIFDs of the full-resolution page; every other series
    is a single-resolution image.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import structlog
import tifffile

from mrxs2ometiff.config import ConversionConfig
from mrxs2ometiff.exceptions import PyramidIOError
from mrxs2ometiff.metadata import MetadataStore
from mrxs2ometiff.output.tiff_writer import ImageLayout, TiledTiffWriter, WriterSettings
from mrxs2ometiff.pyramid.downsampler import Downsampler
from mrxs2ometiff.pyramid.extra import ExtraImageExporter
from mrxs2ometiff.pyramid.planner import PYRAMID_SERIES, PopulationStrategy
from mrxs2ometiff.pyramid.scheduler import TileScheduler
from mrxs2ometiff.source.types import SourceReaderProtocol
from mrxs2ometiff.tiling import PyramidLevel
from mrxs2ometiff.utils.logging import get_logger

# File comment identifying legacy pyramids
LEGACY_COMMENT = "Faas-mrxs2ometiff"


@dataclass(frozen=True)
class PyramidOutput:
    """Files produced by a pyramid writer.

    Attributes:
        pyramid_path: The tiled pyramid container.
        levels: Resolutions written for the pyramid series.
        extra_images: Standalone images written next to the pyramid.
    """

    pyramid_path: Path
    levels: tuple[PyramidLevel, ...]
    extra_images: tuple[Path, ...] = field(default_factory=tuple)


class PyramidWriterProtocol(Protocol):
    """Protocol for output layouts."""

    @property
    def strategy(self) -> PopulationStrategy:
        """Return how planned resolutions must be registered in the store."""
        ...

    def write(
        self,
        reader: SourceReaderProtocol,
        store: MetadataStore,
        levels: list[PyramidLevel],
    ) -> PyramidOutput:
        """Write the pyramid of a populated metadata store.

        Raises:
            ConversionError: If reading, encoding or writing fails.
        """
        ...


class _BasePyramidWriter:
    __slots__ = ("_config", "_logger")

    def __init__(
        self,
        config: ConversionConfig,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or get_logger(__name__)

    def _scheduler(self, reader: SourceReaderProtocol) -> TileScheduler:
        return TileScheduler(
            Downsampler(reader, logger=self._logger),
            self._config.tile_width,
            self._config.tile_height,
            logger=self._logger,
        )

    def _log_resolution(self, level: PyramidLevel) -> None:
        self._logger.info(
            "writing resolution",
            series=level.series,
            resolution=level.resolution,
            width=level.width,
            height=level.height,
        )


class LegacyPyramidWriter(_BasePyramidWriter):
    """Writes series 0 as a flat list of pages plus JPEG extras."""

    __slots__ = ()

    @property
    def strategy(self) -> PopulationStrategy:
        return PopulationStrategy.legacy

    def write(
        self,
        reader: SourceReaderProtocol,
        store: MetadataStore,
        levels: list[PyramidLevel],
    ) -> PyramidOutput:
        path = self._config.output_path
        scheduler = self._scheduler(reader)
        plane_count = reader.get_series_info(PYRAMID_SERIES).plane_count
        settings = WriterSettings(compression=self._config.codec, ome=False)

        with TiledTiffWriter(path, store, settings, logger=self._logger) as writer:
            for level in levels:
                self._log_resolution(level)
                # Each resolution is its own store image
                layout = ImageLayout(
                    image=level.resolution,
                    description=store.to_ome_xml() if level.resolution == 0 else None,
                )
                scheduler.write_resolution(level, plane_count, writer, layout)

        try:
            tifffile.tiffcomment(path, LEGACY_COMMENT)
        except (OSError, ValueError) as e:
            raise PyramidIOError(f"Failed to set file comment: {e}", path=path) from e

        exporter = ExtraImageExporter(self._config.jpeg_quality, logger=self._logger)
        extra_images = exporter.export(reader, path)
        return PyramidOutput(
            pyramid_path=path, levels=tuple(levels), extra_images=extra_images
        )


class MultiSeriesPyramidWriter(_BasePyramidWriter):
    """Writes every series into one OME-TIFF with SubIFD sub-resolutions."""

    __slots__ = ()

    @property
    def strategy(self) -> PopulationStrategy:
        return PopulationStrategy.modern

    def write(
        self,
        reader: SourceReaderProtocol,
        store: MetadataStore,
        levels: list[PyramidLevel],
    ) -> PyramidOutput:
        path = self._config.output_path
        scheduler = self._scheduler(reader)
        settings = WriterSettings(compression=self._config.codec, ome=True)
        sub_resolutions = len(levels) - 1

        with TiledTiffWriter(path, store, settings, logger=self._logger) as writer:
            for series in range(reader.series_count):
                plane_count = store.pixels(series).plane_count
                if series == PYRAMID_SERIES:
                    series_levels = levels
                else:
                    width, height = store.resolution_size(series, 0)
                    series_levels = [PyramidLevel(series, 0, width, height)]

                for level in series_levels:
                    self._log_resolution(level)
                    first = level.resolution == 0
                    layout = ImageLayout(
                        image=series,
                        resolution=level.resolution,
                        subresolutions=(
                            sub_resolutions
                            if first and series == PYRAMID_SERIES
                            else 0
                        ),
                        reduced=not first,
                    )
                    scheduler.write_resolution(level, plane_count, writer, layout)

        return PyramidOutput(pyramid_path=path, levels=tuple(levels))
