"""Conversion entry point.

Opens the source, plans the pyramid, and hands the populated metadata store
to the writer for the selected layout. Every handle is closed before an
error propagates.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path

import structlog

from mrxs2ometiff.config import ConversionConfig
from mrxs2ometiff.metadata import MetadataStore
from mrxs2ometiff.pyramid.planner import PYRAMID_SERIES, ResolutionPlanner
from mrxs2ometiff.pyramid.writers import (
    LegacyPyramidWriter,
    MultiSeriesPyramidWriter,
    PyramidWriterProtocol,
)
from mrxs2ometiff.source.factory import open_reader
from mrxs2ometiff.source.types import SourceReaderProtocol
from mrxs2ometiff.tiling import PyramidLevel
from mrxs2ometiff.utils.logging import get_logger

ReaderFactory = Callable[[Path], SourceReaderProtocol]


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a successful conversion.

    Attributes:
        output_path: The pyramid file.
        levels: Resolutions written for series 0.
        series_count: Number of source series.
        extra_images: Standalone JPEGs (legacy layout only).
        legacy: Whether the legacy layout was written.
    """

    output_path: Path
    levels: tuple[PyramidLevel, ...]
    series_count: int
    extra_images: tuple[Path, ...]
    legacy: bool

    @property
    def resolution_count(self) -> int:
        return len(self.levels)


def select_writer(
    config: ConversionConfig,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> PyramidWriterProtocol:
    """Return the pyramid writer for the configured layout."""
    if config.legacy:
        return LegacyPyramidWriter(config, logger=logger)
    return MultiSeriesPyramidWriter(config, logger=logger)


def convert(
    config: ConversionConfig,
    *,
    logger: structlog.stdlib.BoundLogger | None = None,
    reader_factory: ReaderFactory = open_reader,
) -> ConversionResult:
    """Convert ``config.input_path`` into a tiled pyramid.

    Args:
        config: Validated run parameters.
        logger: Logger passed to every component.
        reader_factory: Opens the source; replaced in tests.

    Returns:
        Summary of the files written.

    Raises:
        ConversionError: If the source cannot be read, the pyramid cannot be
            planned, or the output cannot be written.
    """
    log = logger or get_logger(__name__)
    log.info(
        "Starting conversion",
        input=str(config.input_path),
        output=str(config.output_path),
        resolutions=config.pyramid_resolutions,
        tile_size=(config.tile_width, config.tile_height),
        compression=config.compression,
        legacy=config.legacy,
    )

    with closing(reader_factory(config.input_path)) as reader:
        writer = select_writer(config, logger=log)
        store = MetadataStore.from_reader(reader)
        planner = ResolutionPlanner(
            config.pyramid_resolutions, writer.strategy, logger=log
        )
        levels = planner.register(store, reader.get_series_info(PYRAMID_SERIES))
        output = writer.write(reader, store, levels)
        series_count = reader.series_count

    log.info(
        "Conversion complete",
        output=str(output.pyramid_path),
        resolutions=len(output.levels),
        extra_images=len(output.extra_images),
    )
    return ConversionResult(
        output_path=output.pyramid_path,
        levels=output.levels,
        series_count=series_count,
        extra_images=output.extra_images,
        legacy=config.legacy,
    )
