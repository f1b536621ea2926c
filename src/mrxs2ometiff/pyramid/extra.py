"""Export of non-pyramid series as standalone JPEG files.

The legacy pyramid layout holds a single image, so every further series
(label, macro, ...) is written next to it as ``<output-base>-<series>.jpg``.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from mrxs2ometiff.metadata import MetadataStore
from mrxs2ometiff.output.jpeg_writer import JpegImageWriter
from mrxs2ometiff.source.types import SourceReaderProtocol
from mrxs2ometiff.utils.logging import get_logger

EXTRA_IMAGE_EXTENSION = ".jpg"


def extra_image_path(output_path: Path, series: int) -> Path:
    """Return the export path of a series.

    The last suffix of ``output_path`` is stripped, so ``slide.ome.tiff``
    gives ``slide.ome-1.jpg`` for series 1.
    """
    base = output_path.with_suffix("")
    return base.with_name(f"{base.name}-{series}{EXTRA_IMAGE_EXTENSION}")


class ExtraImageExporter:
    """Writes every series after the first as a flat JPEG."""

    __slots__ = ("_logger", "_quality")

    def __init__(
        self,
        quality: int = 85,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._quality = quality
        self._logger = logger or get_logger(__name__)

    def export(
        self, reader: SourceReaderProtocol, output_path: Path
    ) -> tuple[Path, ...]:
        """Export series ``1..series_count-1`` and return the written paths.

        Each export is described by a fresh single-series metadata store
        built from the series' native dimensions. Only plane 0 is written.
        """
        written: list[Path] = []
        for series in range(1, reader.series_count):
            self._logger.info("writing extra image", series=series)
            info = reader.get_series_info(series)
            store = MetadataStore.for_series(info)
            target = extra_image_path(output_path, series)

            pixels = reader.read_region(series, 0, 0, 0, info.width, info.height)
            JpegImageWriter(target, store, quality=self._quality).save(pixels)
            written.append(target)
        return tuple(written)
