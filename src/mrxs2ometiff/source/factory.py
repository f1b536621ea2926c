"""Reader selection by file extension."""

from __future__ import annotations

from pathlib import Path

from mrxs2ometiff.exceptions import SourceOpenError
from mrxs2ometiff.source.openslide_reader import OPENSLIDE_EXTENSIONS, OpenSlideReader
from mrxs2ometiff.source.tiff_reader import TIFF_EXTENSIONS, TiffSourceReader
from mrxs2ometiff.source.types import SourceReaderProtocol

SUPPORTED_EXTENSIONS: frozenset[str] = OPENSLIDE_EXTENSIONS | TIFF_EXTENSIONS


def open_reader(path: str | Path) -> SourceReaderProtocol:
    """Open a source image with the reader matching its extension.

    TIFF files go to tifffile so that multi-series and multi-plane data keep
    their structure; every other supported format goes to OpenSlide.

    Raises:
        SourceOpenError: If no reader handles the extension or opening fails.
    """
    suffix = Path(path).suffix.lower()
    if suffix in TIFF_EXTENSIONS:
        return TiffSourceReader(path)
    if suffix in OPENSLIDE_EXTENSIONS:
        return OpenSlideReader(path)
    raise SourceOpenError(
        f"Unsupported file extension '{suffix}'. "
        f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}",
        path=path,
    )
