"""Source image layer.

Readers expose a slide as series of planes with explicit series, plane and
resolution arguments on every read.

Key Components:
    - SourceReaderProtocol: Interface the pyramid pipeline reads through
    - SeriesInfo: Immutable pixel description of one series
    - OpenSlideReader: Vendor slide formats (MIRAX, Aperio, Hamamatsu, ...)
    - TiffSourceReader: Multi-series TIFF and OME-TIFF
    - open_reader: Picks a reader by file extension

Example:
    from mrxs2ometiff.source import open_reader

    with open_reader("slide.mrxs") as reader:
        info = reader.get_series_info(0)
        region = reader.read_region(0, 0, 0, 0, 512, 512)
"""

from mrxs2ometiff.source.factory import SUPPORTED_EXTENSIONS, open_reader
from mrxs2ometiff.source.openslide_reader import OpenSlideReader
from mrxs2ometiff.source.tiff_reader import TiffSourceReader
from mrxs2ometiff.source.types import SeriesInfo, SourceReaderProtocol

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "OpenSlideReader",
    "SeriesInfo",
    "SourceReaderProtocol",
    "TiffSourceReader",
    "open_reader",
]
