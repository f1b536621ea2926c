"""Output containers.

Key Components:
    - TiledTiffWriter: Sequential tiled BigTIFF / OME-TIFF writer (tifffile)
    - WriterSettings: Options fixed before the first tile is written
    - ImageLayout: Placement of one resolution in the container
    - TileWriterProtocol: Interface the tile scheduler writes through
    - JpegImageWriter: Flat JPEG export of extra series (Pillow)
"""

from mrxs2ometiff.output.jpeg_writer import JpegImageWriter
from mrxs2ometiff.output.tiff_writer import (
    ImageLayout,
    TiledTiffWriter,
    TileWriterProtocol,
    WriterSettings,
    check_codec,
)

__all__ = [
    "ImageLayout",
    "JpegImageWriter",
    "TileWriterProtocol",
    "TiledTiffWriter",
    "WriterSettings",
    "check_codec",
]
