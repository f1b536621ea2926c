"""Pyramid generation.

Key Components:
    - ResolutionPlanner: Computes the generated levels and registers them
    - Downsampler: Box-filters base regions down to any resolution
    - TileScheduler: Streams the raster-ordered tiles of a resolution
    - LegacyPyramidWriter: Single-pyramid BigTIFF plus JPEG extras
    - MultiSeriesPyramidWriter: Multi-series OME-TIFF with SubIFDs
"""

from mrxs2ometiff.pyramid.downsampler import Downsampler, box_downsample
from mrxs2ometiff.pyramid.extra import ExtraImageExporter, extra_image_path
from mrxs2ometiff.pyramid.planner import (
    PYRAMID_SERIES,
    PopulationStrategy,
    ResolutionPlanner,
)
from mrxs2ometiff.pyramid.scheduler import TileScheduler
from mrxs2ometiff.pyramid.writers import (
    LEGACY_COMMENT,
    LegacyPyramidWriter,
    MultiSeriesPyramidWriter,
    PyramidOutput,
    PyramidWriterProtocol,
)

__all__ = [
    "LEGACY_COMMENT",
    "PYRAMID_SERIES",
    "Downsampler",
    "ExtraImageExporter",
    "LegacyPyramidWriter",
    "MultiSeriesPyramidWriter",
    "PopulationStrategy",
    "PyramidOutput",
    "PyramidWriterProtocol",
    "ResolutionPlanner",
    "TileScheduler",
    "box_downsample",
    "extra_image_path",
]
