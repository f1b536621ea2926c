"""Resolution planning for generated pyramid levels.

Only series 0 receives generated resolutions. Level ``i`` is
``base // 2**i`` in each dimension; levels that would collapse to zero
pixels are rejected rather than written.
"""

from __future__ import annotations

from enum import Enum

import structlog

from mrxs2ometiff.exceptions import ConfigError
from mrxs2ometiff.metadata import MetadataStore, PixelsDescription
from mrxs2ometiff.source.types import SeriesInfo
from mrxs2ometiff.tiling import PyramidLevel
from mrxs2ometiff.utils.logging import get_logger

PYRAMID_SERIES = 0


class PopulationStrategy(str, Enum):
    """How generated resolutions are registered in the metadata store."""

    legacy = "legacy"  # One full pixels description per resolution
    modern = "modern"  # Width/height appended to the pyramid image


class ResolutionPlanner:
    """Computes and registers the generated pyramid levels.

    Example:
        >>> planner = ResolutionPlanner(2, PopulationStrategy.modern)
        >>> [(lvl.width, lvl.height) for lvl in planner.plan(info)]
        [(4096, 4096), (2048, 2048), (1024, 1024)]
    """

    __slots__ = ("_logger", "_pyramid_resolutions", "_strategy")

    def __init__(
        self,
        pyramid_resolutions: int,
        strategy: PopulationStrategy,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        if pyramid_resolutions < 0:
            raise ValueError(
                f"pyramid_resolutions must be non-negative, got {pyramid_resolutions}"
            )
        self._pyramid_resolutions = pyramid_resolutions
        self._strategy = strategy
        self._logger = logger or get_logger(__name__)

    @property
    def strategy(self) -> PopulationStrategy:
        return self._strategy

    def plan(self, base: SeriesInfo) -> list[PyramidLevel]:
        """Return levels ``0..=pyramid_resolutions`` of the pyramid series.

        Raises:
            ConfigError: If any level would be zero pixels wide or high.
        """
        levels = [
            PyramidLevel.from_base(PYRAMID_SERIES, r, base.width, base.height)
            for r in range(self._pyramid_resolutions + 1)
        ]
        deepest = levels[-1]
        if deepest.width == 0 or deepest.height == 0:
            raise ConfigError(
                f"Cannot generate {self._pyramid_resolutions} resolutions from a "
                f"{base.width}x{base.height} image: resolution {deepest.resolution} "
                f"would be {deepest.width}x{deepest.height}"
            )
        return levels

    def register(self, store: MetadataStore, base: SeriesInfo) -> list[PyramidLevel]:
        """Plan the pyramid and record every generated level in ``store``."""
        levels = self.plan(base)
        for level in levels[1:]:
            if self._strategy is PopulationStrategy.legacy:
                # The legacy container stores each resolution as its own image
                store.set_pixels(
                    level.resolution,
                    PixelsDescription.from_series(base, level.width, level.height),
                )
            else:
                store.add_resolution(
                    PYRAMID_SERIES, level.resolution, level.width, level.height
                )
            self._logger.debug(
                "planned resolution",
                resolution=level.resolution,
                width=level.width,
                height=level.height,
                strategy=self._strategy.value,
            )
        return levels
