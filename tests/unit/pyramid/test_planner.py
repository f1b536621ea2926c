"""Tests for resolution planning."""

from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from mrxs2ometiff.exceptions import ConfigError
from mrxs2ometiff.metadata import MetadataStore
from mrxs2ometiff.pyramid.planner import PopulationStrategy, ResolutionPlanner
from mrxs2ometiff.source.types import SeriesInfo


def _info(width: int, height: int) -> SeriesInfo:
    return SeriesInfo(
        width=width,
        height=height,
        plane_count=2,
        dtype=np.dtype(np.uint16),
        samples=1,
        name="slide",
    )


class TestPlan:
    """Tests for ResolutionPlanner.plan()."""

    def test_levels_halve_each_step(self) -> None:
        planner = ResolutionPlanner(2, PopulationStrategy.modern)
        levels = planner.plan(_info(4096, 4096))
        assert [(lvl.width, lvl.height) for lvl in levels] == [
            (4096, 4096),
            (2048, 2048),
            (1024, 1024),
        ]
        assert [lvl.resolution for lvl in levels] == [0, 1, 2]
        assert all(lvl.series == 0 for lvl in levels)

    def test_zero_resolutions_plans_base_only(self) -> None:
        levels = ResolutionPlanner(0, PopulationStrategy.modern).plan(_info(10, 10))
        assert len(levels) == 1

    def test_collapsing_level_rejected(self) -> None:
        planner = ResolutionPlanner(3, PopulationStrategy.modern)
        with pytest.raises(ConfigError, match="resolution 3 would be 12x0"):
            planner.plan(_info(100, 7))

    def test_negative_resolutions_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            ResolutionPlanner(-1, PopulationStrategy.legacy)

    @given(
        width=st.integers(min_value=1, max_value=1_000_000),
        height=st.integers(min_value=1, max_value=1_000_000),
        resolutions=st.integers(min_value=0, max_value=8),
    )
    def test_level_sizes_are_truncated_halvings(
        self, width: int, height: int, resolutions: int
    ) -> None:
        planner = ResolutionPlanner(resolutions, PopulationStrategy.modern)
        if min(width, height) >> resolutions == 0:
            with pytest.raises(ConfigError):
                planner.plan(_info(width, height))
            return
        for i, level in enumerate(planner.plan(_info(width, height))):
            assert (level.width, level.height) == (width // 2**i, height // 2**i)


class TestRegister:
    """Tests for ResolutionPlanner.register()."""

    def test_modern_appends_resolution_sizes(self) -> None:
        info = _info(1000, 600)
        store = MetadataStore.for_series(info)
        ResolutionPlanner(2, PopulationStrategy.modern).register(store, info)

        assert store.image_count == 1
        assert store.resolution_count(0) == 3
        assert store.resolution_size(0, 2) == (250, 150)

    def test_legacy_adds_one_image_per_resolution(self) -> None:
        info = _info(1000, 600)
        store = MetadataStore.for_series(info)
        ResolutionPlanner(2, PopulationStrategy.legacy).register(store, info)

        assert store.image_count == 3
        assert store.resolution_count(0) == 1
        pixels = store.pixels(1)
        assert (pixels.size_x, pixels.size_y) == (500, 300)
        assert pixels.pixel_type == "uint16"
        assert pixels.plane_count == 2
        assert pixels.dimension_order == "XYCZT"
        assert store.resolution_size(2, 0) == (250, 150)

    def test_register_returns_planned_levels(self) -> None:
        info = _info(64, 64)
        store = MetadataStore.for_series(info)
        planner = ResolutionPlanner(1, PopulationStrategy.modern)
        assert planner.register(store, info) == planner.plan(info)
