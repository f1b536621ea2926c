"""Unit tests for TiffSourceReader on small TIFF files written with tifffile."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import tifffile

from mrxs2ometiff.exceptions import FormatError, SourceOpenError, SourceReadError
from mrxs2ometiff.source.tiff_reader import TiffSourceReader


@pytest.fixture
def rgb_tiff(tmp_path: Path) -> tuple[Path, np.ndarray]:
    rng = np.random.default_rng(7)
    data = rng.integers(0, 256, size=(40, 60, 3), dtype=np.uint8)
    path = tmp_path / "rgb.tif"
    tifffile.imwrite(path, data, photometric="rgb")
    return path, data


class TestTiffSourceReaderInit:
    """Tests for TiffSourceReader initialization."""

    def test_open_nonexistent_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(SourceOpenError, match="File not found"):
            TiffSourceReader(tmp_path / "missing.tif")

    def test_open_unsupported_extension_raises(self, tmp_path: Path) -> None:
        fake_file = tmp_path / "image.png"
        fake_file.write_bytes(b"data")
        with pytest.raises(SourceOpenError, match="Unsupported file extension"):
            TiffSourceReader(fake_file)

    def test_corrupt_file_raises(self, tmp_path: Path) -> None:
        fake_file = tmp_path / "corrupt.tiff"
        fake_file.write_bytes(b"not a tiff file at all")
        with pytest.raises(SourceOpenError, match="Failed to open TIFF"):
            TiffSourceReader(fake_file)


class TestTiffSourceReaderSeries:
    """Tests for series description."""

    def test_rgb_series(self, rgb_tiff: tuple[Path, np.ndarray]) -> None:
        path, _ = rgb_tiff
        with TiffSourceReader(path) as reader:
            assert reader.series_count == 1
            info = reader.get_series_info(0)
            assert info.dimensions == (60, 40)
            assert info.samples == 3
            assert info.interleaved is True
            assert info.plane_count == 1
            assert info.pixel_type == "uint8"

    def test_multi_page_grayscale(self, tmp_path: Path) -> None:
        data = np.arange(4 * 8 * 16, dtype=np.uint16).reshape(4, 8, 16)
        path = tmp_path / "stack.tif"
        tifffile.imwrite(path, data, photometric="minisblack")

        with TiffSourceReader(path) as reader:
            info = reader.get_series_info(0)
            assert info.plane_count == 4
            assert info.samples == 1
            assert info.pixel_type == "uint16"
            np.testing.assert_array_equal(
                reader.read_region(0, 2, 4, 2, 8, 4), data[2, 2:6, 4:12]
            )

    def test_planar_separate(self, tmp_path: Path) -> None:
        data = np.arange(3 * 8 * 16, dtype=np.uint8).reshape(3, 8, 16)
        path = tmp_path / "planar.tif"
        tifffile.imwrite(path, data, photometric="rgb", planarconfig="separate")

        with TiffSourceReader(path) as reader:
            info = reader.get_series_info(0)
            assert info.interleaved is False
            assert info.dimensions == (16, 8)
            region = reader.read_region(0, 0, 2, 1, 4, 3)
            assert region.shape == (3, 3, 4)
            np.testing.assert_array_equal(region, data[:, 1:4, 2:6])

    def test_multiple_series(self, tmp_path: Path) -> None:
        path = tmp_path / "multi.tif"
        with tifffile.TiffWriter(path) as tif:
            tif.write(np.zeros((32, 32, 3), dtype=np.uint8), photometric="rgb")
            tif.write(np.ones((10, 20), dtype=np.uint8), photometric="minisblack")

        with TiffSourceReader(path) as reader:
            assert reader.series_count == 2
            assert reader.get_series_info(1).dimensions == (20, 10)
            with pytest.raises(FormatError, match="Series 2 out of range"):
                reader.get_series_info(2)

    def test_native_pyramid_levels(self, tmp_path: Path) -> None:
        base = np.zeros((64, 64), dtype=np.uint8)
        path = tmp_path / "pyramid.ome.tif"
        with tifffile.TiffWriter(path, ome=True) as tif:
            tif.write(base, tile=(16, 16), subifds=1, photometric="minisblack")
            tif.write(
                np.full((32, 32), 9, dtype=np.uint8),
                tile=(16, 16),
                subfiletype=1,
                photometric="minisblack",
            )

        with TiffSourceReader(path) as reader:
            info = reader.get_series_info(0)
            assert info.resolution_count == 2
            region = reader.read_region(0, 0, 0, 0, 32, 32, resolution=1)
            assert np.all(region == 9)


class TestTiffSourceReaderReadRegion:
    """Tests for TiffSourceReader.read_region()."""

    def test_region_matches_data(self, rgb_tiff: tuple[Path, np.ndarray]) -> None:
        path, data = rgb_tiff
        with TiffSourceReader(path) as reader:
            region = reader.read_region(0, 0, 10, 5, 20, 30)
            np.testing.assert_array_equal(region, data[5:35, 10:30])

    def test_out_of_bounds_raises(self, rgb_tiff: tuple[Path, np.ndarray]) -> None:
        path, _ = rgb_tiff
        with TiffSourceReader(path) as reader:
            with pytest.raises(SourceReadError, match="exceeds image bounds"):
                reader.read_region(0, 0, 50, 0, 20, 10)

    def test_invalid_plane_raises(self, rgb_tiff: tuple[Path, np.ndarray]) -> None:
        path, _ = rgb_tiff
        with TiffSourceReader(path) as reader:
            with pytest.raises(SourceReadError, match="Invalid plane 1"):
                reader.read_region(0, 1, 0, 0, 4, 4)

    def test_invalid_resolution_raises(
        self, rgb_tiff: tuple[Path, np.ndarray]
    ) -> None:
        path, _ = rgb_tiff
        with TiffSourceReader(path) as reader:
            with pytest.raises(SourceReadError, match="Invalid resolution 1"):
                reader.read_region(0, 0, 0, 0, 4, 4, resolution=1)

    def test_closed_reader_raises(self, rgb_tiff: tuple[Path, np.ndarray]) -> None:
        path, _ = rgb_tiff
        reader = TiffSourceReader(path)
        reader.close()
        with pytest.raises(SourceReadError, match="TIFF is closed"):
            reader.read_region(0, 0, 0, 0, 4, 4)
