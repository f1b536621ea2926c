"""Tests for reader selection by extension."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import openslide
import pytest
import tifffile

from mrxs2ometiff.exceptions import SourceOpenError
from mrxs2ometiff.source import (
    SUPPORTED_EXTENSIONS,
    OpenSlideReader,
    TiffSourceReader,
    open_reader,
)


class TestOpenReader:
    """Tests for open_reader()."""

    def test_tiff_uses_tifffile(self, tmp_path: Path) -> None:
        path = tmp_path / "image.TIFF"
        tifffile.imwrite(path, np.zeros((8, 8), dtype=np.uint8))

        reader = open_reader(path)
        try:
            assert isinstance(reader, TiffSourceReader)
        finally:
            reader.close()

    def test_mrxs_uses_openslide(self, tmp_path: Path) -> None:
        path = tmp_path / "slide.mrxs"
        path.write_bytes(b"data")
        mock = MagicMock(spec=openslide.OpenSlide)
        mock.associated_images = {}

        with patch(
            "mrxs2ometiff.source.openslide_reader.openslide.OpenSlide",
            return_value=mock,
        ):
            reader = open_reader(path)
            assert isinstance(reader, OpenSlideReader)
            reader.close()

    def test_unknown_extension_raises(self, tmp_path: Path) -> None:
        with pytest.raises(SourceOpenError, match="Unsupported file extension '.czi'"):
            open_reader(tmp_path / "image.czi")

    def test_supported_extensions(self) -> None:
        assert {".mrxs", ".svs", ".ndpi", ".tif", ".tiff"} <= SUPPORTED_EXTENSIONS
