"""Unit tests for conversion exceptions."""

from __future__ import annotations

from pathlib import Path

from mrxs2ometiff.exceptions import (
    ConfigError,
    ConversionError,
    FormatError,
    MissingCapabilityError,
    PyramidIOError,
    SourceOpenError,
    SourceReadError,
    TileWriteError,
)


class TestConversionError:
    """Tests for base ConversionError class."""

    def test_error_message_only(self) -> None:
        """Test error with message only."""
        error = ConversionError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.path is None

    def test_error_with_path_string(self) -> None:
        """Test error with path as string."""
        error = ConversionError("Error occurred", path="/path/to/slide.mrxs")
        assert "Error occurred" in str(error)
        assert "/path/to/slide.mrxs" in str(error)
        assert error.path == Path("/path/to/slide.mrxs")

    def test_taxonomy(self) -> None:
        """Every pipeline error is a ConversionError."""
        assert issubclass(ConfigError, ConversionError)
        assert issubclass(SourceOpenError, FormatError)
        assert issubclass(SourceReadError, PyramidIOError)
        assert issubclass(TileWriteError, PyramidIOError)
        assert issubclass(MissingCapabilityError, ConversionError)


class TestSourceReadError:
    """Tests for SourceReadError class."""

    def test_message_includes_context(self) -> None:
        error = SourceReadError(
            "Failed to read region",
            path="/slides/a.mrxs",
            series=0,
            plane=2,
            location=(100, 200),
            size=(512, 256),
        )
        message = str(error)
        assert message.startswith("Failed to read region (")
        assert "path=/slides/a.mrxs" in message
        assert "series=0" in message
        assert "plane=2" in message
        assert "location=(100, 200)" in message
        assert "size=(512, 256)" in message

    def test_message_without_context(self) -> None:
        error = SourceReadError("Slide is closed")
        assert str(error) == "Slide is closed"
        assert error.series is None
        assert error.location is None


class TestTileWriteError:
    """Tests for TileWriteError class."""

    def test_message_includes_series_and_resolution(self) -> None:
        error = TileWriteError("Tile out of sequence", series=0, resolution=3)
        assert str(error) == "Tile out of sequence (series=0, resolution=3)"
        assert error.resolution == 3
