"""Exceptions raised by the conversion pipeline.

Every failure surfaces as a ConversionError subclass so callers can report a
single wrapped message. Low-level library errors (OpenSlide, tifffile, OS
errors, missing codecs) are chained with ``raise ... from``.
"""

from pathlib import Path


class ConversionError(Exception):
    """Base exception for all conversion errors."""

    def __init__(self, message: str, path: Path | str | None = None) -> None:
        """Initialize conversion error with optional path context.

        Args:
            message: Human-readable error description.
            path: Path to the file that caused the error.
        """
        self.path = Path(path) if path else None
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with path context if available."""
        if self.path:
            return f"{self.message} (path: {self.path})"
        return self.message


class ConfigError(ConversionError):
    """Raised when the run configuration cannot produce a pyramid for a source.

    This error is raised when a generated pyramid level would collapse to
    zero pixels. Invalid configuration fields (unknown codec, tile sizes the
    deepest level cannot divide) are rejected by ``ConversionConfig``
    validation instead.
    """

    pass


class FormatError(ConversionError):
    """Raised when the source cannot be interpreted.

    Covers unsupported pixel layouts and missing pixel dimensions as well
    as images that cannot be encoded in the requested output format.
    """

    pass


class SourceOpenError(FormatError):
    """Raised when a source image cannot be opened.

    This error is raised when:
    - The file does not exist
    - The file extension has no matching reader
    - The underlying decoder fails to initialize
    """

    pass


class PyramidIOError(ConversionError):
    """Base exception for read and write failures."""

    pass


class SourceReadError(PyramidIOError):
    """Raised when reading pixels from an open source fails."""

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        *,
        series: int | None = None,
        plane: int | None = None,
        location: tuple[int, int] | None = None,
        size: tuple[int, int] | None = None,
    ) -> None:
        """Initialize read error with operation context.

        Args:
            message: Human-readable error description.
            path: Path to the source file.
            series: Series being read.
            plane: Plane index within the series.
            location: (x, y) of the requested region.
            size: (width, height) of the requested region.
        """
        self.series = series
        self.plane = plane
        self.location = location
        self.size = size
        super().__init__(message, path)

    def _format_message(self) -> str:
        """Format error message with full operation context."""
        parts = [self.message]
        if self.path:
            parts.append(f"path={self.path}")
        if self.series is not None:
            parts.append(f"series={self.series}")
        if self.plane is not None:
            parts.append(f"plane={self.plane}")
        if self.location is not None:
            parts.append(f"location={self.location}")
        if self.size is not None:
            parts.append(f"size={self.size}")

        if len(parts) == 1:
            return parts[0]
        return f"{parts[0]} ({', '.join(parts[1:])})"


class TileWriteError(PyramidIOError):
    """Raised when the output container rejects a write.

    Also raised when tiles, resolutions or series arrive out of the
    sequential order the container requires.
    """

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        *,
        series: int | None = None,
        resolution: int | None = None,
    ) -> None:
        self.series = series
        self.resolution = resolution
        super().__init__(message, path)

    def _format_message(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"path={self.path}")
        if self.series is not None:
            parts.append(f"series={self.series}")
        if self.resolution is not None:
            parts.append(f"resolution={self.resolution}")

        if len(parts) == 1:
            return parts[0]
        return f"{parts[0]} ({', '.join(parts[1:])})"


class MissingCapabilityError(ConversionError):
    """Raised when a required codec or service is unavailable."""

    pass
