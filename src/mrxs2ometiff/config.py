"""Configuration for mrxs2ometiff.

``Settings`` holds environment-driven defaults (pydantic-settings, ``.env``
support). ``ConversionConfig`` is the validated, immutable description of
one conversion run and is passed explicitly to every component.
"""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Every pyramid level is half the size of the previous one
PYRAMID_SCALE = 2

# TIFF requires tile width and length to be multiples of 16
TIFF_TILE_MULTIPLE = 16

# Accepted compression names (lower-cased) mapped to tifffile codec names
COMPRESSION_CODECS: dict[str, str | None] = {
    "jpeg-2000": "jpeg2000",
    "jpeg2000": "jpeg2000",
    "jpeg": "jpeg",
    "lzw": "lzw",
    "zlib": "zlib",
    "deflate": "zlib",
    "zstd": "zstd",
    "uncompressed": None,
    "none": None,
}

__all__ = [
    "COMPRESSION_CODECS",
    "PYRAMID_SCALE",
    "TIFF_TILE_MULTIPLE",
    "ConversionConfig",
    "Settings",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # "console" or "json"

    # Output tiling
    TILE_WIDTH: int = 2048
    TILE_HEIGHT: int = 2048
    COMPRESSION: str = "JPEG-2000"

    # Legacy mode extra images
    JPEG_QUALITY: int = 85


class ConversionConfig(BaseModel, frozen=True):
    """Immutable parameters of a single conversion run.

    Attributes:
        input_path: Source slide to convert.
        output_path: Pyramid file to create.
        pyramid_resolutions: Number of resolutions to generate below the
            full-resolution image (0 writes only the base resolution).
        tile_width: Tile width at resolution 0.
        tile_height: Tile height at resolution 0.
        compression: Compression codec name (see COMPRESSION_CODECS).
        legacy: Write the legacy single-pyramid layout instead of OME-TIFF.
        jpeg_quality: Quality of extra images exported in legacy mode.
    """

    input_path: Path
    output_path: Path
    pyramid_resolutions: int = Field(..., ge=0)
    tile_width: int = Field(default=2048, gt=0)
    tile_height: int = Field(default=2048, gt=0)
    compression: str = "JPEG-2000"
    legacy: bool = False
    jpeg_quality: int = Field(default=85, ge=1, le=100)

    @field_validator("compression")
    @classmethod
    def _validate_compression(cls, value: str) -> str:
        if value.lower() not in COMPRESSION_CODECS:
            supported = ", ".join(sorted(COMPRESSION_CODECS))
            raise ValueError(
                f"Unknown compression '{value}'. Supported: {supported}"
            )
        return value

    @model_validator(mode="after")
    def _validate_tiling(self) -> Self:
        """Every level's tile grid must be integral and TIFF-compatible."""
        deepest = self.deepest_scale
        sizes = (("tile_width", self.tile_width), ("tile_height", self.tile_height))
        for name, size in sizes:
            if size % deepest != 0:
                raise ValueError(
                    f"{name} {size} is not divisible by {deepest}, the scale "
                    f"of resolution {self.pyramid_resolutions}"
                )
            if (size // deepest) % TIFF_TILE_MULTIPLE != 0:
                raise ValueError(
                    f"{name} {size} gives {size // deepest}px tiles at resolution "
                    f"{self.pyramid_resolutions}; tiles must be a multiple of "
                    f"{TIFF_TILE_MULTIPLE}. Use a larger tile size or fewer "
                    "resolutions."
                )
        return self

    @property
    def deepest_scale(self) -> int:
        """Return the downsample factor of the smallest generated level."""
        return PYRAMID_SCALE**self.pyramid_resolutions

    @property
    def codec(self) -> str | None:
        """Return the tifffile codec name for the configured compression."""
        return COMPRESSION_CODECS[self.compression.lower()]
