"""mrxs2ometiff CLI.

Converts a whole slide image into a tiled pyramidal (OME-)TIFF.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from mrxs2ometiff import __version__
from mrxs2ometiff.config import ConversionConfig, Settings
from mrxs2ometiff.converter import convert
from mrxs2ometiff.exceptions import ConversionError
from mrxs2ometiff.utils.logging import configure_logging, get_logger

app = typer.Typer(
    name="mrxs2ometiff",
    help="Convert a whole slide image into a tiled pyramidal OME-TIFF.",
    add_completion=False,
)


class LogFormat(str, Enum):
    """Log output format."""

    console = "console"
    json = "json"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mrxs2ometiff {__version__}")
        raise typer.Exit()


@app.command()
def run(  # noqa: PLR0913
    input_path: Annotated[
        Path,
        typer.Argument(
            metavar="INPUT",
            help="Slide to convert (.mrxs, .svs, .ndpi, .tiff, ...)",
        ),
    ],
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Output pyramid file")
    ],
    resolutions: Annotated[
        int,
        typer.Option(
            "--resolutions",
            "-r",
            min=0,
            help=(
                "Number of pyramid resolutions to generate below full size. "
                "Tile size / 2^R must stay a multiple of 16, so 2048px tiles "
                "allow at most 7"
            ),
        ),
    ],
    tile_width: Annotated[
        int | None,
        typer.Option(
            "--tile-width",
            "-w",
            help="Tile width at full resolution; a multiple of 16 * 2^R",
        ),
    ] = None,
    tile_height: Annotated[
        int | None,
        typer.Option(
            "--tile-height",
            "-h",
            help="Tile height at full resolution; a multiple of 16 * 2^R",
        ),
    ] = None,
    compression: Annotated[
        str | None,
        typer.Option(
            "--compression",
            "-c",
            help="Compression: JPEG-2000, JPEG, LZW, zlib, zstd or Uncompressed",
        ),
    ] = None,
    legacy: Annotated[
        bool,
        typer.Option(
            "--legacy",
            help="Write a single-pyramid TIFF and export other series as JPEG",
        ),
    ] = False,
    debug: Annotated[
        bool, typer.Option("--debug", help="Enable debug logging")
    ] = False,
    log_format: Annotated[
        LogFormat | None,
        typer.Option("--log-format", help="Log output format"),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Convert INPUT into a tiled pyramid at --output."""
    settings = Settings()
    configure_logging(
        level="DEBUG" if debug else settings.LOG_LEVEL,
        log_format=log_format.value if log_format else settings.LOG_FORMAT,
    )
    logger = get_logger(__name__)

    try:
        config = ConversionConfig(
            input_path=input_path,
            output_path=output,
            pyramid_resolutions=resolutions,
            tile_width=tile_width if tile_width is not None else settings.TILE_WIDTH,
            tile_height=(
                tile_height if tile_height is not None else settings.TILE_HEIGHT
            ),
            compression=compression or settings.COMPRESSION,
            legacy=legacy,
            jpeg_quality=settings.JPEG_QUALITY,
        )
        result = convert(config, logger=logger)
    except (ConversionError, ValidationError) as e:
        logger.debug("Conversion failed", exc_info=True)
        typer.echo(f"Could not create pyramid: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Wrote {result.resolution_count} resolutions to {result.output_path}")
    for path in result.extra_images:
        typer.echo(f"Wrote extra image {path}")


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
