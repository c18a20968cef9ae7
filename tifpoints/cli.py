#!/usr/bin/env python3
"""tifpoints CLI - Convert single-band TIFF rasters to Parquet point tables

Every pixel above a threshold becomes a (lon, lat, value) row, optionally
grouped into a coarser lon/lat grid.
"""

import logging
import sys
import traceback
from pathlib import Path

import click
from rich.console import Console

from . import pipeline
from .aggregate import Weighting
from .progress import status_display


# Configure logging
def setup_logging(verbose: bool):
    """Configure logging based on verbosity."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(message)s",
        )


def _validate_group(ctx, param, value):
    if value is not None and not value > 0:
        raise click.BadParameter("must be a positive number of degrees")
    return value


@click.command()
@click.version_option(package_name="tifpoints")
@click.argument("input_paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "--group",
    "group_size",
    type=float,
    default=None,
    callback=_validate_group,
    help="Group points into cells of this size in degrees",
)
@click.option(
    "--weighting",
    type=click.Choice([w.value for w in Weighting]),
    default=Weighting.NONE.value,
    help="How values are summed with --group: none (raw sum) or cosine (scaled by cos(latitude)) (default: none)",
)
@click.option(
    "--drop-below",
    type=int,
    default=None,
    help="Keep pixels with value >= this threshold (default: keep value > 0)",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file path, only valid with a single input (default: <input>.parquet)",
)
@click.option(
    "--compression",
    type=click.Choice([c.value for c in pipeline.Compression]),
    default=pipeline.Compression.ZSTD.value,
    help="Parquet compression codec (default: zstd)",
)
@click.option("-q", "--quiet", is_flag=True, help="Disable progress display")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(
    input_paths: tuple[Path, ...],
    group_size: float | None,
    weighting: str,
    drop_below: int | None,
    output: Path | None,
    compression: str,
    quiet: bool,
    verbose: bool,
):
    """Convert TIFF rasters to Parquet tables of lon/lat/value points.

    INPUT_PATHS are .tif/.tiff files or .zip archives containing exactly one
    TIFF. Each input is written to a .parquet file next to it.

    Pixel columns are mapped onto longitude -180..180 and rows onto latitude
    85..-85, top row first.

    \b
    Examples:
        tifpoints density.tif
        tifpoints density.zip --group 0.5
        tifpoints density.tif --group 1 --weighting cosine
        tifpoints a.tif b.tif c.zip --drop-below 10 -v
        tifpoints density.tif -o points.parquet
    """
    setup_logging(verbose)

    if output is not None and len(input_paths) > 1:
        raise click.UsageError("--output can only be used with a single input")

    if weighting != Weighting.NONE.value and group_size is None:
        raise click.UsageError("--weighting only applies together with --group")

    options = pipeline.ConversionOptions(
        group_size=group_size,
        weighting=Weighting(weighting),
        drop_below=drop_below,
        output=output,
        compression=pipeline.Compression(compression),
    )

    with status_display(enabled=not quiet, console=Console(stderr=True)) as status_factory:
        results, failures = pipeline.convert_files(input_paths, options, status_factory)

    for result in results:
        click.echo(f"Successfully created {result.output_path} ({result.row_count:,} rows)")
        if verbose:
            click.echo(
                f"  Pixels: {result.pixel_count:,}, kept: {result.kept_count:,}, "
                f"time: {result.elapsed_seconds:.1f}s"
            )

    for _, error in failures:
        click.echo(f"Error: {error}", err=True)
        if verbose:
            traceback.print_exception(error)

    if failures:
        sys.exit(1)


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
