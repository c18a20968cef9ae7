#!/usr/bin/env python3
"""Convert single-band TIFF rasters into Parquet tables of point observations

Each pixel above a threshold becomes one (lon, lat, value) row, with
coordinates taken from a fixed global projection. Rows can optionally be
grouped into a coarser lon/lat grid.

Usage:
    from tifpoints.pipeline import ConversionOptions, convert_file

    result = convert_file("density.tif", ConversionOptions(group_size=0.5))

Required packages:
    - GDAL <https://pypi.org/project/GDAL/>
    - numpy <https://pypi.org/project/numpy/>
    - pyarrow <https://pypi.org/project/pyarrow/>
"""
from __future__ import annotations

import dataclasses
import enum
import logging
import os
import tempfile
import time
import typing
from pathlib import Path

import numpy
import pyarrow
import pyarrow.parquet

from . import aggregate as aggregate_module
from .aggregate import Weighting
from .decoder import RasterImage, SampleType, decode_raster
from .errors import ConversionError, UnsupportedPixelType, WriteFailure
from .geomap import index_to_lonlat
from .loader import load_raster_bytes
from .progress import NullStatus

logger = logging.getLogger(__name__)

# Pixels examined between progress updates
CHUNK_SIZE = 1 << 20

OUTPUT_SUFFIX = ".parquet"

INT32_MIN = numpy.iinfo(numpy.int32).min
INT32_MAX = numpy.iinfo(numpy.int32).max


class Compression(enum.StrEnum):
    """Parquet compression codec for the output file"""

    SNAPPY = "snappy"
    ZSTD = "zstd"
    GZIP = "gzip"
    NONE = "none"


@dataclasses.dataclass
class ConversionOptions:
    """Settings shared by every file in one run"""

    group_size: float | None = None  # Grid cell size in degrees, None disables grouping
    weighting: Weighting = Weighting.NONE
    drop_below: int | None = None  # Keep value >= drop_below instead of value > 0
    output: Path | None = None  # Explicit destination, single input only
    compression: Compression = Compression.ZSTD


@dataclasses.dataclass
class ConversionResult:
    """Summary of one finished conversion"""

    input_path: Path
    output_path: Path
    pixel_count: int
    kept_count: int
    row_count: int
    elapsed_seconds: float


def default_output_path(input_path: Path | str) -> Path:
    """Sibling of the input with the extension replaced by .parquet"""
    return Path(input_path).with_suffix(OUTPUT_SUFFIX)


def keep_mask(samples: numpy.ndarray, drop_below: int | None = None) -> numpy.ndarray:
    """Boolean mask of samples that survive the threshold"""
    if drop_below is None:
        return samples > 0
    return samples >= drop_below


def filter_and_project(
    image: RasterImage,
    drop_below: int | None = None,
    status: NullStatus | None = None,
) -> tuple[numpy.ndarray, numpy.ndarray, numpy.ndarray]:
    """Drop pixels failing the threshold and locate the rest.

    Args:
        image: Decoded raster, must hold I32 samples
        drop_below: Optional inclusive threshold, default keeps values > 0
        status: Optional status receiving one advance per examined pixel

    Returns:
        Parallel (lon, lat, value) arrays in row-major scan order

    Raises:
        UnsupportedPixelType: Samples are not 32-bit signed integers
    """
    if image.sample_type != SampleType.I32:
        raise UnsupportedPixelType(str(image.sample_type))

    status = status or NullStatus()
    samples = image.samples
    kept = []
    for start in range(0, len(samples), CHUNK_SIZE):
        chunk = samples[start : start + CHUNK_SIZE]
        kept.append(numpy.flatnonzero(keep_mask(chunk, drop_below)) + start)
        status.advance(len(chunk))

    if not kept:
        empty = numpy.empty(0, dtype=numpy.float64)
        return empty, empty.copy(), numpy.empty(0, dtype=numpy.int32)

    indexes = numpy.concatenate(kept)
    lon, lat = index_to_lonlat(indexes, image.width, image.height)
    value = samples[indexes].astype(numpy.int32)

    logger.info("Kept %d of %d pixels", len(indexes), len(samples))
    return lon, lat, value


def create_schema(float_values: bool) -> pyarrow.Schema:
    """Output schema, value column float32 for grouped or weighted values"""
    return pyarrow.schema(
        [
            ("lon", pyarrow.float32()),
            ("lat", pyarrow.float32()),
            ("value", pyarrow.float32() if float_values else pyarrow.int32()),
        ]
    )


def build_table(
    lon: numpy.ndarray,
    lat: numpy.ndarray,
    value: numpy.ndarray,
    grouped: bool = False,
) -> pyarrow.Table:
    """Assemble observations into a lon/lat/value table

    Raw pixel values keep an int32 column. Grouped sums, which can exceed
    the int32 range, and weighted values are stored as float32.
    """
    if not len(lon) == len(lat) == len(value):
        raise ValueError(f"Column lengths differ: {len(lon)}, {len(lat)}, {len(value)}")

    float_values = grouped or numpy.issubdtype(value.dtype, numpy.floating)
    schema = create_schema(float_values)
    if float_values:
        value = value.astype(numpy.float32)
    else:
        if len(value) and (value.min() < INT32_MIN or value.max() > INT32_MAX):
            raise WriteFailure("Pixel value does not fit in a 32-bit integer column")
        value = value.astype(numpy.int32)

    return pyarrow.Table.from_arrays(
        [
            pyarrow.array(lon.astype(numpy.float32)),
            pyarrow.array(lat.astype(numpy.float32)),
            pyarrow.array(value),
        ],
        schema=schema,
    )


def current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


def write_table(table: pyarrow.Table, destination: Path | str, compression: Compression = Compression.ZSTD):
    """Write a table to Parquet without leaving a partial file behind on failure

    The table goes to a temporary file in the destination directory first,
    which then replaces the destination. The final file gets the permissions
    a plain create would give it under the current umask.
    """
    destination = Path(destination)
    codec = None if compression == Compression.NONE else str(compression)

    try:
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
        )
    except OSError as e:
        raise WriteFailure(f"Cannot write to {destination.parent}: {e.strerror or e}", destination) from e
    os.close(fd)

    try:
        pyarrow.parquet.write_table(table, temp_name, compression=codec)
        os.chmod(temp_name, 0o666 & ~current_umask())
        os.replace(temp_name, destination)
    except (OSError, pyarrow.ArrowException) as e:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise WriteFailure(f"Failed to write {destination}: {e}", destination) from e

    logger.info("Wrote %d rows to %s", table.num_rows, destination)


def convert_file(
    input_path: Path | str,
    options: ConversionOptions | None = None,
    status: NullStatus | None = None,
    decoder: typing.Callable[[bytes, str], RasterImage] = decode_raster,
) -> ConversionResult:
    """Read one raster and write its observations to Parquet.

    Args:
        input_path: .tif/.tiff file or .zip archive holding one TIFF
        options: ConversionOptions, defaults apply when None
        status: Optional per-file status sink
        decoder: Callable turning TIFF bytes into a RasterImage

    Returns:
        ConversionResult describing the written file

    Raises:
        ConversionError: Any failure, with its path set to input_path
    """
    input_path = Path(input_path)
    options = options or ConversionOptions()
    status = status or NullStatus()
    output_path = Path(options.output) if options.output is not None else default_output_path(input_path)
    started = time.monotonic()

    try:
        if options.group_size is not None:
            aggregate_module.validate_group_size(options.group_size)

        status.set_message("reading file")
        contents = load_raster_bytes(input_path)

        status.set_message("decoding tif")
        image = decoder(contents, input_path.with_suffix(".tif").name)

        status.set_message("processing image")
        status.set_total(image.pixel_count)
        lon, lat, value = filter_and_project(image, options.drop_below, status)
        kept_count = len(value)

        if options.group_size is not None:
            status.set_message("grouping")
            lon, lat, value = aggregate_module.aggregate(lon, lat, value, options.group_size, options.weighting)

        table = build_table(lon, lat, value, grouped=options.group_size is not None)

        status.set_message("writing")
        write_table(table, output_path, options.compression)
    except ConversionError as e:
        if e.path is None:
            e.path = input_path
        status.finish("failed")
        raise

    status.finish("done")
    return ConversionResult(
        input_path=input_path,
        output_path=output_path,
        pixel_count=image.pixel_count,
        kept_count=kept_count,
        row_count=table.num_rows,
        elapsed_seconds=time.monotonic() - started,
    )


def convert_files(
    input_paths: typing.Iterable[Path | str],
    options: ConversionOptions | None = None,
    status_factory: typing.Callable[[str], NullStatus] | None = None,
    decoder: typing.Callable[[bytes, str], RasterImage] = decode_raster,
) -> tuple[list[ConversionResult], list[tuple[Path, ConversionError]]]:
    """Convert each input independently, collecting failures instead of stopping.

    Returns:
        (results, failures) where failures pairs each failed path with its error
    """
    results = []
    failures = []
    for input_path in input_paths:
        status = status_factory(str(input_path)) if status_factory else NullStatus()
        try:
            results.append(convert_file(input_path, options, status, decoder))
        except ConversionError as e:
            logger.info("Conversion of %s failed: %s", input_path, e)
            failures.append((Path(input_path), e))
    return results, failures
