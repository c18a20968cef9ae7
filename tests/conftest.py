#!/usr/bin/env python3
"""Pytest configuration and shared fixtures."""

import tempfile
import zipfile
from pathlib import Path

import numpy
import pytest

from tifpoints.decoder import RasterImage, SampleType


@pytest.fixture
def temp_dir():
    """Create temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def make_image(rows, sample_type: SampleType = SampleType.I32) -> RasterImage:
    """Build a RasterImage from a list of pixel rows."""
    array = numpy.asarray(rows, dtype=sample_type.dtype)
    height, width = array.shape
    return RasterImage(width, height, array.ravel(), sample_type)


def fixed_decoder(image: RasterImage):
    """Decoder stand-in that ignores the bytes and returns a prepared image."""

    def decode(contents: bytes, name: str) -> RasterImage:
        return image

    return decode


def write_corrupt_zip(path: Path, member: str = "density.tif") -> Path:
    """Write a zip whose single deflated member has damaged compressed bytes."""
    payload = b"II*\x00" + bytes(range(256)) * 64
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(member, payload)
    with zipfile.ZipFile(path) as archive:
        info = archive.getinfo(member)
    data = bytearray(path.read_bytes())
    start = info.header_offset + 30 + len(member.encode())
    for offset in range(start + 2, start + info.compress_size - 2):
        data[offset] ^= 0x5A
    path.write_bytes(bytes(data))
    return path


@pytest.fixture
def grid_4x4():
    """4x4 raster with distinct positive values 1..16 in row-major order."""
    return make_image(numpy.arange(1, 17).reshape(4, 4))


@pytest.fixture
def tif_path(temp_dir):
    """Placeholder .tif file for tests that inject a decoder."""
    path = temp_dir / "density.tif"
    path.write_bytes(b"II*\x00")
    return path


@pytest.fixture
def write_tiff():
    """Return a function writing a single-band GeoTIFF with GDAL."""
    gdal = pytest.importorskip("osgeo.gdal")
    gdal.UseExceptions()

    def write(path: Path, rows, type_name: str = "Int32", bands: int = 1) -> Path:
        array = numpy.ascontiguousarray(rows)
        height, width = array.shape
        driver = gdal.GetDriverByName("GTiff")
        ds = driver.Create(str(path), width, height, bands, gdal.GetDataTypeByName(type_name))
        for band_num in range(1, bands + 1):
            ds.GetRasterBand(band_num).WriteRaster(0, 0, width, height, array.tobytes())
        ds.FlushCache()
        ds = None
        return path

    return write
