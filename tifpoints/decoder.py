"""Decode TIFF bytes into a flat array of pixel samples using GDAL

Required packages:
    - GDAL <https://pypi.org/project/GDAL/>
    - numpy <https://pypi.org/project/numpy/>
"""
from __future__ import annotations

import dataclasses
import enum
import logging
import uuid

import numpy

from .errors import DecodeFailure, UnsupportedPixelType

logger = logging.getLogger(__name__)


class SampleType(enum.StrEnum):
    """Tag for the numeric type of decoded pixel samples"""

    U8 = "U8"
    U16 = "U16"
    U32 = "U32"
    U64 = "U64"
    I8 = "I8"
    I16 = "I16"
    I32 = "I32"
    I64 = "I64"
    F32 = "F32"
    F64 = "F64"

    @property
    def dtype(self) -> numpy.dtype:
        return numpy.dtype(SAMPLE_DTYPES[self])


SAMPLE_DTYPES: dict[SampleType, str] = {
    SampleType.U8: "uint8",
    SampleType.U16: "uint16",
    SampleType.U32: "uint32",
    SampleType.U64: "uint64",
    SampleType.I8: "int8",
    SampleType.I16: "int16",
    SampleType.I32: "int32",
    SampleType.I64: "int64",
    SampleType.F32: "float32",
    SampleType.F64: "float64",
}

# Keyed by osgeo.gdal.GetDataTypeName() so older GDAL builds without
# GDT_Int8 or GDT_Int64 constants still work
GDAL_SAMPLE_TYPES: dict[str, SampleType] = {
    "Byte": SampleType.U8,
    "Int8": SampleType.I8,
    "UInt16": SampleType.U16,
    "Int16": SampleType.I16,
    "UInt32": SampleType.U32,
    "Int32": SampleType.I32,
    "UInt64": SampleType.U64,
    "Int64": SampleType.I64,
    "Float32": SampleType.F32,
    "Float64": SampleType.F64,
}


@dataclasses.dataclass(frozen=True)
class RasterImage:
    """Decoded single-band raster, samples flattened in row-major order"""

    width: int
    height: int
    samples: numpy.ndarray
    sample_type: SampleType

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise DecodeFailure(f"Invalid raster dimensions {self.width}x{self.height}")
        if len(self.samples) != self.width * self.height:
            raise DecodeFailure(
                f"Raster has {len(self.samples)} samples, expected {self.width}x{self.height}"
            )

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


def sample_type_for_band(band: "osgeo.gdal.Band") -> SampleType:  # noqa: F821
    """Map a GDAL band data type to a SampleType tag"""
    import osgeo.gdal

    type_name = osgeo.gdal.GetDataTypeName(band.DataType)

    # GDAL < 3.7 reports signed bytes as Byte with a PIXELTYPE hint
    if type_name == "Byte" and band.GetMetadataItem("PIXELTYPE", "IMAGE_STRUCTURE") == "SIGNEDBYTE":
        return SampleType.I8

    try:
        return GDAL_SAMPLE_TYPES[type_name]
    except KeyError:
        raise UnsupportedPixelType(type_name or "Unknown") from None


def decode_raster(contents: bytes, name: str = "raster.tif") -> RasterImage:
    """Decode TIFF bytes into a RasterImage.

    The bytes are exposed to GDAL through a /vsimem/ file that is removed
    once the samples have been read.

    Args:
        contents: Complete TIFF file contents
        name: File name used for the in-memory path and in log messages

    Returns:
        RasterImage with samples in the band's native type

    Raises:
        DecodeFailure: Bytes are not a readable single-band raster
        UnsupportedPixelType: Band type has no SampleType tag (e.g. complex)
    """
    import osgeo.gdal

    osgeo.gdal.UseExceptions()

    vsipath = f"/vsimem/tifpoints/{uuid.uuid4().hex}/{name}"
    osgeo.gdal.FileFromMemBuffer(vsipath, contents)
    try:
        try:
            ds = osgeo.gdal.Open(vsipath)
        except RuntimeError as e:
            raise DecodeFailure(f"Could not decode tif: {e}") from e
        if ds is None:
            raise DecodeFailure("Could not decode tif")

        if ds.RasterCount != 1:
            raise DecodeFailure(f"Expected a single-band raster, found {ds.RasterCount} bands")

        width, height = ds.RasterXSize, ds.RasterYSize
        band = ds.GetRasterBand(1)
        sample_type = sample_type_for_band(band)
        logger.info("Decoded %s: %dx%d %s", name, width, height, sample_type)

        try:
            data = band.ReadRaster(0, 0, width, height)
        except RuntimeError as e:
            raise DecodeFailure(f"Could not read pixels: {e}") from e

        samples = numpy.frombuffer(data, dtype=sample_type.dtype)
        return RasterImage(width, height, samples, sample_type)
    finally:
        ds = None
        osgeo.gdal.Unlink(vsipath)
