"""tifpoints - Convert single-band TIFF rasters to Parquet point tables"""

from .errors import (
    AmbiguousArchiveContents,
    ConversionError,
    DecodeFailure,
    InvalidGroupSize,
    NoRasterInArchive,
    UnsupportedInput,
    UnsupportedPixelType,
    WriteFailure,
)
from .pipeline import ConversionOptions, ConversionResult, convert_file, convert_files

__all__ = [
    "AmbiguousArchiveContents",
    "ConversionError",
    "ConversionOptions",
    "ConversionResult",
    "DecodeFailure",
    "InvalidGroupSize",
    "NoRasterInArchive",
    "UnsupportedInput",
    "UnsupportedPixelType",
    "WriteFailure",
    "convert_file",
    "convert_files",
]
