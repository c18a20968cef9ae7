"""Exceptions raised while converting a raster file to point observations"""

from pathlib import Path


class ConversionError(Exception):
    """Base exception for a failed conversion of one input file."""

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path is None:
            return message
        return f"{self.path}: {message}"


class UnsupportedInput(ConversionError):
    """Input path has a missing or unrecognised extension, or cannot be read."""

    pass


class NoRasterInArchive(ConversionError):
    """Zip archive contains no TIFF member."""

    pass


class AmbiguousArchiveContents(ConversionError):
    """Zip archive contains more than one TIFF member."""

    def __init__(self, message: str, path: Path | str | None = None, members: list[str] | None = None):
        super().__init__(message, path)
        self.members = members or []


class DecodeFailure(ConversionError):
    """Raster bytes could not be decoded."""

    pass


class UnsupportedPixelType(ConversionError):
    """Raster decoded, but its samples are not 32-bit signed integers."""

    def __init__(self, sample_type: str, path: Path | str | None = None):
        super().__init__(f"Unexpected image type. Expected I32 but got {sample_type}", path)
        self.sample_type = sample_type


class InvalidGroupSize(ConversionError):
    """Grouping bin size is not a positive number."""

    def __init__(self, group_size: float, path: Path | str | None = None):
        super().__init__(f"Group size must be a positive number, got {group_size}", path)
        self.group_size = group_size


class WriteFailure(ConversionError):
    """Output table could not be serialized or written."""

    pass
