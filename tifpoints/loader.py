"""Resolve an input path to the bytes of exactly one TIFF image"""

import logging
import zipfile
import zlib
from pathlib import Path

from .errors import (
    AmbiguousArchiveContents,
    DecodeFailure,
    NoRasterInArchive,
    UnsupportedInput,
)

logger = logging.getLogger(__name__)

RASTER_SUFFIXES = (".tif", ".tiff")
ARCHIVE_SUFFIXES = (".zip",)


def is_raster_name(name: str) -> bool:
    return name.lower().endswith(RASTER_SUFFIXES)


def find_archive_rasters(archive: zipfile.ZipFile) -> list[str]:
    """Names of archive members that look like TIFF files"""
    return [
        info.filename
        for info in archive.infolist()
        if not info.is_dir() and is_raster_name(info.filename)
    ]


def read_archive_raster(path: Path) -> bytes:
    """Extract the single TIFF member of a zip archive into memory"""
    try:
        with zipfile.ZipFile(path) as archive:
            names = find_archive_rasters(archive)
            if not names:
                raise NoRasterInArchive("No tif files found in archive", path)
            if len(names) > 1:
                raise AmbiguousArchiveContents(
                    f"Multiple tif files found in archive: {', '.join(names)}",
                    path,
                    names,
                )
            logger.info("Reading %s from %s", names[0], path)
            try:
                return archive.read(names[0])
            except (zlib.error, EOFError, RuntimeError, NotImplementedError) as e:
                raise DecodeFailure(f"Cannot extract {names[0]}: {e}", path) from e
    except zipfile.BadZipFile as e:
        raise DecodeFailure(f"Invalid zip archive: {e}", path) from e
    except OSError as e:
        raise UnsupportedInput(f"Cannot read archive: {e.strerror or e}", path) from e


def load_raster_bytes(path: Path | str) -> bytes:
    """Read raw TIFF bytes from a .tif/.tiff file or a .zip holding one TIFF.

    Args:
        path: Input file path

    Returns:
        Complete contents of the TIFF image

    Raises:
        UnsupportedInput: Extension is missing or not recognised
        NoRasterInArchive: Archive has no TIFF member
        AmbiguousArchiveContents: Archive has more than one TIFF member
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if not suffix:
        raise UnsupportedInput(f"No file extension on {path}", path)

    if suffix in ARCHIVE_SUFFIXES:
        return read_archive_raster(path)

    if suffix in RASTER_SUFFIXES:
        try:
            return path.read_bytes()
        except OSError as e:
            raise UnsupportedInput(f"Cannot read file: {e.strerror or e}", path) from e

    raise UnsupportedInput(f"Unexpected file extension {suffix.lstrip('.')}", path)
