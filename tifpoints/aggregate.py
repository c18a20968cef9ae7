"""Group point observations into a regular longitude/latitude grid"""

from __future__ import annotations

import enum
import logging
import math

import numpy

from .errors import InvalidGroupSize

logger = logging.getLogger(__name__)


class Weighting(enum.StrEnum):
    """How values are combined inside a grid cell

    NONE sums raw integer values. COSINE scales each value by the cosine of
    its latitude before summing, so pixels near the poles, which cover less
    ground, count for less than equatorial ones.
    """

    NONE = "none"
    COSINE = "cosine"


def validate_group_size(group_size: float) -> float:
    if not math.isfinite(group_size) or group_size <= 0:
        raise InvalidGroupSize(group_size)
    return float(group_size)


def cell_index(coordinate, group_size: float):
    """Grid index of coordinates, rounding toward negative infinity"""
    return numpy.floor(numpy.asarray(coordinate, dtype=numpy.float64) / group_size).astype(numpy.int64)


def aggregate(
    lon: numpy.ndarray,
    lat: numpy.ndarray,
    value: numpy.ndarray,
    group_size: float,
    weighting: Weighting = Weighting.NONE,
) -> tuple[numpy.ndarray, numpy.ndarray, numpy.ndarray]:
    """Sum observations per grid cell.

    Each cell is keyed by (floor(lon / group_size), floor(lat / group_size))
    and reported at its grid origin, not at the centroid of its points.
    Cells come out in the order they were first hit.

    Args:
        lon: Point longitudes
        lat: Point latitudes
        value: Point values
        group_size: Cell edge length in degrees, must be positive
        weighting: Weighting member

    Returns:
        Parallel (lon, lat, value) arrays, one entry per occupied cell.
        Values are int64 for Weighting.NONE and float64 for Weighting.COSINE.
    """
    group_size = validate_group_size(group_size)
    out_dtype = numpy.float64 if weighting == Weighting.COSINE else numpy.int64

    if len(value) == 0:
        empty = numpy.empty(0, dtype=numpy.float64)
        return empty, empty.copy(), numpy.empty(0, dtype=out_dtype)

    keys = numpy.stack([cell_index(lon, group_size), cell_index(lat, group_size)], axis=1)
    cells, first_hit, inverse = numpy.unique(keys, axis=0, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)

    if weighting == Weighting.COSINE:
        contributions = value * numpy.cos(numpy.radians(lat))
        sums = numpy.bincount(inverse, weights=contributions, minlength=len(cells))
    else:
        # bincount sums in float64, add.at keeps exact integer totals
        sums = numpy.zeros(len(cells), dtype=numpy.int64)
        numpy.add.at(sums, inverse, value.astype(numpy.int64))

    order = numpy.argsort(first_hit, kind="stable")
    cells = cells[order]

    logger.info("Grouped %d points into %d cells of %g°", len(value), len(cells), group_size)

    return (
        cells[:, 0] * group_size,
        cells[:, 1] * group_size,
        sums[order].astype(out_dtype),
    )
