"""Fixed linear mapping from pixel grid positions to longitude/latitude

The raster is assumed to span the whole globe horizontally and a fixed
85°N to 85°S band vertically, with row 0 at the top. No projection metadata
is read from the file.
"""

import numpy

LON_RANGE = (-180.0, 180.0)
LAT_RANGE = (85.0, -85.0)


def lerp(v, domain: tuple[float, float], range_: tuple[float, float]):
    """Map v linearly from domain onto range_, works on scalars and arrays"""
    return (v - domain[0]) / (domain[1] - domain[0]) * (range_[1] - range_[0]) + range_[0]


def pixel_to_lonlat(x, y, width: int, height: int):
    """Longitude and latitude of pixel column x and row y"""
    lon = lerp(x, (0.0, float(width)), LON_RANGE)
    lat = lerp(y, (0.0, float(height)), LAT_RANGE)
    return lon, lat


def index_to_lonlat(idx, width: int, height: int):
    """Longitude and latitude of flat row-major pixel indexes"""
    x = numpy.asarray(idx) % width
    y = numpy.asarray(idx) // width
    return pixel_to_lonlat(x.astype(numpy.float64), y.astype(numpy.float64), width, height)
