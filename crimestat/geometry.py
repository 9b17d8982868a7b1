"""CrimeStat — Distance and projection helpers for polygon drawing"""

import math

from shapely.geometry import Polygon

from crimestat.models import Point

EARTH_RADIUS_M = 6371000.0
# Spherical mercator (EPSG:3857) constants, as used by web map tiles
_MERCATOR_RADIUS = 6378137.0
_MAX_LATITUDE = 85.0511287798
_TILE_SIZE = 256


def haversine_m(a: Point, b: Point) -> float:
    """Great-circle distance in meters (Haversine formula)."""
    dlat = math.radians(b.lat - a.lat)
    dlng = math.radians(b.lng - a.lng)
    h = (math.sin(dlat / 2) ** 2
         + math.cos(math.radians(a.lat))
         * math.cos(math.radians(b.lat))
         * math.sin(dlng / 2) ** 2)
    # Clamp to [0, 1] against floating-point overshoot
    h = max(0.0, min(1.0, h))
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))


def project(p: Point, zoom: float) -> tuple[float, float]:
    """Absolute pixel coordinates of a point at the given zoom level."""
    lat = max(-_MAX_LATITUDE, min(_MAX_LATITUDE, p.lat))
    x = _MERCATOR_RADIUS * math.radians(p.lng)
    sin = math.sin(math.radians(lat))
    y = _MERCATOR_RADIUS * math.log((1 + sin) / (1 - sin)) / 2

    scale = _TILE_SIZE * 2 ** zoom
    k = 0.5 / (math.pi * _MERCATOR_RADIUS)
    return scale * (k * x + 0.5), scale * (-k * y + 0.5)


def pixel_distance(a: Point, b: Point, zoom: float) -> float:
    """On-screen distance between two points.

    The container origin cancels out, so only the zoom level matters.
    """
    ax, ay = project(a, zoom)
    bx, by = project(b, zoom)
    return math.hypot(ax - bx, ay - by)


def polygon_bounds(points: list[Point]) -> list[list[float]]:
    """[[south, west], [north, east]] of a closed point chain."""
    # shapely works in (x, y) = (lng, lat)
    minx, miny, maxx, maxy = Polygon([(p.lng, p.lat) for p in points]).bounds
    return [[miny, minx], [maxy, maxx]]
