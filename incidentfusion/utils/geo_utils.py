"""Geographic utility functions for IncidentFusion.

Pure geographic computations — no I/O, no external calls. Points are plain
(lat, lon) tuples in decimal degrees.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

EARTH_RADIUS_KM = 6371.0

LatLon = Tuple[float, float]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points using the Haversine formula.

    Args:
        lat1: Latitude of first point in decimal degrees.
        lon1: Longitude of first point in decimal degrees.
        lat2: Latitude of second point in decimal degrees.
        lon2: Longitude of second point in decimal degrees.

    Returns:
        Distance in kilometres.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres. See haversine_km."""
    return haversine_km(lat1, lon1, lat2, lon2) * 1000.0


def bounds_of(points: Sequence[LatLon]) -> Tuple[float, float, float, float]:
    """Compute the bounding box of a non-empty sequence of points.

    Longitudes are taken as-is; use center_of_bounds for antimeridian-aware
    centring.

    Args:
        points: (lat, lon) tuples.

    Returns:
        (min_lat, min_lon, max_lat, max_lon) bounding box.

    Raises:
        ValueError: If ``points`` is empty.
    """
    if not points:
        raise ValueError("bounds_of() requires at least one point")
    lats = [p[0] for p in points]
    lons = [p[1] for p in points]
    return min(lats), min(lons), max(lats), max(lons)


def _wrap_lon(lon: float) -> float:
    """Normalise a longitude into [-180, 180)."""
    return ((lon + 180.0) % 360.0) - 180.0


def center_of_bounds(points: Sequence[LatLon]) -> LatLon:
    """Centre of the bounding box enclosing ``points``.

    When the raw longitude span exceeds 180 degrees the set is assumed to
    straddle the antimeridian: western-hemisphere longitudes are shifted by
    +360 before taking the midpoint, and the result is wrapped back into
    [-180, 180).

    Args:
        points: Non-empty sequence of (lat, lon) tuples.

    Returns:
        (lat, lon) of the bounding-box centre.
    """
    min_lat, min_lon, max_lat, max_lon = bounds_of(points)
    center_lat = (min_lat + max_lat) / 2.0

    if max_lon - min_lon > 180.0:
        shifted = [lon + 360.0 if lon < 0 else lon for _, lon in points]
        center_lon = _wrap_lon((min(shifted) + max(shifted)) / 2.0)
    else:
        center_lon = (min_lon + max_lon) / 2.0
    return center_lat, center_lon


def bbox_contains(lat: float, lon: float, bbox: Tuple[float, float, float, float]) -> bool:
    """Check whether a point falls within a bounding box.

    Args:
        lat: Point latitude.
        lon: Point longitude.
        bbox: (min_lat, min_lon, max_lat, max_lon) bounding box.

    Returns:
        True if the point is within the bounding box (inclusive).
    """
    min_lat, min_lon, max_lat, max_lon = bbox
    return min_lat <= lat <= max_lat and min_lon <= lon <= max_lon
