"""Cluster location inference for IncidentFusion.

Derives a representative centre, a confidence score and an affected radius
from the located posts of a cluster.
"""

from __future__ import annotations

import logging
from typing import Sequence

from config.defaults import (
    LOCATION_CONFIDENCE_FALLOFF_METERS,
    LOCATION_MIN_CONFIDENCE,
    MIN_AFFECTED_RADIUS_METERS,
    RADIUS_DISPERSION_MULTIPLIER,
    SINGLE_POINT_CONFIDENCE,
    SINGLE_POINT_RADIUS_METERS,
)
from incidentfusion.exceptions import NoLocationData
from incidentfusion.models.events import LocationEstimate
from incidentfusion.models.posts import GeoPoint, Post
from incidentfusion.utils.geo_utils import center_of_bounds, haversine_m

logger = logging.getLogger(__name__)


def infer_central_location(posts: Sequence[Post]) -> LocationEstimate:
    """Infer the central location of a cluster of posts.

    Unlocated posts are ignored. A single located post yields a fixed
    moderate-confidence estimate. With two or more, the centre is the middle
    of their bounding box; confidence falls off linearly with the farthest
    post's distance from the centre (floored at 0.1) and the radius is 1.5x
    the mean distance (floored at 500 m).

    Args:
        posts: Cluster posts.

    Returns:
        LocationEstimate for the cluster.

    Raises:
        NoLocationData: If no post carries a location.
    """
    points = [(p.location.lat, p.location.lon) for p in posts if p.location is not None]
    if not points:
        raise NoLocationData(f"None of {len(posts)} posts carries a location")

    if len(points) == 1:
        lat, lon = points[0]
        return LocationEstimate(
            center=GeoPoint(lat=lat, lon=lon),
            confidence_score=SINGLE_POINT_CONFIDENCE,
            radius_meters=SINGLE_POINT_RADIUS_METERS,
        )

    center_lat, center_lon = center_of_bounds(points)
    distances = [haversine_m(center_lat, center_lon, lat, lon) for lat, lon in points]
    max_distance = max(distances)
    avg_distance = sum(distances) / len(distances)

    confidence = max(LOCATION_MIN_CONFIDENCE, 1.0 - max_distance / LOCATION_CONFIDENCE_FALLOFF_METERS)
    radius = max(avg_distance * RADIUS_DISPERSION_MULTIPLIER, MIN_AFFECTED_RADIUS_METERS)

    logger.debug(
        "Inferred centre (%.5f, %.5f) from %d points: max=%.0fm avg=%.0fm conf=%.2f",
        center_lat, center_lon, len(points), max_distance, avg_distance, confidence,
    )
    return LocationEstimate(
        center=GeoPoint(lat=center_lat, lon=center_lon),
        confidence_score=min(confidence, 1.0),
        radius_meters=radius,
    )
