"""Unit tests for incidentfusion.utils.geo_utils.

Covers:
- haversine_km / haversine_m: known distances, zero distance, symmetry
- bounds_of / center_of_bounds: bounding-box centre, antimeridian handling
- bbox_contains: inclusive edges
"""

from __future__ import annotations

import pytest

from incidentfusion.utils.geo_utils import (
    bbox_contains,
    bounds_of,
    center_of_bounds,
    haversine_km,
    haversine_m,
)


class TestHaversine:
    def test_zero_distance(self):
        assert haversine_m(37.7749, -122.4194, 37.7749, -122.4194) == pytest.approx(0.0)

    def test_one_degree_latitude(self):
        """One degree of latitude is about 111.19 km on a 6371 km sphere."""
        assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, rel=1e-3)

    def test_sf_to_la(self):
        """San Francisco to Los Angeles is roughly 559 km."""
        assert haversine_km(37.7749, -122.4194, 34.0522, -118.2437) == pytest.approx(559, rel=0.01)

    def test_metres_is_km_times_thousand(self):
        km = haversine_km(37.76, -122.41, 37.77, -122.42)
        assert haversine_m(37.76, -122.41, 37.77, -122.42) == pytest.approx(km * 1000.0)

    def test_symmetric(self):
        assert haversine_m(1, 2, 3, 4) == pytest.approx(haversine_m(3, 4, 1, 2))


class TestCenterOfBounds:
    def test_bounds_of_points(self):
        assert bounds_of([(1.0, 5.0), (-2.0, 7.0), (0.5, 6.0)]) == (-2.0, 5.0, 1.0, 7.0)

    def test_bounds_of_empty_raises(self):
        with pytest.raises(ValueError):
            bounds_of([])

    def test_center_is_bbox_midpoint_not_mean(self):
        """Three points clustered at one corner still centre on the box midpoint."""
        points = [(0.0, 0.0), (0.0, 0.1), (1.0, 1.0)]
        lat, lon = center_of_bounds(points)
        assert lat == pytest.approx(0.5)
        assert lon == pytest.approx(0.5)

    def test_single_point(self):
        assert center_of_bounds([(37.76, -122.41)]) == pytest.approx((37.76, -122.41))

    def test_antimeridian_straddle(self):
        """Points at 179 E and 179 W centre on the antimeridian, not on Greenwich."""
        lat, lon = center_of_bounds([(10.0, 179.0), (12.0, -179.0)])
        assert lat == pytest.approx(11.0)
        assert abs(lon) == pytest.approx(180.0)

    def test_antimeridian_asymmetric(self):
        lat, lon = center_of_bounds([(0.0, 170.0), (0.0, -170.0), (0.0, -160.0)])
        # shifted span 170..200, midpoint 185 -> -175
        assert lon == pytest.approx(-175.0)


class TestBboxContains:
    def test_inside_and_edges(self):
        bbox = (37.0, -123.0, 38.0, -122.0)
        assert bbox_contains(37.5, -122.5, bbox)
        assert bbox_contains(37.0, -123.0, bbox)
        assert bbox_contains(38.0, -122.0, bbox)

    def test_outside(self):
        assert not bbox_contains(36.9, -122.5, (37.0, -123.0, 38.0, -122.0))
