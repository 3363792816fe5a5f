"""Unit tests for incidentfusion.analysis.location_inferencer.

Covers:
- single located post: fixed confidence and radius
- multiple posts: bounding-box centre, confidence falloff, radius floor
- unlocated posts ignored; no located posts raises NoLocationData
"""

from __future__ import annotations

import pytest
from conftest import make_post

from incidentfusion.analysis.location_inferencer import infer_central_location
from incidentfusion.exceptions import NoLocationData
from incidentfusion.utils.geo_utils import haversine_m


class TestInferCentralLocation:
    def test_single_located_post(self):
        estimate = infer_central_location([make_post("a", "x", lat=37.76, lon=-122.41)])
        assert estimate.center.lat == pytest.approx(37.76)
        assert estimate.center.lon == pytest.approx(-122.41)
        assert estimate.confidence_score == pytest.approx(0.5)
        assert estimate.radius_meters == pytest.approx(1000.0)

    def test_unlocated_posts_are_ignored(self):
        posts = [
            make_post("a", "x", lat=None),
            make_post("b", "y", lat=37.76, lon=-122.41),
            make_post("c", "z", lat=None),
        ]
        estimate = infer_central_location(posts)
        assert estimate.confidence_score == pytest.approx(0.5)
        assert estimate.radius_meters == pytest.approx(1000.0)

    def test_no_located_posts_raises(self):
        with pytest.raises(NoLocationData):
            infer_central_location([make_post("a", "x", lat=None), make_post("b", "y", lat=None)])

    def test_empty_input_raises(self):
        with pytest.raises(NoLocationData):
            infer_central_location([])

    def test_two_points_one_km_apart(self):
        """Centre is the midpoint; each point is ~500 m away."""
        posts = [
            make_post("a", "x", lat=37.7600, lon=-122.4150),
            make_post("b", "y", lat=37.7690, lon=-122.4150),
        ]
        estimate = infer_central_location(posts)
        half = haversine_m(37.7645, -122.4150, 37.7690, -122.4150)

        assert estimate.center.lat == pytest.approx(37.7645)
        assert estimate.center.lon == pytest.approx(-122.4150)
        assert estimate.confidence_score == pytest.approx(1.0 - half / 5000.0)
        assert estimate.radius_meters == pytest.approx(half * 1.5)

    def test_tight_cluster_uses_radius_floor(self):
        posts = [
            make_post("a", "x", lat=37.76000, lon=-122.41500),
            make_post("b", "y", lat=37.76005, lon=-122.41505),
        ]
        estimate = infer_central_location(posts)
        assert estimate.radius_meters == pytest.approx(500.0)
        assert estimate.confidence_score > 0.99

    def test_co_located_posts_are_fully_confident(self):
        posts = [
            make_post("a", "x", lat=37.7599, lon=-122.4148),
            make_post("b", "y", lat=37.7599, lon=-122.4148),
            make_post("c", "z", lat=37.7599, lon=-122.4148),
        ]
        estimate = infer_central_location(posts)
        assert estimate.center.lat == 37.7599
        assert estimate.center.lon == -122.4148
        assert estimate.radius_meters == 500.0
        assert estimate.confidence_score == 1.0

    def test_dispersed_cluster_uses_confidence_floor(self):
        """Points ~20 km apart push confidence to its 0.1 floor."""
        posts = [
            make_post("a", "x", lat=37.70, lon=-122.45),
            make_post("b", "y", lat=37.88, lon=-122.45),
        ]
        estimate = infer_central_location(posts)
        assert estimate.confidence_score == pytest.approx(0.1)

    def test_confidence_within_unit_interval(self, traffic_posts):
        estimate = infer_central_location(traffic_posts)
        assert 0.0 <= estimate.confidence_score <= 1.0
        assert estimate.radius_meters >= 500.0
