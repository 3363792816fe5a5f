"""Unit tests for incidentfusion.analysis.area_manager.

Covers:
- load_areas: shipped YAML, default centre, malformed and inverted entries
- AreaManager: point lookup (inclusive, first match), name lookup
- area_slug
"""

from __future__ import annotations

import pytest

from incidentfusion.analysis.area_manager import AreaManager, area_slug, load_areas


class TestLoadAreas:
    def test_shipped_areas(self, areas_file):
        areas = load_areas(str(areas_file))
        names = [a.name for a in areas]
        assert names == [
            "Mission District",
            "SOMA District",
            "Financial District",
            "Castro District",
            "Chinatown",
            "Tenderloin",
        ]
        mission = areas[0]
        assert mission.bounds.north == pytest.approx(37.7650)
        assert mission.center.lat == pytest.approx(37.7599)

    def test_centre_defaults_to_midpoint(self, tmp_path):
        path = tmp_path / "areas.yaml"
        path.write_text(
            "areas:\n"
            "  - name: Box\n"
            "    bounds: {north: 2.0, south: 0.0, east: 4.0, west: 2.0}\n",
            encoding="utf-8",
        )
        area = load_areas(str(path))[0]
        assert (area.center.lat, area.center.lon) == (1.0, 3.0)

    def test_missing_bounds_raises_value_error(self, tmp_path):
        path = tmp_path / "areas.yaml"
        path.write_text("areas:\n  - name: Broken\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_areas(str(path))

    def test_inverted_bounds_raise(self, tmp_path):
        path = tmp_path / "areas.yaml"
        path.write_text(
            "areas:\n"
            "  - name: Upside\n"
            "    bounds: {north: 0.0, south: 2.0, east: 4.0, west: 2.0}\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError):
            load_areas(str(path))

    def test_empty_file_yields_no_areas(self, tmp_path):
        path = tmp_path / "areas.yaml"
        path.write_text("", encoding="utf-8")
        assert load_areas(str(path)) == []

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_areas(str(tmp_path / "nope.yaml"))


class TestAreaManager:
    def setup_method(self):
        from pathlib import Path

        self.manager = AreaManager.from_file(
            str(Path(__file__).parent.parent.parent / "config" / "areas.yaml")
        )

    def test_point_inside_area(self):
        assert self.manager.get_area_for_location(37.7599, -122.4148) == "Mission District"

    def test_point_on_edge_is_inside(self):
        assert self.manager.get_area_for_location(37.7650, -122.4196) == "Mission District"

    def test_point_outside_all_areas(self):
        assert self.manager.get_area_for_location(37.70, -122.50) is None

    def test_overlap_resolved_by_file_order(self):
        """SOMA is listed before Tenderloin, so their overlap belongs to SOMA."""
        assert self.manager.get_area_for_location(37.7840, -122.4120) == "SOMA District"

    def test_get_area_bounds(self):
        area = self.manager.get_area_bounds("Chinatown")
        assert area is not None
        assert area.bounds.contains(area.center.lat, area.center.lon)
        assert self.manager.get_area_bounds("Atlantis") is None

    def test_get_all_areas_is_a_copy(self):
        areas = self.manager.get_all_areas()
        areas.clear()
        assert len(self.manager.get_all_areas()) == 6


class TestAreaSlug:
    @pytest.mark.parametrize(
        "name, slug",
        [
            ("Mission District", "mission_district"),
            ("SOMA District", "soma_district"),
            ("Chinatown", "chinatown"),
            ("  North / South Beach ", "north_south_beach"),
        ],
    )
    def test_slug(self, name, slug):
        assert area_slug(name) == slug
