"""Monitoring area definitions for IncidentFusion.

Areas are fixed, named lat/lon rectangles loaded from YAML. They bucket
located posts and reports for the sentiment sweep.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from config.defaults import AREAS_FILE
from incidentfusion.models.posts import GeoPoint
from incidentfusion.models.sentiment import AreaBounds, AreaDefinition

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def area_slug(name: str) -> str:
    """Storage key for an area name: "Mission District" -> "mission_district"."""
    return _SLUG_RE.sub("_", name.lower()).strip("_")


def _parse_area(raw: Dict[str, Any]) -> AreaDefinition:
    bounds = raw["bounds"]
    center = GeoPoint.from_dict(raw.get("center"))
    area_bounds = AreaBounds(
        north=float(bounds["north"]),
        south=float(bounds["south"]),
        east=float(bounds["east"]),
        west=float(bounds["west"]),
    )
    if area_bounds.south > area_bounds.north or area_bounds.west > area_bounds.east:
        raise ValueError(f"Area {raw.get('name')!r} has inverted bounds")
    if center is None:
        center = GeoPoint(
            lat=(area_bounds.north + area_bounds.south) / 2.0,
            lon=(area_bounds.east + area_bounds.west) / 2.0,
        )
    return AreaDefinition(name=str(raw["name"]), bounds=area_bounds, center=center)


def load_areas(path: Optional[str] = None) -> List[AreaDefinition]:
    """Load area definitions from a YAML file.

    The file holds a top-level ``areas:`` list; each entry has ``name``,
    ``bounds`` (north/south/east/west) and an optional ``center`` (lat/lon).

    Args:
        path: YAML file path (defaults to config/areas.yaml).

    Returns:
        AreaDefinition list in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If an entry is malformed.
    """
    area_path = Path(path or AREAS_FILE)
    if not area_path.is_absolute() and not area_path.exists():
        # relative paths also resolve against the project root
        area_path = _PROJECT_ROOT / area_path
    with open(area_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    areas: List[AreaDefinition] = []
    for raw in data.get("areas", []):
        try:
            areas.append(_parse_area(raw))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed area entry in {area_path}: {raw!r}") from exc

    logger.debug("Loaded %d areas from %s", len(areas), area_path)
    return areas


class AreaManager:
    """Lookup helper over a fixed list of areas.

    Args:
        areas: Area definitions, in priority order for overlapping bounds.
    """

    def __init__(self, areas: Sequence[AreaDefinition]) -> None:
        self._areas = list(areas)

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "AreaManager":
        return cls(load_areas(path))

    def get_area_for_location(self, lat: float, lon: float) -> Optional[str]:
        """Name of the first area whose bounds contain the point (inclusive), or None."""
        for area in self._areas:
            if area.bounds.contains(lat, lon):
                return area.name
        return None

    def get_all_areas(self) -> List[AreaDefinition]:
        return list(self._areas)

    def get_area_bounds(self, name: str) -> Optional[AreaDefinition]:
        """Definition (bounds and centre) for the named area, or None if unknown."""
        for area in self._areas:
            if area.name == name:
                return area
        return None
