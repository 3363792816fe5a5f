"""Event synthesis data models for IncidentFusion.

Defines the location estimate derived from a cluster of posts and the
synthesized event produced once per qualifying cluster.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from incidentfusion.models.posts import GeoPoint

EVENT_TYPES = ("traffic", "power", "celebration", "emergency", "construction", "weather")
SEVERITY_LEVELS = ("low", "medium", "high", "critical")

# An ordered list of post ids judged to describe the same occurrence
DuplicateGroup = List[str]


@dataclass
class LocationEstimate:
    """Representative centre, confidence and affected radius for a cluster."""

    center: GeoPoint
    confidence_score: float   # [0.0, 1.0]
    radius_meters: float      # >= 500 for multi-point clusters


@dataclass
class EventLocation:
    """Event coordinates plus optional reverse-geocoded address parts."""

    lat: float
    lon: float
    address: Optional[str] = None
    neighborhood: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


@dataclass
class SynthesizedEvent:
    """One de-duplicated, geolocated, severity-ranked event built from a post cluster."""

    title: str
    summary: str
    suggested_action: str
    event_type: str          # one of EVENT_TYPES
    severity: str            # one of SEVERITY_LEVELS
    confidence: float        # min(collaborator confidence, location confidence)
    location: EventLocation
    affected_radius: float   # metres
    estimated_duration: Optional[str] = None
    key_insights: List[str] = field(default_factory=list)
    source_post_ids: List[str] = field(default_factory=list)
    duplicate_groups: List[DuplicateGroup] = field(default_factory=list)
    cluster_id: str = ""
