"""Image report triage data models for IncidentFusion."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from incidentfusion.models.events import EventLocation
from incidentfusion.models.posts import GeoPoint

IMAGE_CATEGORIES = (
    "accident",
    "waterlogging",
    "celebration",
    "construction",
    "fire",
    "protest",
    "vandalism",
    "infrastructure",
    "weather",
    "other",
)
SAFETY_LEVELS = ("safe", "caution", "danger", "emergency")
TIMES_OF_DAY = ("morning", "afternoon", "evening", "night")


@dataclass
class ImageMetadata:
    """Upload metadata accompanying a citizen image report."""

    image_url: str
    user_id: str = "anonymous"
    upload_timestamp: Optional[datetime] = None
    file_size: int = 0
    location: Optional[GeoPoint] = None
    mime_type: str = "image/jpeg"


@dataclass
class ImageAnalysisResult:
    """Structured vision analysis of a citizen image."""

    description: str
    category: str                # one of IMAGE_CATEGORIES
    severity_score: int          # 1-5
    confidence: float            # [0.0, 1.0]
    safety_level: str            # one of SAFETY_LEVELS
    extracted_text: List[str] = field(default_factory=list)
    detected_objects: List[str] = field(default_factory=list)
    suggested_actions: List[str] = field(default_factory=list)
    location_clues: List[str] = field(default_factory=list)
    time_of_day_estimate: Optional[str] = None
    weather_conditions: Optional[str] = None


@dataclass
class ModerationResult:
    """Content-moderation verdict for an analyzed image."""

    is_appropriate: bool
    action: str                  # "approve", "review", "reject"
    flags: List[str] = field(default_factory=list)


@dataclass
class ImageReportEvent:
    """An event record derived from an approved or review-pending image report."""

    title: str
    description: str
    event_type: str
    severity: str
    sentiment_score: float
    status: str                  # "active" or "monitoring"
    confidence: float
    user_id: str
    location: Optional[EventLocation] = None
    media_urls: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
