"""Area sentiment data models for IncidentFusion.

Defines per-source and combined sentiment, the static area definitions used to
bucket reports, the per-area sweep result, and alert records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from incidentfusion.models.posts import GeoPoint

CLASSIFICATIONS = ("positive", "neutral", "negative")
TREND_DIRECTIONS = ("up", "down", "stable")


@dataclass
class SentimentAnalysis:
    """Sentiment for one source (social or citizen reports) or the combined area."""

    score: float                 # [-1.0, 1.0]
    classification: str          # "positive", "neutral", "negative"
    confidence: float            # [0.0, 1.0]
    keywords: List[str] = field(default_factory=list)
    summary: str = ""

    @classmethod
    def neutral(cls, confidence: float = 0.0, summary: str = "") -> "SentimentAnalysis":
        """Zero-score neutral analysis used for empty sources and fallbacks."""
        return cls(score=0.0, classification="neutral", confidence=confidence, summary=summary)


@dataclass(frozen=True)
class AreaBounds:
    """Axis-aligned lat/lon rectangle."""

    north: float
    south: float
    east: float
    west: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lon <= self.east


@dataclass(frozen=True)
class AreaDefinition:
    """A fixed, named monitoring rectangle (read-only configuration)."""

    name: str
    bounds: AreaBounds
    center: GeoPoint


@dataclass
class SourceCounts:
    """Number of records per source that fed an area result."""

    social: int = 0
    user_reports: int = 0
    civic: int = 0


@dataclass
class AreaSentiment:
    """Combined sentiment for one area in one sweep."""

    area: str
    coordinates: GeoPoint
    bounds: AreaBounds
    sentiment: SentimentAnalysis
    report_count: int
    sources: SourceCounts
    trend_direction: str         # "up", "down", "stable"
    last_updated: datetime


@dataclass
class SentimentAlert:
    """An alert raised for an area that crossed a sentiment threshold."""

    area: str
    alert_type: str              # "negative_sentiment" or "sentiment_decline"
    score: float
    summary: str
    report_count: int
    severity: str                # "high" or "medium"
    timestamp: Optional[datetime] = None
