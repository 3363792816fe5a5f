"""Input record models for IncidentFusion.

Posts and citizen reports are owned by the ingestion collaborator; the core only
reads them. ``from_dict`` constructors accept the collaborator's JSON shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from incidentfusion.utils.date_utils import parse_timestamp


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 coordinate in decimal degrees."""

    lat: float
    lon: float

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional["GeoPoint"]:
        """Build a GeoPoint from ``{lat, lon}``, ``{latitude, longitude}`` or ``{lat, lng}``.

        Returns None when the mapping is missing or incomplete.
        """
        if not raw:
            return None
        lat = raw.get("lat", raw.get("latitude"))
        lon = raw.get("lon", raw.get("lng", raw.get("longitude")))
        if lat is None or lon is None:
            return None
        return cls(lat=float(lat), lon=float(lon))


@dataclass(frozen=True)
class Engagement:
    """Social engagement counters attached to a post."""

    likes: int = 0
    shares: int = 0
    comments: int = 0

    @property
    def total(self) -> int:
        return self.likes + self.shares + self.comments


@dataclass(frozen=True)
class Post:
    """A single first-person signal (social-media mention or citizen post)."""

    id: str
    text: str
    timestamp: datetime
    source: str = "unknown"   # platform tag: twitter, facebook, nextdoor, reddit, ...
    location: Optional[GeoPoint] = None
    engagement: Engagement = field(default_factory=Engagement)
    user_id: str = ""
    media_urls: Tuple[str, ...] = ()
    hashtags: Tuple[str, ...] = ()
    mentions: Tuple[str, ...] = ()

    @property
    def timestamp_ms(self) -> int:
        """Timestamp as epoch milliseconds."""
        return int(round(self.timestamp.timestamp() * 1000))

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Post":
        """Build a Post from the ingestion collaborator's JSON record.

        Raises:
            KeyError: If ``id`` or ``timestamp`` is missing.
            ValueError: If the timestamp cannot be parsed.
        """
        engagement = raw.get("engagement") or {}
        return cls(
            id=str(raw["id"]),
            text=str(raw.get("text", "")),
            timestamp=parse_timestamp(raw["timestamp"]),
            source=str(raw.get("source", raw.get("platform", "unknown"))),
            location=GeoPoint.from_dict(raw.get("location")),
            engagement=Engagement(
                likes=int(engagement.get("likes", 0)),
                shares=int(engagement.get("shares", 0)),
                comments=int(engagement.get("comments", 0)),
            ),
            user_id=str(raw.get("userId", raw.get("user_id", ""))),
            media_urls=tuple(raw.get("mediaUrls", raw.get("media_urls", [])) or ()),
            hashtags=tuple(raw.get("hashtags", []) or ()),
            mentions=tuple(raw.get("mentions", []) or ()),
        )


@dataclass(frozen=True)
class UserReport:
    """A citizen report filed through the reporting app."""

    id: str
    title: str
    description: str
    timestamp: datetime
    category: str = ""
    location: Optional[GeoPoint] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "UserReport":
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title", "")),
            description=str(raw.get("description", "")),
            timestamp=parse_timestamp(raw["timestamp"]),
            category=str(raw.get("category", raw.get("eventType", ""))),
            location=GeoPoint.from_dict(raw.get("location")),
        )


@dataclass
class PostCluster:
    """A batch of posts submitted together for event synthesis."""

    cluster_id: str
    posts: List[Post] = field(default_factory=list)
    created_at: Optional[datetime] = None
    status: str = "pending"   # "pending", "processing", "completed", "failed"
    keywords: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "PostCluster":
        created = raw.get("createdAt", raw.get("created_at"))
        return cls(
            cluster_id=str(raw.get("id", raw.get("cluster_id", ""))),
            posts=[Post.from_dict(p) for p in raw.get("posts", [])],
            created_at=parse_timestamp(created) if created is not None else None,
            status=str(raw.get("status", "pending")),
            keywords=list(raw.get("keywords", [])),
        )
