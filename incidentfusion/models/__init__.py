"""IncidentFusion data models."""

from incidentfusion.models.events import (
    EVENT_TYPES,
    SEVERITY_LEVELS,
    EventLocation,
    LocationEstimate,
    SynthesizedEvent,
)
from incidentfusion.models.image import (
    IMAGE_CATEGORIES,
    SAFETY_LEVELS,
    ImageAnalysisResult,
    ImageMetadata,
    ImageReportEvent,
    ModerationResult,
)
from incidentfusion.models.posts import Engagement, GeoPoint, Post, PostCluster, UserReport
from incidentfusion.models.sentiment import (
    AreaBounds,
    AreaDefinition,
    AreaSentiment,
    SentimentAlert,
    SentimentAnalysis,
    SourceCounts,
)

__all__ = [
    "EVENT_TYPES",
    "SEVERITY_LEVELS",
    "IMAGE_CATEGORIES",
    "SAFETY_LEVELS",
    "AreaBounds",
    "AreaDefinition",
    "AreaSentiment",
    "Engagement",
    "EventLocation",
    "GeoPoint",
    "ImageAnalysisResult",
    "ImageMetadata",
    "ImageReportEvent",
    "LocationEstimate",
    "ModerationResult",
    "Post",
    "PostCluster",
    "SentimentAlert",
    "SentimentAnalysis",
    "SourceCounts",
    "SynthesizedEvent",
    "UserReport",
]
