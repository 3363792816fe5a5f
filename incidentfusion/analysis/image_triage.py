"""Citizen image report triage for IncidentFusion.

Pure parsing, moderation and mapping logic for vision-model output. The
vision call itself lives in incidentfusion.agents.image_agent.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

from config.defaults import (
    DEFAULT_IMAGE_CONFIDENCE,
    DEFAULT_IMAGE_SEVERITY_SCORE,
    FALLBACK_IMAGE_CONFIDENCE,
    HIGH_PRIORITY_SEVERITY_SCORE,
    MAX_IMAGE_TEXT_CHARS,
    MODERATION_REVIEW_CONFIDENCE,
)
from incidentfusion.clients.llm_client import extract_json_object
from incidentfusion.models.events import EventLocation
from incidentfusion.models.image import (
    IMAGE_CATEGORIES,
    SAFETY_LEVELS,
    TIMES_OF_DAY,
    ImageAnalysisResult,
    ImageMetadata,
    ImageReportEvent,
    ModerationResult,
)

logger = logging.getLogger(__name__)

# Description keywords that make an image unsuitable for publication
INAPPROPRIATE_KEYWORDS = ("violence", "weapon", "blood", "explicit", "inappropriate")

_CATEGORY_TO_EVENT_TYPE: Dict[str, str] = {
    "accident": "traffic",
    "waterlogging": "weather",
    "celebration": "celebration",
    "construction": "construction",
    "fire": "emergency",
    "protest": "emergency",
    "vandalism": "emergency",
    "infrastructure": "construction",
    "weather": "weather",
    "other": "emergency",
}

MAX_REPORT_TAG_OBJECTS = 5
REPORT_TITLE_DESCRIPTION_CHARS = 50


def fallback_image_analysis() -> ImageAnalysisResult:
    """Analysis used when the vision response has no usable JSON."""
    return ImageAnalysisResult(
        description="Image uploaded by user - manual review required",
        category="other",
        severity_score=DEFAULT_IMAGE_SEVERITY_SCORE,
        confidence=FALLBACK_IMAGE_CONFIDENCE,
        safety_level="caution",
        suggested_actions=["Manual review required", "Contact user for additional details"],
    )


# ── Field validators ───────────────────────────────────────────────────────────

def _sanitize(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip()[:MAX_IMAGE_TEXT_CHARS]


def _sanitize_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [_sanitize(item) for item in value]


def _validate_severity(value: Any) -> int:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_IMAGE_SEVERITY_SCORE
    if math.isnan(score):
        return DEFAULT_IMAGE_SEVERITY_SCORE
    # clamp before int() so infinities map to the bounds
    return int(max(1.0, min(5.0, score)))


def _validate_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_IMAGE_CONFIDENCE
    if not math.isfinite(value) or not value:
        return DEFAULT_IMAGE_CONFIDENCE
    return max(0.0, min(1.0, float(value)))


def parse_image_analysis(text: Optional[str]) -> ImageAnalysisResult:
    """Parse a vision-model response into an ImageAnalysisResult.

    Unknown categories become "other", unknown safety levels "caution", and
    the severity score is clamped to 1-5. A response without a JSON object
    yields the manual-review fallback.

    Args:
        text: Raw vision-model response.

    Returns:
        Validated ImageAnalysisResult.
    """
    parsed = extract_json_object(text)
    if parsed is None:
        logger.error("Image analysis parse failed. Raw response (first 200 chars): %.200s", text)
        return fallback_image_analysis()

    category = parsed.get("category")
    safety_level = parsed.get("safetyLevel", parsed.get("safety_level"))
    time_of_day = parsed.get("timeOfDayEstimate", parsed.get("time_of_day_estimate"))
    weather = _sanitize(parsed.get("weatherConditions", parsed.get("weather_conditions")))

    return ImageAnalysisResult(
        description=_sanitize(parsed.get("description") or "Image analysis completed"),
        category=category if category in IMAGE_CATEGORIES else "other",
        severity_score=_validate_severity(parsed.get("severityScore", parsed.get("severity_score"))),
        confidence=_validate_confidence(parsed.get("confidence")),
        safety_level=safety_level if safety_level in SAFETY_LEVELS else "caution",
        extracted_text=_sanitize_list(parsed.get("extractedText", parsed.get("extracted_text"))),
        detected_objects=_sanitize_list(parsed.get("detectedObjects", parsed.get("detected_objects"))),
        suggested_actions=_sanitize_list(parsed.get("suggestedActions", parsed.get("suggested_actions"))),
        location_clues=_sanitize_list(parsed.get("locationClues", parsed.get("location_clues"))),
        time_of_day_estimate=time_of_day if time_of_day in TIMES_OF_DAY else None,
        weather_conditions=weather or None,
    )


# ── Moderation ─────────────────────────────────────────────────────────────────

def check_image_safety(analysis: ImageAnalysisResult) -> ModerationResult:
    """Decide whether an analyzed image can be published.

    Any inappropriate-content keyword in the description rejects the image.
    Otherwise any flag, or confidence below 0.5, sends it to review.

    Args:
        analysis: Parsed image analysis.

    Returns:
        ModerationResult with flags and action.
    """
    flags: List[str] = []
    description = analysis.description.lower()
    for keyword in INAPPROPRIATE_KEYWORDS:
        if keyword in description:
            flags.append(f"inappropriate_content_{keyword}")

    if (
        analysis.severity_score >= HIGH_PRIORITY_SEVERITY_SCORE
        and analysis.safety_level == "emergency"
    ):
        flags.append("high_priority_emergency")

    if any(flag.startswith("inappropriate_content") for flag in flags):
        action = "reject"
    elif flags or analysis.confidence < MODERATION_REVIEW_CONFIDENCE:
        action = "review"
    else:
        action = "approve"

    return ModerationResult(is_appropriate=action != "reject", action=action, flags=flags)


# ── Event mapping ──────────────────────────────────────────────────────────────

def map_category_to_event_type(category: str) -> str:
    return _CATEGORY_TO_EVENT_TYPE.get(category, "emergency")


def severity_score_to_level(score: int) -> str:
    if score >= 5:
        return "critical"
    if score >= 4:
        return "high"
    if score >= 3:
        return "medium"
    return "low"


def sentiment_from_severity(score: int) -> float:
    """Map severity 1-5 onto sentiment 1.0 .. -1.0 (higher severity, more negative)."""
    return (3 - score) / 2


def build_image_report_event(
    analysis: ImageAnalysisResult,
    moderation: ModerationResult,
    metadata: ImageMetadata,
) -> Optional[ImageReportEvent]:
    """Derive a report event from an analyzed and moderated image.

    Args:
        analysis: Parsed image analysis.
        moderation: Moderation verdict.
        metadata: Upload metadata.

    Returns:
        ImageReportEvent, or None when moderation rejected the image.
    """
    if not moderation.is_appropriate:
        return None

    location = None
    if metadata.location is not None:
        location = EventLocation(lat=metadata.location.lat, lon=metadata.location.lon)

    return ImageReportEvent(
        title=f"User Report: {analysis.description[:REPORT_TITLE_DESCRIPTION_CHARS]}...",
        description=analysis.description,
        event_type=map_category_to_event_type(analysis.category),
        severity=severity_score_to_level(analysis.severity_score),
        sentiment_score=sentiment_from_severity(analysis.severity_score),
        status="monitoring" if moderation.action == "review" else "active",
        confidence=analysis.confidence,
        user_id=metadata.user_id,
        location=location,
        media_urls=[metadata.image_url],
        tags=[
            "user-report",
            "image-analysis",
            analysis.category,
            *analysis.detected_objects[:MAX_REPORT_TAG_OBJECTS],
        ],
    )
