"""Unit tests for incidentfusion.analysis.image_triage and agents.image_agent.

Covers:
- parse_image_analysis: validation, clamping, sanitization, fallback
- check_image_safety: reject / review / approve
- category, severity and sentiment mapping
- build_image_report_event: title, status, tags, location, rejection
- ImageAnalyzer.triage end to end with a mocked vision collaborator
"""

from __future__ import annotations

import json

import pytest

from incidentfusion.agents.base import AgentStatus
from incidentfusion.agents.image_agent import ImageAnalyzer
from incidentfusion.analysis.image_triage import (
    build_image_report_event,
    check_image_safety,
    fallback_image_analysis,
    map_category_to_event_type,
    parse_image_analysis,
    sentiment_from_severity,
    severity_score_to_level,
)
from incidentfusion.models.image import ImageAnalysisResult, ImageMetadata, ModerationResult
from incidentfusion.models.posts import GeoPoint


def _analysis(**overrides) -> ImageAnalysisResult:
    fields = dict(
        description="Flooded intersection with stalled car",
        category="waterlogging",
        severity_score=3,
        confidence=0.8,
        safety_level="caution",
        detected_objects=["car", "water", "traffic light", "sign", "person", "tree"],
    )
    fields.update(overrides)
    return ImageAnalysisResult(**fields)


@pytest.fixture
def metadata() -> ImageMetadata:
    return ImageMetadata(
        image_url="https://cdn.example.org/uploads/abc.jpg",
        user_id="citizen-42",
        location=GeoPoint(lat=37.7599, lon=-122.4148),
        mime_type="image/png",
    )


# ── parse_image_analysis ─────────────────────────────────────────────────────────

class TestParseImageAnalysis:
    def test_valid_response(self):
        text = json.dumps(
            {
                "description": "Car crash at intersection",
                "category": "accident",
                "severityScore": 4,
                "confidence": 0.85,
                "safetyLevel": "danger",
                "extractedText": ["STOP"],
                "detectedObjects": ["car", "car"],
                "suggestedActions": ["Dispatch SFPD"],
                "locationClues": ["Mission St"],
                "timeOfDayEstimate": "night",
                "weatherConditions": "rainy",
            }
        )
        analysis = parse_image_analysis(text)
        assert analysis.category == "accident"
        assert analysis.severity_score == 4
        assert analysis.safety_level == "danger"
        assert analysis.extracted_text == ["STOP"]
        assert analysis.time_of_day_estimate == "night"
        assert analysis.weather_conditions == "rainy"

    def test_invalid_values_defaulted(self):
        analysis = parse_image_analysis(
            '{"category": "ufo", "severityScore": 11, "safetyLevel": "meh", "timeOfDayEstimate": "noonish"}'
        )
        assert analysis.category == "other"
        assert analysis.severity_score == 5
        assert analysis.safety_level == "caution"
        assert analysis.time_of_day_estimate is None
        assert analysis.confidence == pytest.approx(0.7)
        assert analysis.description == "Image analysis completed"

    def test_non_numeric_severity_defaults(self):
        assert parse_image_analysis('{"severityScore": "bad"}').severity_score == 2
        assert parse_image_analysis('{"severityScore": 0}').severity_score == 1

    @pytest.mark.parametrize(
        "literal, expected",
        [("Infinity", 5), ("-Infinity", 1), ("NaN", 2), ('"inf"', 5), ("4.9", 4)],
    )
    def test_severity_extremes_clamped(self, literal, expected):
        analysis = parse_image_analysis(f'{{"category": "fire", "severityScore": {literal}}}')
        assert analysis.severity_score == expected

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_confidence_takes_default(self, literal):
        analysis = parse_image_analysis(f'{{"category": "fire", "confidence": {literal}}}')
        assert analysis.confidence == pytest.approx(0.7)

    def test_strings_sanitized_to_500_chars(self):
        analysis = parse_image_analysis(json.dumps({"description": "d" * 900, "extractedText": ["t" * 700, 5]}))
        assert len(analysis.description) == 500
        assert analysis.extracted_text == ["t" * 500, ""]

    def test_snake_case_keys(self):
        analysis = parse_image_analysis('{"severity_score": 3, "safety_level": "safe"}')
        assert analysis.severity_score == 3
        assert analysis.safety_level == "safe"

    def test_unparseable_returns_fallback(self):
        analysis = parse_image_analysis("I see a picture of a street.")
        assert analysis == fallback_image_analysis()
        assert analysis.confidence == pytest.approx(0.3)
        assert analysis.severity_score == 2
        assert analysis.category == "other"


# ── check_image_safety ───────────────────────────────────────────────────────────

class TestCheckImageSafety:
    def test_clean_confident_image_approved(self):
        moderation = check_image_safety(_analysis())
        assert moderation.action == "approve"
        assert moderation.is_appropriate
        assert moderation.flags == []

    def test_inappropriate_keyword_rejected(self):
        moderation = check_image_safety(_analysis(description="Person holding a WEAPON near blood"))
        assert moderation.action == "reject"
        assert not moderation.is_appropriate
        assert "inappropriate_content_weapon" in moderation.flags
        assert "inappropriate_content_blood" in moderation.flags

    def test_low_confidence_goes_to_review(self):
        moderation = check_image_safety(_analysis(confidence=0.4))
        assert moderation.action == "review"
        assert moderation.is_appropriate

    def test_high_priority_emergency_flagged_for_review(self):
        moderation = check_image_safety(_analysis(severity_score=5, safety_level="emergency"))
        assert moderation.flags == ["high_priority_emergency"]
        assert moderation.action == "review"

    def test_fallback_analysis_goes_to_review(self):
        assert check_image_safety(fallback_image_analysis()).action == "review"


# ── Mapping helpers ──────────────────────────────────────────────────────────────

class TestMappings:
    @pytest.mark.parametrize(
        "category, event_type",
        [
            ("accident", "traffic"),
            ("waterlogging", "weather"),
            ("fire", "emergency"),
            ("infrastructure", "construction"),
            ("celebration", "celebration"),
            ("unknown", "emergency"),
        ],
    )
    def test_category_to_event_type(self, category, event_type):
        assert map_category_to_event_type(category) == event_type

    @pytest.mark.parametrize(
        "score, level", [(1, "low"), (2, "low"), (3, "medium"), (4, "high"), (5, "critical")]
    )
    def test_severity_level(self, score, level):
        assert severity_score_to_level(score) == level

    def test_sentiment_from_severity(self):
        assert sentiment_from_severity(1) == pytest.approx(1.0)
        assert sentiment_from_severity(3) == pytest.approx(0.0)
        assert sentiment_from_severity(5) == pytest.approx(-1.0)


# ── build_image_report_event ─────────────────────────────────────────────────────

class TestBuildImageReportEvent:
    def test_approved_event(self, metadata):
        analysis = _analysis()
        event = build_image_report_event(analysis, check_image_safety(analysis), metadata)

        assert event.title == "User Report: Flooded intersection with stalled car..."
        assert event.event_type == "weather"
        assert event.severity == "medium"
        assert event.sentiment_score == pytest.approx(0.0)
        assert event.status == "active"
        assert event.user_id == "citizen-42"
        assert event.media_urls == ["https://cdn.example.org/uploads/abc.jpg"]
        assert event.location.lat == pytest.approx(37.7599)

    def test_tags_include_first_five_objects(self, metadata):
        analysis = _analysis()
        event = build_image_report_event(analysis, check_image_safety(analysis), metadata)
        assert event.tags == [
            "user-report", "image-analysis", "waterlogging",
            "car", "water", "traffic light", "sign", "person",
        ]

    def test_title_uses_first_fifty_chars(self, metadata):
        analysis = _analysis(description="x" * 80)
        event = build_image_report_event(analysis, check_image_safety(analysis), metadata)
        assert event.title == "User Report: " + "x" * 50 + "..."

    def test_review_status_is_monitoring(self, metadata):
        analysis = _analysis(confidence=0.2)
        event = build_image_report_event(analysis, check_image_safety(analysis), metadata)
        assert event.status == "monitoring"

    def test_rejected_yields_no_event(self, metadata):
        moderation = ModerationResult(is_appropriate=False, action="reject", flags=["x"])
        assert build_image_report_event(_analysis(), moderation, metadata) is None

    def test_no_upload_location(self):
        metadata = ImageMetadata(image_url="https://cdn.example.org/a.jpg")
        analysis = _analysis()
        event = build_image_report_event(analysis, check_image_safety(analysis), metadata)
        assert event.location is None
        assert event.user_id == "anonymous"


# ── ImageAnalyzer ────────────────────────────────────────────────────────────────

class TestImageAnalyzer:
    def test_triage_approved(self, mock_llm_client, metadata):
        mock_llm_client.call_with_image.return_value = json.dumps(
            {"description": "Fallen tree blocking lane", "category": "weather",
             "severityScore": 3, "confidence": 0.9, "safetyLevel": "caution"}
        )
        result = ImageAnalyzer(mock_llm_client).triage(b"\x89PNG...", metadata)

        assert result.status == AgentStatus.OK
        assert result.moderation.action == "approve"
        assert result.event.event_type == "weather"
        _, kwargs = mock_llm_client.call_with_image.call_args
        assert kwargs["mime_type"] == "image/png"

    def test_triage_rejected_is_partial(self, mock_llm_client, metadata):
        mock_llm_client.call_with_image.return_value = json.dumps(
            {"description": "Graphic violence on the street", "category": "other",
             "confidence": 0.9}
        )
        result = ImageAnalyzer(mock_llm_client).triage(b"jpeg", metadata)

        assert result.event is None
        assert result.moderation.action == "reject"
        assert result.status == AgentStatus.PARTIAL
        assert result.warnings

    def test_unparseable_vision_reply_uses_fallback(self, mock_llm_client, metadata):
        mock_llm_client.call_with_image.return_value = "Sorry, I can't tell."
        result = ImageAnalyzer(mock_llm_client).triage(b"jpeg", metadata)
        assert result.analysis.description.startswith("Image uploaded by user")
        assert result.event.status == "monitoring"
