"""Shared pytest fixtures for IncidentFusion tests.

Conventions:
- Fixture data lives in tests/fixtures/ as static JSON/text files
- mock_llm_client returns pre-defined text without real API calls
- No real external HTTP calls are made in any test
- All file writes go to pytest's tmp_path
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from incidentfusion.models.posts import Engagement, GeoPoint, Post, PostCluster, UserReport
from incidentfusion.models.sentiment import AreaBounds, AreaDefinition, SentimentAnalysis

_FIXTURES_DIR = Path(__file__).parent / "fixtures"
_AREAS_FILE = Path(__file__).parent.parent / "config" / "areas.yaml"

BASE_TIME = datetime(2024, 6, 1, 17, 0, 0, tzinfo=timezone.utc)

# Mission District centre
MISSION_LAT = 37.7599
MISSION_LON = -122.4148


def make_post(
    post_id: str,
    text: str,
    minutes: float = 0.0,
    lat: Optional[float] = MISSION_LAT,
    lon: Optional[float] = MISSION_LON,
    source: str = "twitter",
    base: datetime = BASE_TIME,
) -> Post:
    """Build a Post offset ``minutes`` from ``base``; pass lat=None for an unlocated post."""
    location = GeoPoint(lat=lat, lon=lon) if lat is not None and lon is not None else None
    return Post(
        id=post_id,
        text=text,
        timestamp=base + timedelta(minutes=minutes),
        source=source,
        location=location,
        engagement=Engagement(likes=1),
    )


def make_report(
    report_id: str,
    title: str,
    description: str,
    minutes: float = 0.0,
    lat: Optional[float] = MISSION_LAT,
    lon: Optional[float] = MISSION_LON,
    base: datetime = BASE_TIME,
) -> UserReport:
    location = GeoPoint(lat=lat, lon=lon) if lat is not None and lon is not None else None
    return UserReport(
        id=report_id,
        title=title,
        description=description,
        timestamp=base + timedelta(minutes=minutes),
        category="infrastructure",
        location=location,
    )


def sentiment_json(
    score: float,
    classification: str,
    confidence: float,
    keywords: Optional[List[str]] = None,
    summary: str = "",
) -> str:
    """Serialize a collaborator-style sentiment response."""
    return json.dumps(
        {
            "score": score,
            "classification": classification,
            "confidence": confidence,
            "keywords": keywords or [],
            "summary": summary,
        }
    )


# ── Raw fixture data loaders ─────────────────────────────────────────────────────

@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    return _FIXTURES_DIR


@pytest.fixture(scope="session")
def areas_file() -> Path:
    """Path to the shipped area definitions."""
    return _AREAS_FILE


@pytest.fixture(scope="session")
def clusters_raw() -> Dict[str, Any]:
    """Raw cluster batch: one synthesizable, one too small, one unlocated."""
    with open(_FIXTURES_DIR / "sample_clusters.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture(scope="session")
def synthesis_response_text() -> str:
    """Fenced collaborator synthesis reply wrapped in prose."""
    return (_FIXTURES_DIR / "sample_synthesis_response.txt").read_text(encoding="utf-8")


# ── Model object fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def traffic_posts() -> List[Post]:
    """Three located posts about one traffic jam; the first two are near-identical."""
    return [
        make_post("p1", "Traffic jam on the 101 south", minutes=0),
        make_post("p2", "Traffic jam on 101 south", minutes=10, lat=37.7605, lon=-122.4152),
        make_post(
            "p3",
            "Everything stopped near Cesar Chavez, looks like a crash",
            minutes=20,
            lat=37.7480,
            lon=-122.4130,
        ),
    ]


@pytest.fixture
def traffic_cluster(traffic_posts) -> PostCluster:
    return PostCluster(cluster_id="cluster-traffic-101", posts=traffic_posts)


@pytest.fixture
def mission_area() -> AreaDefinition:
    return AreaDefinition(
        name="Mission District",
        bounds=AreaBounds(north=37.7650, south=37.7548, east=-122.4100, west=-122.4196),
        center=GeoPoint(lat=37.7599, lon=-122.4148),
    )


@pytest.fixture
def tenderloin_area() -> AreaDefinition:
    return AreaDefinition(
        name="Tenderloin",
        bounds=AreaBounds(north=37.7871, south=37.7803, east=-122.4082, west=-122.4178),
        center=GeoPoint(lat=37.7837, lon=-122.4130),
    )


# ── Mock LLM client ──────────────────────────────────────────────────────────────

@pytest.fixture
def mock_llm_client(synthesis_response_text):
    """Mock LLMClient that returns pre-defined text without real API calls.

    call() returns the fixture synthesis reply by default; tests override
    return_value or side_effect as needed.
    """
    from incidentfusion.clients.llm_client import LLMClient

    client = MagicMock(spec=LLMClient)
    client.backend = "mock"
    client.call.return_value = synthesis_response_text
    client.call_with_image.return_value = "{}"
    return client


@pytest.fixture
def mock_geocoder():
    """Reverse geocoder stub returning a fixed Mission District address."""
    from incidentfusion.clients.geocoding_client import GeocodingClient

    geocoder = MagicMock(spec=GeocodingClient)
    geocoder.reverse.return_value = {
        "address": "Cesar Chavez St, Mission District, San Francisco, CA, USA",
        "neighborhood": "Mission District",
        "city": "San Francisco",
        "state": "California",
        "country": "United States",
    }
    return geocoder


class StubSentimentAnalyzer:
    """Deterministic per-source analyzer for sweep tests.

    Args:
        social: Analysis returned for every non-empty post batch.
        reports: Analysis returned for every non-empty report batch.
        fail_for: Area name whose mood summary raises RuntimeError.
    """

    def __init__(
        self,
        social: SentimentAnalysis,
        reports: SentimentAnalysis,
        fail_for: Optional[str] = None,
    ) -> None:
        self.social = social
        self.reports = reports
        self.fail_for = fail_for

    def analyze_social_posts(self, posts):
        return self.social if posts else SentimentAnalysis.neutral()

    def analyze_user_reports(self, reports):
        return self.reports if reports else SentimentAnalysis.neutral()

    def generate_mood_summary(self, social, reports, area):
        if area == self.fail_for:
            raise RuntimeError("collaborator exploded")
        return f"Mood in {area}"


@pytest.fixture
def stub_analyzer_factory():
    return StubSentimentAnalyzer


# ── Pipeline config fixture ──────────────────────────────────────────────────────

@pytest.fixture
def test_pipeline_config(tmp_path):
    """PipelineConfig wired to temp paths, sequential workers, no geocoding."""
    from config.settings import PipelineConfig

    return PipelineConfig(
        llm_backend="ollama",
        synthesis_max_workers=1,
        sweep_max_workers=1,
        geocoding_enabled=False,
        areas_file=str(_AREAS_FILE),
        score_store_path=str(tmp_path / "scores.json"),
        output_root=str(tmp_path / "runs"),
        log_level="WARNING",
    )


@pytest.fixture
def test_pipeline_context(test_pipeline_config, tmp_path):
    """PipelineContext wired to a temp output directory for isolation."""
    from incidentfusion.models.pipeline import PipelineContext

    return PipelineContext(
        config=test_pipeline_config,
        run_id="20240601_170000_test",
        output_dir=tmp_path / "outputs",
    )
