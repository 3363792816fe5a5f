"""IncidentFusion — PipelineConfig and environment-based configuration loading.

All runtime configuration flows through PipelineConfig. No module-level globals,
no hard-coded values. API keys come exclusively from environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from config.defaults import (
    ALERT_DECLINE_SCORE_THRESHOLD,
    ALERT_NEGATIVE_CONFIDENCE_THRESHOLD,
    ALERT_NEGATIVE_SCORE_THRESHOLD,
    ANTHROPIC_MODEL,
    AREAS_FILE,
    DEFAULT_LOG_LEVEL,
    DUPLICATE_DISTANCE_METERS,
    DUPLICATE_TIME_WINDOW_MS,
    GEOCODING_BASE_URL,
    GEOCODING_ENABLED,
    GEOCODING_REQUEST_TIMEOUT,
    GEOCODING_USER_AGENT,
    LLM_BACKEND,
    LLM_DEFAULT_MAX_TOKENS,
    LLM_MIN_MAX_TOKENS,
    LLM_TEMPERATURE,
    MIN_POSTS_FOR_SYNTHESIS,
    OLLAMA_API_KEY,
    OLLAMA_HOST,
    OLLAMA_MODEL,
    OUTPUT_ROOT,
    SCORE_STORE_PATH,
    SENTIMENT_CLASSIFICATION_THRESHOLD,
    SWEEP_LOOKBACK_HOURS,
    SWEEP_MAX_SOCIAL_POSTS,
    SWEEP_MAX_USER_REPORTS,
    SWEEP_MAX_WORKERS,
    SYNTHESIS_MAX_WORKERS,
    TEXT_SIMILARITY_THRESHOLD,
    TREND_STABLE_THRESHOLD,
)

# Load .env file if present; silently skip if missing
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class PipelineConfig:
    """Single configuration object threaded through all pipeline agents.

    All tuneable thresholds, API keys, model names, and file paths live here.
    Never use module-level globals or hard-coded values in agent code.
    """

    # ── LLM backend ───────────────────────────────────────────────────────────
    llm_backend: str = field(default_factory=lambda: os.getenv("LLM_BACKEND", LLM_BACKEND))
    anthropic_model: str = field(
        default_factory=lambda: os.getenv("ANTHROPIC_MODEL", ANTHROPIC_MODEL)
    )
    ollama_model: str = field(default_factory=lambda: os.getenv("OLLAMA_MODEL", OLLAMA_MODEL))
    ollama_host: str = field(default_factory=lambda: os.getenv("OLLAMA_HOST", OLLAMA_HOST))
    ollama_api_key: str = field(
        default_factory=lambda: os.getenv("OLLAMA_API_KEY", OLLAMA_API_KEY)
    )
    llm_temperature: float = LLM_TEMPERATURE
    llm_max_tokens: int = LLM_DEFAULT_MAX_TOKENS
    llm_min_max_tokens: int = LLM_MIN_MAX_TOKENS

    # ── API credentials (from environment only) ────────────────────────────────
    anthropic_api_key: Optional[str] = field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY")
    )

    # ── Duplicate detection ────────────────────────────────────────────────────
    duplicate_time_window_ms: int = DUPLICATE_TIME_WINDOW_MS
    duplicate_distance_meters: float = DUPLICATE_DISTANCE_METERS
    text_similarity_threshold: float = TEXT_SIMILARITY_THRESHOLD

    # ── Event synthesis ────────────────────────────────────────────────────────
    min_posts_for_synthesis: int = MIN_POSTS_FOR_SYNTHESIS
    synthesis_max_workers: int = SYNTHESIS_MAX_WORKERS

    # ── Area sentiment sweep ───────────────────────────────────────────────────
    areas_file: str = field(default_factory=lambda: os.getenv("AREAS_FILE", AREAS_FILE))
    score_store_path: str = field(
        default_factory=lambda: os.getenv("SCORE_STORE_PATH", SCORE_STORE_PATH)
    )
    sweep_lookback_hours: int = SWEEP_LOOKBACK_HOURS
    sweep_max_social_posts: int = SWEEP_MAX_SOCIAL_POSTS
    sweep_max_user_reports: int = SWEEP_MAX_USER_REPORTS
    sweep_max_workers: int = SWEEP_MAX_WORKERS
    sentiment_classification_threshold: float = SENTIMENT_CLASSIFICATION_THRESHOLD
    trend_stable_threshold: float = TREND_STABLE_THRESHOLD

    # ── Alerts ─────────────────────────────────────────────────────────────────
    alert_negative_score_threshold: float = ALERT_NEGATIVE_SCORE_THRESHOLD
    alert_negative_confidence_threshold: float = ALERT_NEGATIVE_CONFIDENCE_THRESHOLD
    alert_decline_score_threshold: float = ALERT_DECLINE_SCORE_THRESHOLD

    # ── Geocoding collaborator ─────────────────────────────────────────────────
    geocoding_enabled: bool = field(
        default_factory=lambda: _env_flag("GEOCODING_ENABLED", GEOCODING_ENABLED)
    )
    geocoding_base_url: str = field(
        default_factory=lambda: os.getenv("GEOCODING_BASE_URL", GEOCODING_BASE_URL)
    )
    geocoding_request_timeout: int = GEOCODING_REQUEST_TIMEOUT
    geocoding_user_agent: str = field(
        default_factory=lambda: os.getenv("GEOCODING_USER_AGENT", GEOCODING_USER_AGENT)
    )

    # ── Output and logging ─────────────────────────────────────────────────────
    output_root: str = field(default_factory=lambda: os.getenv("OUTPUT_ROOT", OUTPUT_ROOT))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL))

    def __post_init__(self) -> None:
        if self.llm_backend.lower() not in ("anthropic", "ollama"):
            raise ValueError(f"Unsupported llm_backend: {self.llm_backend!r}")
        if not 0.0 <= self.text_similarity_threshold <= 1.0:
            raise ValueError(
                f"text_similarity_threshold must be in [0, 1], got {self.text_similarity_threshold}"
            )
        if self.duplicate_time_window_ms < 0 or self.duplicate_distance_meters < 0:
            raise ValueError("Duplicate detection windows must be non-negative")
        if self.min_posts_for_synthesis < 1:
            raise ValueError("min_posts_for_synthesis must be at least 1")
        if self.synthesis_max_workers < 1 or self.sweep_max_workers < 1:
            raise ValueError("Worker counts must be at least 1")
