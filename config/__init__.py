"""IncidentFusion configuration package."""

from config.defaults import (
    ALERT_DECLINE_SCORE_THRESHOLD,
    ALERT_NEGATIVE_CONFIDENCE_THRESHOLD,
    ALERT_NEGATIVE_SCORE_THRESHOLD,
    ANTHROPIC_MODEL,
    DUPLICATE_DISTANCE_METERS,
    DUPLICATE_TIME_WINDOW_MS,
    LLM_BACKEND,
    MIN_POSTS_FOR_SYNTHESIS,
    OLLAMA_MODEL,
    SENTIMENT_CLASSIFICATION_THRESHOLD,
    TEXT_SIMILARITY_THRESHOLD,
    TREND_STABLE_THRESHOLD,
)
from config.settings import PipelineConfig

__all__ = [
    "PipelineConfig",
    "DUPLICATE_TIME_WINDOW_MS",
    "DUPLICATE_DISTANCE_METERS",
    "TEXT_SIMILARITY_THRESHOLD",
    "MIN_POSTS_FOR_SYNTHESIS",
    "SENTIMENT_CLASSIFICATION_THRESHOLD",
    "TREND_STABLE_THRESHOLD",
    "ALERT_NEGATIVE_SCORE_THRESHOLD",
    "ALERT_NEGATIVE_CONFIDENCE_THRESHOLD",
    "ALERT_DECLINE_SCORE_THRESHOLD",
    "LLM_BACKEND",
    "ANTHROPIC_MODEL",
    "OLLAMA_MODEL",
]
