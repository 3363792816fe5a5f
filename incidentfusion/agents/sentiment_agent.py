"""SentimentSweepAgent — Refresh per-area sentiment and raise alerts.

SentimentAnalyzer turns one source's records (social posts or citizen
reports) into a SentimentAnalysis through the sentiment collaborator and
writes the one-line area mood summary. SentimentSweepAgent runs one sweep:
fetch per area, analyze per source, aggregate, compute trend, evaluate alerts.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

from config.defaults import (
    DEFAULT_SENTIMENT_CONFIDENCE,
    FALLBACK_SENTIMENT_CONFIDENCE,
    LLM_DEFAULT_MAX_TOKENS,
    LLM_TEMPERATURE,
    MAX_SENTIMENT_KEYWORDS,
    MAX_SENTIMENT_SUMMARY_CHARS,
)
from incidentfusion.agents.base import AgentStatus, BaseAgent
from incidentfusion.analysis.alert_evaluator import evaluate_alerts
from incidentfusion.analysis.sentiment_aggregator import (
    DataFetcher,
    process_areas,
    scores_by_area,
)
from incidentfusion.clients.llm_client import JSON_ONLY_SUFFIX, LLMClient, extract_json_object
from incidentfusion.exceptions import CollaboratorUnavailable
from incidentfusion.models.pipeline import SentimentSweepResult
from incidentfusion.models.posts import Post, UserReport
from incidentfusion.models.sentiment import CLASSIFICATIONS, AreaDefinition, SentimentAnalysis
from incidentfusion.utils.date_utils import utcnow

logger = logging.getLogger(__name__)

FALLBACK_SENTIMENT_SUMMARY = "Unable to analyze sentiment - manual review required"
_MOOD_FALLBACK_TEMPLATE = "Mixed sentiment in {area} with ongoing community activity"

_SYSTEM_PROMPT = (
    "You are a community sentiment analyst for a city operations centre. You "
    "measure the public mood expressed in citizen posts and reports."
)

_SENTIMENT_SCHEMA = (
    "Respond with a JSON object of the form:\n"
    "{\n"
    '  "score": -1 to 1 (negative to positive),\n'
    '  "classification": "positive|neutral|negative",\n'
    '  "confidence": 0 to 1,\n'
    f'  "keywords": ["keyword1", "keyword2", ...] (at most {MAX_SENTIMENT_KEYWORDS}),\n'
    f'  "summary": "Brief mood summary (max {MAX_SENTIMENT_SUMMARY_CHARS} chars)"\n'
    "}\n"
)


def fallback_sentiment() -> SentimentAnalysis:
    """Analysis used when the collaborator response has no usable JSON."""
    return SentimentAnalysis(
        score=0.0,
        classification="neutral",
        confidence=FALLBACK_SENTIMENT_CONFIDENCE,
        keywords=[],
        summary=FALLBACK_SENTIMENT_SUMMARY,
    )


def parse_sentiment_response(text: Optional[str]) -> SentimentAnalysis:
    """Parse a collaborator sentiment response.

    Score is clamped to [-1, 1], confidence to [0, 1] (default 0.5), an unknown
    classification becomes neutral, keywords are capped at 8 and the summary
    at 100 characters. A response with no JSON object yields the fallback.

    Args:
        text: Raw collaborator response.

    Returns:
        SentimentAnalysis.
    """
    parsed = extract_json_object(text)
    if parsed is None:
        logger.error("Sentiment parse failed. Raw response (first 200 chars): %.200s", text)
        return fallback_sentiment()

    score = parsed.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
        score = 0.0
    confidence = parsed.get("confidence")
    if (
        isinstance(confidence, bool)
        or not isinstance(confidence, (int, float))
        or not math.isfinite(confidence)
        or not confidence
    ):
        confidence = DEFAULT_SENTIMENT_CONFIDENCE
    classification = parsed.get("classification")
    keywords = parsed.get("keywords")
    summary = parsed.get("summary")

    return SentimentAnalysis(
        score=max(-1.0, min(1.0, float(score))),
        classification=classification if classification in CLASSIFICATIONS else "neutral",
        confidence=max(0.0, min(1.0, float(confidence))),
        keywords=[str(k) for k in keywords[:MAX_SENTIMENT_KEYWORDS]] if isinstance(keywords, list) else [],
        summary=summary[:MAX_SENTIMENT_SUMMARY_CHARS] if isinstance(summary, str) else "",
    )


class SentimentAnalyzer:
    """Per-source sentiment through the sentiment collaborator.

    Args:
        llm_client: Sentiment collaborator.
        max_tokens: Token budget per call.
        temperature: Sampling temperature.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        max_tokens: int = LLM_DEFAULT_MAX_TOKENS,
        temperature: float = LLM_TEMPERATURE,
    ) -> None:
        self.llm_client = llm_client
        self.max_tokens = max_tokens
        self.temperature = temperature

    def _analyze(self, prompt: str) -> SentimentAnalysis:
        raw = self.llm_client.call(
            _SYSTEM_PROMPT + JSON_ONLY_SUFFIX,
            prompt,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return parse_sentiment_response(raw)

    def analyze_social_posts(self, posts: Sequence[Post]) -> SentimentAnalysis:
        """Sentiment of a batch of social posts.

        Empty input returns a neutral zero-confidence analysis without a call.

        Raises:
            CollaboratorUnavailable: If the collaborator call fails.
        """
        if not posts:
            return SentimentAnalysis.neutral()
        combined = "\n".join(post.text for post in posts)
        prompt = (
            "Analyze the sentiment of these social media posts:\n\n"
            f"Posts:\n{combined}\n\n"
            f"{_SENTIMENT_SCHEMA}\n"
            "Consider the overall emotional tone, the balance of positive and "
            "negative language, and how clearly and consistently it is expressed."
        )
        return self._analyze(prompt)

    def analyze_user_reports(self, reports: Sequence[UserReport]) -> SentimentAnalysis:
        """Sentiment of a batch of citizen reports.

        Empty input returns a neutral zero-confidence analysis without a call.

        Raises:
            CollaboratorUnavailable: If the collaborator call fails.
        """
        if not reports:
            return SentimentAnalysis.neutral()
        combined = "\n".join(f"{r.title}: {r.description}" for r in reports)
        prompt = (
            "Analyze the sentiment of these citizen reports about city issues:\n\n"
            f"Reports:\n{combined}\n\n"
            f"{_SENTIMENT_SCHEMA}\n"
            "Consider the severity and urgency of reported issues, citizen "
            "frustration or satisfaction, and public safety impact."
        )
        return self._analyze(prompt)

    def generate_mood_summary(
        self,
        social: SentimentAnalysis,
        reports: SentimentAnalysis,
        area: str,
    ) -> str:
        """One-sentence mood line for an area (at most 100 characters).

        Falls back to a generic line when the collaborator is unavailable or
        returns nothing.
        """
        prompt = (
            f"Generate a concise mood summary for {area} based on this sentiment analysis:\n\n"
            "Social Media Sentiment:\n"
            f"- Score: {social.score:.2f}\n"
            f"- Classification: {social.classification}\n"
            f"- Summary: {social.summary}\n"
            f"- Keywords: {', '.join(social.keywords)}\n\n"
            "Citizen Reports Sentiment:\n"
            f"- Score: {reports.score:.2f}\n"
            f"- Classification: {reports.classification}\n"
            f"- Summary: {reports.summary}\n"
            f"- Keywords: {', '.join(reports.keywords)}\n\n"
            f"Provide a single sentence (max {MAX_SENTIMENT_SUMMARY_CHARS} characters) that "
            "captures the overall mood and key themes for this area. Reply with the "
            "sentence only."
        )
        fallback = _MOOD_FALLBACK_TEMPLATE.format(area=area)
        try:
            raw = self.llm_client.call(
                _SYSTEM_PROMPT, prompt, max_tokens=self.max_tokens, temperature=self.temperature
            )
        except CollaboratorUnavailable as exc:
            logger.warning("Mood summary unavailable for %s: %s", area, exc)
            return fallback

        lines = [line.strip().strip('"') for line in (raw or "").splitlines() if line.strip()]
        if not lines:
            return fallback
        return lines[0][:MAX_SENTIMENT_SUMMARY_CHARS]


class SentimentSweepAgent(BaseAgent):
    """One sentiment sweep over all areas.

    Args:
        analyzer: Per-source sentiment analyzer.
        data_fetcher: Source of recent posts and reports per area.
        areas: Areas to sweep.
        previous_scores: Previous combined score keyed by area name.
    """

    name = "SentimentSweepAgent"
    version = "1.0.0"

    def __init__(
        self,
        analyzer: Any,
        data_fetcher: DataFetcher,
        areas: Sequence[AreaDefinition],
        previous_scores: Optional[Mapping[str, float]] = None,
    ) -> None:
        self.analyzer = analyzer
        self.data_fetcher = data_fetcher
        self.areas = list(areas)
        self.previous_scores: Dict[str, float] = dict(previous_scores or {})

    def run(self, context: Any) -> SentimentSweepResult:
        """Sweep every area and evaluate alert rules.

        Args:
            context: PipelineContext with config.

        Returns:
            SentimentSweepResult with per-area results, alerts and new scores.
        """
        cfg = context.config
        now = utcnow()
        result = SentimentSweepResult()

        results = process_areas(
            self.areas,
            self.data_fetcher,
            self.previous_scores,
            self.analyzer,
            max_workers=cfg.sweep_max_workers,
            now=now,
            lookback_hours=cfg.sweep_lookback_hours,
            max_social_posts=cfg.sweep_max_social_posts,
            max_user_reports=cfg.sweep_max_user_reports,
            classification_threshold=cfg.sentiment_classification_threshold,
            stable_threshold=cfg.trend_stable_threshold,
        )
        result.areas = results
        result.scores = scores_by_area(results)
        result.alerts = evaluate_alerts(
            results,
            now=now,
            negative_score_threshold=cfg.alert_negative_score_threshold,
            negative_confidence_threshold=cfg.alert_negative_confidence_threshold,
            decline_score_threshold=cfg.alert_decline_score_threshold,
        )

        if not results and self.areas:
            result.warnings.append("No area produced a sentiment result")
            result.status = AgentStatus.PARTIAL

        logger.info(
            "SentimentSweepAgent: %d/%d areas, %d alerts",
            len(results), len(self.areas), len(result.alerts),
        )
        return result
