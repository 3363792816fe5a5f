"""Area sentiment aggregation for IncidentFusion.

Combines per-source sentiment (social posts vs. citizen reports) into one area
sentiment, classifies its polarity, and compares it with the area's previous
score to compute a trend. The combination logic is pure; per-source scores
come from an injected analyzer and data access from an injected DataFetcher.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from config.defaults import (
    MAX_SENTIMENT_KEYWORDS,
    SENTIMENT_CLASSIFICATION_THRESHOLD,
    SWEEP_LOOKBACK_HOURS,
    SWEEP_MAX_SOCIAL_POSTS,
    SWEEP_MAX_USER_REPORTS,
    TREND_STABLE_THRESHOLD,
)
from incidentfusion.models.posts import Post, UserReport
from incidentfusion.models.sentiment import (
    AreaBounds,
    AreaDefinition,
    AreaSentiment,
    SentimentAnalysis,
    SourceCounts,
)
from incidentfusion.utils.date_utils import lookback_start, parse_timestamp, utcnow

logger = logging.getLogger(__name__)


# ── Collaborator protocols ─────────────────────────────────────────────────────

class DataFetcher(Protocol):
    """Pulls the recent working set for one area."""

    def fetch_social_posts(self, area: AreaDefinition, since: datetime, limit: int) -> List[Post]:
        ...

    def fetch_user_reports(self, area: AreaDefinition, since: datetime, limit: int) -> List[UserReport]:
        ...


class SourceSentimentAnalyzer(Protocol):
    """Produces per-source sentiment and the area mood line."""

    def analyze_social_posts(self, posts: Sequence[Post]) -> SentimentAnalysis:
        ...

    def analyze_user_reports(self, reports: Sequence[UserReport]) -> SentimentAnalysis:
        ...

    def generate_mood_summary(
        self, social: SentimentAnalysis, reports: SentimentAnalysis, area: str
    ) -> str:
        ...


class InMemoryDataFetcher:
    """DataFetcher over pre-loaded posts and reports.

    Applies the same filters as the live queries: inside the area's bounds,
    newer than the look-back start, newest first, capped at ``limit``.

    Args:
        posts: Candidate social posts.
        reports: Candidate citizen reports.
    """

    def __init__(
        self,
        posts: Optional[Sequence[Post]] = None,
        reports: Optional[Sequence[UserReport]] = None,
    ) -> None:
        self.posts = list(posts or [])
        self.reports = list(reports or [])

    @staticmethod
    def _select(records, area: AreaDefinition, since: datetime, limit: int):
        since = parse_timestamp(since)
        hits = [
            r for r in records
            if r.location is not None
            and area.bounds.contains(r.location.lat, r.location.lon)
            and r.timestamp >= since
        ]
        hits.sort(key=lambda r: r.timestamp, reverse=True)
        return hits[:limit]

    def fetch_social_posts(self, area: AreaDefinition, since: datetime, limit: int) -> List[Post]:
        return self._select(self.posts, area, since, limit)

    def fetch_user_reports(self, area: AreaDefinition, since: datetime, limit: int) -> List[UserReport]:
        return self._select(self.reports, area, since, limit)


# ── Pure combination logic ─────────────────────────────────────────────────────

def classify_score(score: float, threshold: float = SENTIMENT_CLASSIFICATION_THRESHOLD) -> str:
    """Map a score in [-1, 1] to positive / neutral / negative (strict thresholds)."""
    if score > threshold:
        return "positive"
    if score < -threshold:
        return "negative"
    return "neutral"


def determine_trend(
    current: float,
    previous: Optional[float],
    stable_threshold: float = TREND_STABLE_THRESHOLD,
) -> str:
    """Compare an area's score against its previous value.

    A missing previous value is treated as a neutral 0.0 baseline.

    Args:
        current: This run's combined score.
        previous: Previous run's score, or None.
        stable_threshold: Absolute change below which the trend is stable.

    Returns:
        "up", "down" or "stable".
    """
    diff = current - (previous if previous is not None else 0.0)
    if abs(diff) < stable_threshold:
        return "stable"
    return "up" if diff > 0 else "down"


def _merge_keywords(*keyword_lists: Sequence[str]) -> List[str]:
    merged: List[str] = []
    for keywords in keyword_lists:
        for kw in keywords:
            if kw not in merged:
                merged.append(kw)
    return merged[:MAX_SENTIMENT_KEYWORDS]


def aggregate(
    area: str,
    social: SentimentAnalysis,
    reports: SentimentAnalysis,
    social_count: int,
    report_count: int,
    summary: Optional[str] = None,
    classification_threshold: float = SENTIMENT_CLASSIFICATION_THRESHOLD,
) -> SentimentAnalysis:
    """Combine social and citizen-report sentiment into one area sentiment.

    Each source is weighted by ``count / (social_count + report_count + 1)``.
    The +1 keeps the denominator non-zero and shrinks the combined score
    toward zero when volume is low. Confidence is the larger of the two
    source confidences.

    Args:
        area: Area name (used for logging only).
        social: Social-media sentiment.
        reports: Citizen-report sentiment.
        social_count: Number of social posts analyzed.
        report_count: Number of citizen reports analyzed.
        summary: Mood summary; defaults to the more confident source's summary.
        classification_threshold: Polarity threshold for classify_score.

    Returns:
        Combined SentimentAnalysis.
    """
    denominator = social_count + report_count + 1
    social_weight = social_count / denominator
    report_weight = report_count / denominator

    score = social.score * social_weight + reports.score * report_weight
    score = max(-1.0, min(1.0, score))
    confidence = max(social.confidence, reports.confidence)

    if summary is None:
        summary = social.summary if social.confidence >= reports.confidence else reports.summary

    logger.debug(
        "%s: social=%.2f (w=%.3f) reports=%.2f (w=%.3f) -> %.3f",
        area, social.score, social_weight, reports.score, report_weight, score,
    )
    return SentimentAnalysis(
        score=score,
        classification=classify_score(score, classification_threshold),
        confidence=confidence,
        keywords=_merge_keywords(social.keywords, reports.keywords),
        summary=summary,
    )


# ── Sweep over areas ───────────────────────────────────────────────────────────

def _process_area(
    area: AreaDefinition,
    data_fetcher: DataFetcher,
    previous_scores: Mapping[str, float],
    analyzer: SourceSentimentAnalyzer,
    now: datetime,
    since: datetime,
    max_social_posts: int,
    max_user_reports: int,
    classification_threshold: float,
    stable_threshold: float,
) -> Optional[AreaSentiment]:
    posts = data_fetcher.fetch_social_posts(area, since, max_social_posts)
    reports = data_fetcher.fetch_user_reports(area, since, max_user_reports)
    if not posts and not reports:
        logger.debug("No recent data for %s, skipping", area.name)
        return None

    social = analyzer.analyze_social_posts(posts)
    report_sentiment = analyzer.analyze_user_reports(reports)
    summary = analyzer.generate_mood_summary(social, report_sentiment, area.name)

    combined = aggregate(
        area.name,
        social,
        report_sentiment,
        len(posts),
        len(reports),
        summary=summary,
        classification_threshold=classification_threshold,
    )
    trend = determine_trend(combined.score, previous_scores.get(area.name), stable_threshold)

    return AreaSentiment(
        area=area.name,
        coordinates=area.center,
        bounds=AreaBounds(
            north=area.bounds.north,
            south=area.bounds.south,
            east=area.bounds.east,
            west=area.bounds.west,
        ),
        sentiment=combined,
        report_count=len(posts) + len(reports),
        sources=SourceCounts(social=len(posts), user_reports=len(reports), civic=0),
        trend_direction=trend,
        last_updated=now,
    )


def process_areas(
    areas: Sequence[AreaDefinition],
    data_fetcher: DataFetcher,
    previous_scores: Mapping[str, float],
    analyzer: SourceSentimentAnalyzer,
    max_workers: int = 1,
    now: Optional[datetime] = None,
    lookback_hours: int = SWEEP_LOOKBACK_HOURS,
    max_social_posts: int = SWEEP_MAX_SOCIAL_POSTS,
    max_user_reports: int = SWEEP_MAX_USER_REPORTS,
    classification_threshold: float = SENTIMENT_CLASSIFICATION_THRESHOLD,
    stable_threshold: float = TREND_STABLE_THRESHOLD,
) -> List[AreaSentiment]:
    """Compute AreaSentiment for every area that has recent data.

    Areas are independent: when ``max_workers`` > 1 they are processed on a
    thread pool. A failure in one area is logged and that area is omitted;
    the others still complete. Output follows the order of ``areas``.

    Args:
        areas: Area definitions to sweep.
        data_fetcher: Source of recent posts and reports per area.
        previous_scores: Previous combined score keyed by area name.
        analyzer: Per-source sentiment analyzer.
        max_workers: Thread pool size (1 = sequential).
        now: Sweep timestamp (defaults to current UTC time).
        lookback_hours: Look-back window for fetched records.
        max_social_posts: Social post fetch limit per area.
        max_user_reports: Citizen report fetch limit per area.
        classification_threshold: Polarity threshold.
        stable_threshold: Trend stability threshold.

    Returns:
        AreaSentiment records, in area order.
    """
    now = parse_timestamp(now) if now is not None else utcnow()
    since = lookback_start(now, lookback_hours)

    def _run(area: AreaDefinition) -> Optional[AreaSentiment]:
        try:
            return _process_area(
                area, data_fetcher, previous_scores, analyzer, now, since,
                max_social_posts, max_user_reports, classification_threshold, stable_threshold,
            )
        except Exception as exc:
            logger.warning("Sentiment sweep failed for %s: %s", area.name, exc)
            return None

    if max_workers > 1 and len(areas) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            outcomes = list(executor.map(_run, areas))
    else:
        outcomes = [_run(area) for area in areas]

    results = [r for r in outcomes if r is not None]
    logger.info("Sentiment sweep: %d/%d areas produced results", len(results), len(areas))
    return results


def scores_by_area(results: Sequence[AreaSentiment]) -> Dict[str, float]:
    """Extract the combined score per area name, for the next run's baseline."""
    return {r.area: r.sentiment.score for r in results}
