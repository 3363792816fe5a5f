"""Sentiment alert rules for IncidentFusion.

Scans a completed sweep of AreaSentiment results and emits an alert for each
rule an area trips. Rules are independent; a single area can raise both.
No de-duplication is done against earlier runs.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence

from config.defaults import (
    ALERT_DECLINE_SCORE_THRESHOLD,
    ALERT_NEGATIVE_CONFIDENCE_THRESHOLD,
    ALERT_NEGATIVE_SCORE_THRESHOLD,
)
from incidentfusion.models.sentiment import AreaSentiment, SentimentAlert
from incidentfusion.utils.date_utils import utcnow

logger = logging.getLogger(__name__)

ALERT_NEGATIVE_SENTIMENT = "negative_sentiment"
ALERT_SENTIMENT_DECLINE = "sentiment_decline"


def evaluate_alerts(
    results: Sequence[AreaSentiment],
    now: Optional[datetime] = None,
    negative_score_threshold: float = ALERT_NEGATIVE_SCORE_THRESHOLD,
    negative_confidence_threshold: float = ALERT_NEGATIVE_CONFIDENCE_THRESHOLD,
    decline_score_threshold: float = ALERT_DECLINE_SCORE_THRESHOLD,
) -> List[SentimentAlert]:
    """Emit alerts for areas crossing sentiment thresholds.

    Rules (strict comparisons):
        - score < -0.7 and confidence > 0.8  -> negative_sentiment, high
        - trend down and score < -0.5        -> sentiment_decline, medium

    Args:
        results: AreaSentiment records from one sweep.
        now: Alert timestamp (defaults to current UTC time).
        negative_score_threshold: Score bound for the negative_sentiment rule.
        negative_confidence_threshold: Confidence bound for the negative_sentiment rule.
        decline_score_threshold: Score bound for the sentiment_decline rule.

    Returns:
        Alerts in result order; for one area, negative_sentiment precedes
        sentiment_decline.
    """
    timestamp = now or utcnow()
    alerts: List[SentimentAlert] = []

    for result in results:
        score = result.sentiment.score

        if (
            score < negative_score_threshold
            and result.sentiment.confidence > negative_confidence_threshold
        ):
            alerts.append(
                SentimentAlert(
                    area=result.area,
                    alert_type=ALERT_NEGATIVE_SENTIMENT,
                    score=score,
                    summary=result.sentiment.summary,
                    report_count=result.report_count,
                    severity="high",
                    timestamp=timestamp,
                )
            )

        if result.trend_direction == "down" and score < decline_score_threshold:
            alerts.append(
                SentimentAlert(
                    area=result.area,
                    alert_type=ALERT_SENTIMENT_DECLINE,
                    score=score,
                    summary=result.sentiment.summary,
                    report_count=result.report_count,
                    severity="medium",
                    timestamp=timestamp,
                )
            )

    if alerts:
        logger.info("Raised %d sentiment alerts", len(alerts))
    return alerts
