"""SynthesisAgent — Turn clusters of posts into synthesized events.

For each cluster with enough posts:
- detect duplicate groups (time + distance + token similarity)
- infer the central location, confidence and affected radius
- ask the narrative collaborator for title, summary, type and severity
- parse and validate its JSON, clamping fields rather than rejecting them
- optionally reverse-geocode the centre

A failure for one cluster is recorded and never blocks the others.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Sequence, Tuple

from config.defaults import (
    DEFAULT_EVENT_SUMMARY,
    DEFAULT_EVENT_TITLE,
    DEFAULT_EVENT_TYPE,
    DEFAULT_SEVERITY,
    DEFAULT_SUGGESTED_ACTION,
    DEFAULT_SYNTHESIS_CONFIDENCE,
    LLM_DEFAULT_MAX_TOKENS,
    LLM_TEMPERATURE,
    MAX_SUMMARY_CHARS,
    MAX_TITLE_CHARS,
)
from incidentfusion.agents.base import BaseAgent, status_from_counts
from incidentfusion.analysis.duplicate_detector import DuplicateDetector
from incidentfusion.analysis.location_inferencer import infer_central_location
from incidentfusion.clients.llm_client import JSON_ONLY_SUFFIX, LLMClient, extract_json_object
from incidentfusion.exceptions import CollaboratorUnavailable, NoLocationData, SynthesisParseError
from incidentfusion.models.events import (
    EVENT_TYPES,
    SEVERITY_LEVELS,
    DuplicateGroup,
    EventLocation,
    LocationEstimate,
    SynthesizedEvent,
)
from incidentfusion.models.pipeline import SynthesisAgentResult
from incidentfusion.models.posts import Post, PostCluster
from incidentfusion.utils.date_utils import isoformat_z
from incidentfusion.utils.text import truncate_text

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an incident analyst for a city operations centre. You read raw "
    "citizen and social-media posts and synthesize them into one actionable "
    "event record."
)


# ── Field validators ───────────────────────────────────────────────────────────

def _text_field(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _confidence_field(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value) or not value:
        return default
    return max(0.0, min(1.0, float(value)))


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


class EventSynthesizer:
    """Builds the synthesis prompt, calls the collaborator and parses its reply.

    Args:
        llm_client: Narrative collaborator.
        geocoder: Optional reverse geocoder exposing ``reverse(lat, lon)``.
        max_tokens: Token budget for the synthesis call.
        temperature: Sampling temperature.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        geocoder: Optional[Any] = None,
        max_tokens: int = LLM_DEFAULT_MAX_TOKENS,
        temperature: float = LLM_TEMPERATURE,
    ) -> None:
        self.llm_client = llm_client
        self.geocoder = geocoder
        self.max_tokens = max_tokens
        self.temperature = temperature

    def build_prompt(self, posts: Sequence[Post], groups: Sequence[DuplicateGroup]) -> str:
        """Render the synthesis prompt for a cluster.

        Args:
            posts: Cluster posts, in cluster order.
            groups: Duplicate groups detected within the cluster.

        Returns:
            Prompt text.
        """
        post_lines = "\n".join(
            f'Post {i} ({post.source}, {isoformat_z(post.timestamp)}): "{post.text}"'
            for i, post in enumerate(posts, start=1)
        )
        if groups:
            duplicate_info = "Duplicate groups detected: " + ", ".join(
                f"[{', '.join(group)}]" for group in groups
            )
        else:
            duplicate_info = "No duplicates detected."

        return (
            f"Analyze these {len(posts)} social media posts about a potential city event "
            "and provide a structured synthesis:\n\n"
            f"{post_lines}\n\n"
            f"{duplicate_info}\n\n"
            "Respond with a JSON object of the form:\n"
            "{\n"
            f'  "title": "Clear, actionable title (max {MAX_TITLE_CHARS} chars)",\n'
            f'  "summary": "Summary of the situation (max {MAX_SUMMARY_CHARS} chars)",\n'
            '  "suggestedAction": "Specific recommended action for city officials",\n'
            f'  "eventType": "{"|".join(EVENT_TYPES)}",\n'
            f'  "severity": "{"|".join(SEVERITY_LEVELS)}",\n'
            '  "confidence": 0.0-1.0,\n'
            '  "estimatedDuration": "Duration estimate if applicable",\n'
            '  "keyInsights": ["Key insight 1", "Key insight 2", "Key insight 3"]\n'
            "}\n\n"
            "Consider:\n"
            "- Frequency and consistency of reports\n"
            "- Credibility indicators (engagement, detail level)\n"
            "- Urgency and public safety implications\n"
            "- Duplicate detection results\n"
            "- Geographic clustering of reports\n"
        )

    def synthesize(
        self, posts: Sequence[Post], groups: Sequence[DuplicateGroup]
    ) -> SynthesizedEvent:
        """Synthesize one event from a cluster of posts.

        The caller enforces the minimum cluster size.

        Args:
            posts: Cluster posts.
            groups: Duplicate groups for the cluster.

        Returns:
            SynthesizedEvent.

        Raises:
            NoLocationData: If no post is located.
            CollaboratorUnavailable: If the collaborator call fails.
            SynthesisParseError: If the response contains no JSON object.
        """
        location = infer_central_location(posts)
        raw = self.llm_client.call(
            _SYSTEM_PROMPT + JSON_ONLY_SUFFIX,
            self.build_prompt(posts, groups),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        event = self.parse_synthesis_response(raw, posts, groups, location)
        if self.geocoder is not None:
            self._apply_geocoding(event)
        return event

    def parse_synthesis_response(
        self,
        text: Optional[str],
        posts: Sequence[Post],
        groups: Sequence[DuplicateGroup],
        location: LocationEstimate,
    ) -> SynthesizedEvent:
        """Validate the collaborator's synthesis JSON into a SynthesizedEvent.

        Missing or invalid fields take their defaults; out-of-range numbers are
        clamped. Final confidence is the smaller of the collaborator's
        confidence and the location confidence.

        Args:
            text: Raw collaborator response.
            posts: Cluster posts (for source ids).
            groups: Duplicate groups (copied onto the event).
            location: Inferred location estimate.

        Returns:
            SynthesizedEvent.

        Raises:
            SynthesisParseError: If no JSON object can be extracted.
        """
        parsed = extract_json_object(text)
        if parsed is None:
            logger.error(
                "Synthesis response had no parseable JSON. Raw response (first 200 chars): %.200s",
                text,
            )
            raise SynthesisParseError("No JSON object in synthesis response", raw_response=text)

        event_type = parsed.get("eventType", parsed.get("event_type"))
        severity = parsed.get("severity")
        confidence = _confidence_field(parsed.get("confidence"), DEFAULT_SYNTHESIS_CONFIDENCE)
        duration = parsed.get("estimatedDuration", parsed.get("estimated_duration"))

        return SynthesizedEvent(
            title=truncate_text(_text_field(parsed.get("title"), DEFAULT_EVENT_TITLE), MAX_TITLE_CHARS),
            summary=truncate_text(
                _text_field(parsed.get("summary"), DEFAULT_EVENT_SUMMARY), MAX_SUMMARY_CHARS
            ),
            suggested_action=_text_field(
                parsed.get("suggestedAction", parsed.get("suggested_action")),
                DEFAULT_SUGGESTED_ACTION,
            ),
            event_type=event_type if event_type in EVENT_TYPES else DEFAULT_EVENT_TYPE,
            severity=severity if severity in SEVERITY_LEVELS else DEFAULT_SEVERITY,
            confidence=min(confidence, location.confidence_score),
            location=EventLocation(lat=location.center.lat, lon=location.center.lon),
            affected_radius=location.radius_meters,
            estimated_duration=duration.strip() if isinstance(duration, str) and duration.strip() else None,
            key_insights=_string_list(parsed.get("keyInsights", parsed.get("key_insights"))),
            source_post_ids=[p.id for p in posts],
            duplicate_groups=[list(g) for g in groups],
        )

    def _apply_geocoding(self, event: SynthesizedEvent) -> None:
        try:
            address = self.geocoder.reverse(event.location.lat, event.location.lon)
        except Exception as exc:
            logger.warning("Geocoder raised for event %r: %s", event.title, exc)
            return
        if not address:
            return
        for key in ("address", "neighborhood", "city", "state", "country"):
            value = address.get(key)
            if value:
                setattr(event.location, key, value)


class SynthesisAgent(BaseAgent):
    """Synthesize one event per qualifying cluster in context.clusters.

    Args:
        llm_client: Narrative collaborator.
        geocoder: Optional reverse geocoder.
        detector: Duplicate detector (built from context.config when omitted).
    """

    name = "SynthesisAgent"
    version = "1.0.0"

    def __init__(
        self,
        llm_client: LLMClient,
        geocoder: Optional[Any] = None,
        detector: Optional[DuplicateDetector] = None,
    ) -> None:
        self.llm_client = llm_client
        self.geocoder = geocoder
        self.detector = detector

    def run(self, context: Any) -> SynthesisAgentResult:
        """Process every cluster on the context.

        Args:
            context: PipelineContext with config and clusters.

        Returns:
            SynthesisAgentResult with events in cluster order.
        """
        cfg = context.config
        result = SynthesisAgentResult()
        detector = self.detector or DuplicateDetector(
            time_window_ms=cfg.duplicate_time_window_ms,
            distance_threshold_m=cfg.duplicate_distance_meters,
            similarity_threshold=cfg.text_similarity_threshold,
        )
        synthesizer = EventSynthesizer(
            self.llm_client,
            geocoder=self.geocoder,
            max_tokens=cfg.llm_max_tokens,
            temperature=cfg.llm_temperature,
        )

        clusters: List[PostCluster] = []
        for cluster in context.clusters:
            if len(cluster.posts) < cfg.min_posts_for_synthesis:
                logger.info(
                    "Cluster %s has %d posts (< %d), insufficient for synthesis",
                    cluster.cluster_id, len(cluster.posts), cfg.min_posts_for_synthesis,
                )
                result.skipped_clusters.append(cluster.cluster_id)
                continue
            clusters.append(cluster)

        if not clusters:
            logger.info("SynthesisAgent: no clusters qualify for synthesis")
            return result

        def _process(cluster: PostCluster) -> Tuple[Optional[SynthesizedEvent], Optional[str]]:
            cluster.status = "processing"
            try:
                groups = detector.detect(cluster.posts)
                logger.info(
                    "Cluster %s: %d duplicate groups across %d posts",
                    cluster.cluster_id, len(groups), len(cluster.posts),
                )
                event = synthesizer.synthesize(cluster.posts, groups)
            except (SynthesisParseError, NoLocationData, CollaboratorUnavailable) as exc:
                cluster.status = "failed"
                return None, f"Cluster {cluster.cluster_id}: {type(exc).__name__}: {exc}"
            event.cluster_id = cluster.cluster_id
            cluster.status = "completed"
            return event, None

        if cfg.synthesis_max_workers > 1 and len(clusters) > 1:
            with ThreadPoolExecutor(max_workers=cfg.synthesis_max_workers) as executor:
                outcomes = list(executor.map(_process, clusters))
        else:
            outcomes = [_process(c) for c in clusters]

        for cluster, (event, error) in zip(clusters, outcomes):
            if event is not None:
                result.events.append(event)
            else:
                logger.warning("Synthesis failed: %s", error)
                result.warnings.append(error)
                result.failed_clusters.append(cluster.cluster_id)

        result.status = status_from_counts(len(result.events), len(result.failed_clusters))
        logger.info(
            "SynthesisAgent: %d events, %d failed, %d skipped",
            len(result.events), len(result.failed_clusters), len(result.skipped_clusters),
        )
        return result

    def validate_output(self, result: Any) -> bool:
        if result is None:
            return False
        return all(
            len(e.title) <= MAX_TITLE_CHARS
            and len(e.summary) <= MAX_SUMMARY_CHARS
            and 0.0 <= e.confidence <= 1.0
            for e in result.events
        )
