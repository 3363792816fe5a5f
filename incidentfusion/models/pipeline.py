"""Pipeline orchestration data models for IncidentFusion.

Defines PipelineContext (shared state object), AgentResult (base result type),
the typed per-agent results, and PhaseRecord (per-phase timing log).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.settings import PipelineConfig
from incidentfusion.models.events import SynthesizedEvent
from incidentfusion.models.image import (
    ImageAnalysisResult,
    ImageReportEvent,
    ModerationResult,
)
from incidentfusion.models.sentiment import AreaSentiment, SentimentAlert


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AgentResult:
    """Base result type for all agents. All typed results are subclasses or instances."""

    agent_name: str
    status: str = "OK"       # "OK", "PARTIAL", "CRITICAL"
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0


@dataclass
class SynthesisAgentResult(AgentResult):
    """Events synthesized from a batch of post clusters."""

    agent_name: str = "SynthesisAgent"
    events: List[SynthesizedEvent] = field(default_factory=list)
    failed_clusters: List[str] = field(default_factory=list)
    skipped_clusters: List[str] = field(default_factory=list)


@dataclass
class SentimentSweepResult(AgentResult):
    """Per-area sentiment and alerts produced by one sweep."""

    agent_name: str = "SentimentSweepAgent"
    areas: List[AreaSentiment] = field(default_factory=list)
    alerts: List[SentimentAlert] = field(default_factory=list)
    scores: Dict[str, float] = field(default_factory=dict)


@dataclass
class ImageTriageResult(AgentResult):
    """Analysis, moderation verdict and derived event for one image report."""

    agent_name: str = "ImageAnalyzer"
    analysis: Optional[ImageAnalysisResult] = None
    moderation: Optional[ModerationResult] = None
    event: Optional[ImageReportEvent] = None


@dataclass
class PhaseRecord:
    """Timing and status record for a single pipeline phase."""

    phase_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str = "OK"
    warnings: List[str] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        """Compute elapsed time in seconds."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()


@dataclass
class PipelineContext:
    """Shared state object threaded through a pipeline run.

    Each phase writes its own result to the matching context field; later
    phases and the persistence layer read from here.
    """

    config: PipelineConfig
    run_id: str
    output_dir: Path

    # ── Inputs ─────────────────────────────────────────────────────────────────
    clusters: List[Any] = field(default_factory=list)   # PostCluster

    # ── Agent results (populated progressively) ────────────────────────────────
    synthesis_result: Optional[Any] = None   # SynthesisAgentResult
    sentiment_result: Optional[Any] = None   # SentimentSweepResult
    image_result: Optional[Any] = None       # ImageTriageResult

    # ── Pipeline metadata ──────────────────────────────────────────────────────
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    phase_log: List[PhaseRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def log_phase_start(self, phase_name: str) -> PhaseRecord:
        """Record the start of a pipeline phase."""
        record = PhaseRecord(phase_name=phase_name, start_time=_utcnow())
        self.phase_log.append(record)
        return record

    def log_phase_end(self, record: PhaseRecord, status: str = "OK") -> None:
        """Record the end of a pipeline phase."""
        record.end_time = _utcnow()
        record.status = status

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def add_error(self, error: str) -> None:
        self.errors.append(error)
