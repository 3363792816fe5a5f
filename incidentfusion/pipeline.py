"""IncidentFusion pipeline orchestrator.

Manages phase execution, PipelineContext lifecycle and result persistence for
the three entry points:

  run_synthesis        — SynthesisAgent over a batch of post clusters
  run_sentiment_sweep  — SentimentSweepAgent over all areas (one sweep; the
                         15-minute cadence is owned by the external scheduler)
  run_image_triage     — ImageTriageAgent for one uploaded image

Usage:
    from config.settings import PipelineConfig
    from incidentfusion.pipeline import run_synthesis

    context = run_synthesis(PipelineConfig(), clusters)
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from config.settings import PipelineConfig
from incidentfusion.agents.base import AgentStatus, BaseAgent
from incidentfusion.agents.image_agent import ImageAnalyzer, ImageTriageAgent
from incidentfusion.agents.sentiment_agent import SentimentAnalyzer, SentimentSweepAgent
from incidentfusion.agents.synthesis_agent import SynthesisAgent
from incidentfusion.analysis.area_manager import load_areas
from incidentfusion.analysis.sentiment_aggregator import DataFetcher
from incidentfusion.clients.geocoding_client import GeocodingClient
from incidentfusion.clients.llm_client import LLMClient
from incidentfusion.io.persistence import JsonScoreStore, ensure_output_dir, save_json
from incidentfusion.models.image import ImageMetadata
from incidentfusion.models.pipeline import PhaseRecord, PipelineContext
from incidentfusion.models.posts import PostCluster
from incidentfusion.models.sentiment import AreaDefinition
from incidentfusion.utils.date_utils import utcnow
from incidentfusion.utils.logging_utils import get_run_logger

logger = logging.getLogger(__name__)


def _make_run_id(mode: str) -> str:
    """Generate a sortable run ID from UTC timestamp and run mode.

    Args:
        mode: Pipeline mode ("synthesis", "sentiment", "image").

    Returns:
        Run ID string in the form ``YYYYMMDD_HHMMSS_<mode>``.
    """
    return f"{utcnow().strftime('%Y%m%d_%H%M%S')}_{mode}"


def _new_context(config: PipelineConfig, mode: str) -> PipelineContext:
    run_id = _make_run_id(mode)
    output_dir = ensure_output_dir(config.output_root, run_id)
    context = PipelineContext(config=config, run_id=run_id, output_dir=output_dir)
    context.start_time = utcnow()
    logger.info("Pipeline: starting run %s → %s", run_id, output_dir)
    return context


def _run_phase(
    context: PipelineContext,
    phase_name: str,
    agent: BaseAgent,
    result_attr: str,
) -> bool:
    """Execute a single pipeline phase and record its timing.

    Args:
        context: Shared pipeline context.
        phase_name: Human-readable phase label for logs and phase_log.
        agent: Agent instance with a ``run(context)`` method.
        result_attr: Name of the PipelineContext field to write the result to.

    Returns:
        True if the phase produced a non-CRITICAL result, False otherwise.
    """
    record: PhaseRecord = context.log_phase_start(phase_name)
    logger.info("Pipeline: starting %s", phase_name)

    try:
        result = agent._run_timed(context)
    except Exception as exc:
        context.log_phase_end(record, status=AgentStatus.FAILED)
        logger.exception("Pipeline: %s raised unhandled exception: %s", phase_name, exc)
        context.add_error(f"{phase_name} failed with exception: {exc}")
        return False

    setattr(context, result_attr, result)
    status = getattr(result, "status", AgentStatus.OK)
    context.log_phase_end(record, status=str(status))

    for w in getattr(result, "warnings", []):
        context.add_warning(f"[{phase_name}] {w}")

    if status == AgentStatus.CRITICAL:
        logger.error("Pipeline: %s returned CRITICAL", phase_name)
        context.add_error(f"{phase_name} CRITICAL")
        return False

    logger.info("Pipeline: %s complete (%.1fs, status=%s)",
                phase_name, record.elapsed_seconds, status)
    return True


def _finalise(context: PipelineContext) -> None:
    """Record pipeline end time, write run metadata and emit a summary log line.

    Args:
        context: PipelineContext to finalise.
    """
    context.end_time = utcnow()
    elapsed = (context.end_time - context.start_time).total_seconds() if context.start_time else 0.0
    save_json(
        {
            "run_id": context.run_id,
            "start_time": context.start_time,
            "end_time": context.end_time,
            "elapsed_seconds": elapsed,
            "phases": [
                {
                    "phase_name": p.phase_name,
                    "status": p.status,
                    "elapsed_seconds": p.elapsed_seconds,
                }
                for p in context.phase_log
            ],
            "warnings": context.warnings,
            "errors": context.errors,
        },
        context.output_dir / "run_metadata.json",
    )
    run_logger = get_run_logger("pipeline", context.run_id)
    run_logger.info(
        "Pipeline: complete in %.1fs | warnings=%d | errors=%d",
        elapsed,
        len(context.warnings),
        len(context.errors),
    )
    for err in context.errors:
        run_logger.error("Pipeline error: %s", err)


# ── Entry points ───────────────────────────────────────────────────────────────

def run_synthesis(
    config: PipelineConfig,
    clusters: Sequence[PostCluster],
    llm_client: Optional[LLMClient] = None,
    geocoder: Optional[Any] = None,
) -> PipelineContext:
    """Synthesize events for a batch of post clusters.

    Writes ``events.json`` to the run directory.

    Args:
        config: Pipeline configuration.
        clusters: Clusters to synthesize (clusters below the minimum size are skipped).
        llm_client: Narrative collaborator (built from config when omitted).
        geocoder: Reverse geocoder (a GeocodingClient is built when omitted
            and config.geocoding_enabled is set).

    Returns:
        PipelineContext with synthesis_result populated.
    """
    context = _new_context(config, "synthesis")
    context.clusters = list(clusters)

    llm_client = llm_client or LLMClient.from_config(config)
    if geocoder is None and config.geocoding_enabled:
        geocoder = GeocodingClient(
            base_url=config.geocoding_base_url,
            request_timeout=config.geocoding_request_timeout,
            user_agent=config.geocoding_user_agent,
        )

    agent = SynthesisAgent(llm_client, geocoder=geocoder)
    _run_phase(context, "SynthesisAgent", agent, "synthesis_result")
    if context.synthesis_result is not None:
        save_json(context.synthesis_result.events, context.output_dir / "events.json")

    _finalise(context)
    return context


def run_sentiment_sweep(
    config: PipelineConfig,
    data_fetcher: DataFetcher,
    score_store: Optional[JsonScoreStore] = None,
    analyzer: Optional[Any] = None,
    areas: Optional[Sequence[AreaDefinition]] = None,
) -> PipelineContext:
    """Run one sentiment sweep over all areas.

    Loads previous scores, sweeps, persists each area's new score one area at
    a time, evaluates alerts, and writes ``area_sentiment.json`` and
    ``alerts.json`` to the run directory.

    Args:
        config: Pipeline configuration.
        data_fetcher: Source of recent posts and reports per area.
        score_store: Previous-score store (config.score_store_path when omitted).
        analyzer: Per-source analyzer (a SentimentAnalyzer over an LLMClient
            built from config when omitted).
        areas: Areas to sweep (loaded from config.areas_file when omitted).

    Returns:
        PipelineContext with sentiment_result populated.
    """
    context = _new_context(config, "sentiment")

    areas = list(areas) if areas is not None else load_areas(config.areas_file)
    score_store = score_store or JsonScoreStore(config.score_store_path)
    if analyzer is None:
        analyzer = SentimentAnalyzer(
            LLMClient.from_config(config),
            max_tokens=config.llm_max_tokens,
            temperature=config.llm_temperature,
        )

    previous_scores = score_store.load_scores(a.name for a in areas)
    agent = SentimentSweepAgent(analyzer, data_fetcher, areas, previous_scores)

    if _run_phase(context, "SentimentSweepAgent", agent, "sentiment_result"):
        result = context.sentiment_result
        for area_result in result.areas:
            score_store.set(area_result.area, area_result.sentiment.score)
        save_json(result.areas, context.output_dir / "area_sentiment.json")
        save_json(result.alerts, context.output_dir / "alerts.json")

    _finalise(context)
    return context


def run_image_triage(
    config: PipelineConfig,
    image_bytes: bytes,
    metadata: ImageMetadata,
    llm_client: Optional[LLMClient] = None,
) -> PipelineContext:
    """Analyze, moderate and convert one citizen image report.

    Writes ``image_triage.json`` to the run directory.

    Args:
        config: Pipeline configuration.
        image_bytes: Raw image content.
        metadata: Upload metadata.
        llm_client: Vision collaborator (built from config when omitted).

    Returns:
        PipelineContext with image_result populated.
    """
    context = _new_context(config, "image")
    analyzer = ImageAnalyzer(
        llm_client or LLMClient.from_config(config),
        max_tokens=config.llm_max_tokens,
        temperature=config.llm_temperature,
    )
    agent = ImageTriageAgent(analyzer, image_bytes, metadata)

    if _run_phase(context, "ImageTriageAgent", agent, "image_result"):
        save_json(context.image_result, context.output_dir / "image_triage.json")

    _finalise(context)
    return context
