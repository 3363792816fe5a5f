#!/usr/bin/env python3
"""IncidentFusion CLI — run one pipeline mode over local input files.

Usage:
    python scripts/run_pipeline.py synthesize --clusters data/clusters.json
    python scripts/run_pipeline.py sentiment --posts data/posts.json --reports data/reports.json
    python scripts/run_pipeline.py image --image upload.jpg --lat 37.78 --lon -122.41
"""

from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path

# Ensure project root is on sys.path for consistent import resolution
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from config.defaults import (  # noqa: E402
    ANTHROPIC_MODEL,
    AREAS_FILE,
    DEFAULT_LOG_LEVEL,
    LLM_DEFAULT_MAX_TOKENS,
    LLM_TEMPERATURE,
    MIN_POSTS_FOR_SYNTHESIS,
    OLLAMA_HOST,
    OLLAMA_MODEL,
    OUTPUT_ROOT,
    SCORE_STORE_PATH,
    SWEEP_LOOKBACK_HOURS,
    SWEEP_MAX_WORKERS,
    SYNTHESIS_MAX_WORKERS,
)
from config.settings import PipelineConfig  # noqa: E402
from incidentfusion.utils.logging_utils import configure_logging  # noqa: E402


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with one subcommand per pipeline mode."""
    parser = argparse.ArgumentParser(
        prog="run_pipeline",
        description="IncidentFusion — Citizen incident synthesis and area sentiment pipeline",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # ── LLM backend ─────────────────────────────────────────────────────────────
    parser.add_argument(
        "--llm-backend",
        type=str,
        default="ollama",
        choices=["anthropic", "ollama"],
        help="LLM backend used for synthesis, sentiment and image analysis",
    )
    parser.add_argument(
        "--anthropic-model", type=str, default=ANTHROPIC_MODEL, help="Anthropic model ID"
    )
    parser.add_argument(
        "--ollama-model", type=str, default=OLLAMA_MODEL, help="Ollama model name"
    )
    parser.add_argument(
        "--ollama-host", type=str, default=OLLAMA_HOST, help="Ollama server URL"
    )
    parser.add_argument(
        "--llm-temperature", type=float, default=LLM_TEMPERATURE, help="LLM sampling temperature"
    )
    parser.add_argument(
        "--llm-max-tokens",
        type=int,
        default=LLM_DEFAULT_MAX_TOKENS,
        help="Maximum tokens to generate per LLM call",
    )

    # ── Output ──────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--output-root", type=str, default=OUTPUT_ROOT, help="Root directory for run outputs"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=DEFAULT_LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )

    subparsers = parser.add_subparsers(dest="mode", required=True)

    # ── synthesize ──────────────────────────────────────────────────────────────
    synth = subparsers.add_parser(
        "synthesize",
        help="Synthesize events from post clusters",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    synth.add_argument(
        "--clusters", type=str, required=True, help="JSON file of post clusters"
    )
    synth.add_argument(
        "--min-posts",
        type=int,
        default=MIN_POSTS_FOR_SYNTHESIS,
        help="Clusters with fewer posts are skipped",
    )
    synth.add_argument(
        "--max-workers",
        type=int,
        default=SYNTHESIS_MAX_WORKERS,
        help="Concurrent cluster workers",
    )
    synth.add_argument(
        "--geocode",
        action="store_true",
        default=False,
        help="Reverse geocode synthesized event locations",
    )

    # ── sentiment ───────────────────────────────────────────────────────────────
    sentiment = subparsers.add_parser(
        "sentiment",
        help="Run one area sentiment sweep",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sentiment.add_argument("--posts", type=str, required=True, help="JSON file of social posts")
    sentiment.add_argument(
        "--reports", type=str, required=True, help="JSON file of citizen reports"
    )
    sentiment.add_argument(
        "--areas", type=str, default=AREAS_FILE, help="YAML file of area definitions"
    )
    sentiment.add_argument(
        "--score-store",
        type=str,
        default=SCORE_STORE_PATH,
        help="JSON file holding each area's previous score",
    )
    sentiment.add_argument(
        "--lookback-hours",
        type=int,
        default=SWEEP_LOOKBACK_HOURS,
        help="Only posts and reports newer than this are considered",
    )
    sentiment.add_argument(
        "--max-workers", type=int, default=SWEEP_MAX_WORKERS, help="Concurrent area workers"
    )

    # ── image ───────────────────────────────────────────────────────────────────
    image = subparsers.add_parser(
        "image",
        help="Triage one citizen image report",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    image.add_argument("--image", type=str, required=True, help="Image file to analyze")
    image.add_argument("--user-id", type=str, default="anonymous", help="Reporting user ID")
    image.add_argument("--lat", type=float, default=None, help="Upload latitude")
    image.add_argument("--lon", type=float, default=None, help="Upload longitude")
    image.add_argument(
        "--mime-type",
        type=str,
        default=None,
        help="Image MIME type (guessed from the file name when omitted)",
    )

    return parser


def args_to_config(args: argparse.Namespace) -> PipelineConfig:
    """Convert parsed CLI arguments to a PipelineConfig instance.

    Args:
        args: Parsed argparse Namespace.

    Returns:
        PipelineConfig populated from CLI flags.
    """
    config = PipelineConfig(
        llm_backend=args.llm_backend,
        anthropic_model=args.anthropic_model,
        ollama_model=args.ollama_model,
        ollama_host=args.ollama_host,
        llm_temperature=args.llm_temperature,
        llm_max_tokens=args.llm_max_tokens,
        output_root=args.output_root,
        log_level=args.log_level,
    )
    if args.mode == "synthesize":
        config.min_posts_for_synthesis = args.min_posts
        config.synthesis_max_workers = args.max_workers
        config.geocoding_enabled = config.geocoding_enabled or args.geocode
    elif args.mode == "sentiment":
        config.areas_file = args.areas
        config.score_store_path = args.score_store
        config.sweep_lookback_hours = args.lookback_hours
        config.sweep_max_workers = args.max_workers
    return config


def _run_mode(args: argparse.Namespace, config: PipelineConfig):
    from incidentfusion.analysis.sentiment_aggregator import InMemoryDataFetcher
    from incidentfusion.io.persistence import (
        JsonScoreStore,
        load_clusters,
        load_posts,
        load_user_reports,
    )
    from incidentfusion.models.image import ImageMetadata
    from incidentfusion.models.posts import GeoPoint
    from incidentfusion.pipeline import run_image_triage, run_sentiment_sweep, run_synthesis
    from incidentfusion.utils.date_utils import utcnow

    if args.mode == "synthesize":
        return run_synthesis(config, load_clusters(args.clusters))

    if args.mode == "sentiment":
        fetcher = InMemoryDataFetcher(load_posts(args.posts), load_user_reports(args.reports))
        return run_sentiment_sweep(config, fetcher, score_store=JsonScoreStore(args.score_store))

    image_path = Path(args.image)
    image_bytes = image_path.read_bytes()
    location = None
    if args.lat is not None and args.lon is not None:
        location = GeoPoint(lat=args.lat, lon=args.lon)
    metadata = ImageMetadata(
        image_url=image_path.resolve().as_uri(),
        user_id=args.user_id,
        upload_timestamp=utcnow(),
        file_size=len(image_bytes),
        location=location,
        mime_type=args.mime_type or mimetypes.guess_type(image_path.name)[0] or "image/jpeg",
    )
    return run_image_triage(config, image_bytes, metadata)


def main() -> None:
    """CLI entrypoint — parse arguments, build config, run the selected mode."""
    parser = build_arg_parser()
    args = parser.parse_args()

    configure_logging(log_level=args.log_level)
    logger = logging.getLogger("incidentfusion.cli")

    try:
        config = args_to_config(args)
    except ValueError as exc:
        parser.error(str(exc))

    logger.info("IncidentFusion %s starting | backend: %s", args.mode, config.llm_backend)

    try:
        context = _run_mode(args, config)
    except KeyboardInterrupt:
        logger.info("Pipeline interrupted by user")
        sys.exit(0)
    except (OSError, ValueError) as exc:
        logger.error("Could not load input: %s", exc)
        sys.exit(1)
    except Exception as exc:
        logger.exception("Pipeline failed with unhandled exception: %s", exc)
        sys.exit(1)

    logger.info("Run complete. Run ID: %s | outputs: %s", context.run_id, context.output_dir)
    if context.errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
