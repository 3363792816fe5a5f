"""IncidentFusion — Citizen incident synthesis and area sentiment pipeline.

Public API surface:
    - PipelineConfig: Runtime configuration
    - PipelineContext: Shared state threaded through all agents
    - run_synthesis / run_sentiment_sweep / run_image_triage: Entry points
"""

__version__ = "1.0.0"
__author__ = "IncidentFusion Contributors"

from config.settings import PipelineConfig
from incidentfusion.models.pipeline import PipelineContext
from incidentfusion.pipeline import run_image_triage, run_sentiment_sweep, run_synthesis

__all__ = [
    "__version__",
    "PipelineConfig",
    "PipelineContext",
    "run_image_triage",
    "run_sentiment_sweep",
    "run_synthesis",
]
