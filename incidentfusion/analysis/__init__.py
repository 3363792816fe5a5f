"""IncidentFusion analysis package.

Pure detection, inference, aggregation and rule-evaluation logic. Nothing here
calls an external collaborator directly.
"""

from incidentfusion.analysis.alert_evaluator import evaluate_alerts
from incidentfusion.analysis.area_manager import AreaManager, area_slug, load_areas
from incidentfusion.analysis.duplicate_detector import DuplicateDetector, detect_duplicates
from incidentfusion.analysis.location_inferencer import infer_central_location
from incidentfusion.analysis.sentiment_aggregator import (
    InMemoryDataFetcher,
    aggregate,
    classify_score,
    determine_trend,
    process_areas,
)

__all__ = [
    "AreaManager",
    "DuplicateDetector",
    "InMemoryDataFetcher",
    "aggregate",
    "area_slug",
    "classify_score",
    "detect_duplicates",
    "determine_trend",
    "evaluate_alerts",
    "infer_central_location",
    "load_areas",
    "process_areas",
]
