"""IncidentFusion utilities package.

All utilities except logging setup are stateless pure functions with no
external calls or side effects.
"""

from incidentfusion.utils.date_utils import parse_timestamp, to_epoch_ms
from incidentfusion.utils.geo_utils import bbox_contains, center_of_bounds, haversine_km, haversine_m
from incidentfusion.utils.text import normalize_for_similarity, sanitize_text, text_similarity

__all__ = [
    "parse_timestamp",
    "to_epoch_ms",
    "bbox_contains",
    "center_of_bounds",
    "haversine_km",
    "haversine_m",
    "normalize_for_similarity",
    "sanitize_text",
    "text_similarity",
]
