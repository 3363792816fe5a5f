"""IncidentFusion I/O package.

File read/write operations only — no business logic in this layer.
"""

from incidentfusion.io.persistence import (
    JsonScoreStore,
    ensure_output_dir,
    load_clusters,
    load_json,
    load_posts,
    load_user_reports,
    save_json,
)

__all__ = [
    "JsonScoreStore",
    "ensure_output_dir",
    "load_clusters",
    "load_json",
    "load_posts",
    "load_user_reports",
    "save_json",
]
