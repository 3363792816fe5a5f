"""JSON persistence utilities for IncidentFusion.

Provides atomic file writes (write-to-temp-then-rename), safe JSON load/save,
input record loaders for the CLI, and the per-area previous-score store.
No business logic — file I/O only.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from incidentfusion.analysis.area_manager import area_slug
from incidentfusion.models.posts import Post, PostCluster, UserReport
from incidentfusion.utils.date_utils import isoformat_z

logger = logging.getLogger(__name__)


class _DataclassEncoder(json.JSONEncoder):
    """JSON encoder that handles dataclasses, datetimes and Path objects."""

    def default(self, obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        if isinstance(obj, datetime):
            return isoformat_z(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(data: Any, path: str | Path, indent: int = 2) -> None:
    """Atomically write data to a JSON file.

    Uses a write-to-temp-then-rename strategy to prevent partial writes.
    Creates parent directories if they do not exist.

    Args:
        data: Data to serialize. Supports dicts, lists, dataclasses, datetimes and Paths.
        path: Output file path.
        indent: JSON indentation level (default: 2).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        serialized = json.dumps(data, indent=indent, ensure_ascii=False, cls=_DataclassEncoder)
    except (TypeError, ValueError) as exc:
        logger.error("JSON serialization failed for %s: %s", path, exc)
        raise

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp.write(serialized)
        tmp_path = tmp.name

    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        os.unlink(tmp_path)
        logger.error("Atomic rename failed for %s: %s", path, exc)
        raise

    logger.debug("Saved JSON to %s (%d bytes)", path, len(serialized))


def load_json(path: str | Path) -> Optional[Any]:
    """Load and parse a JSON file.

    Returns None if the file does not exist or cannot be parsed.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed Python object, or None on error.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("JSON file not found: %s", path)
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to load JSON from %s: %s", path, exc)
        return None


def ensure_output_dir(base_dir: str | Path, run_id: str) -> Path:
    """Create and return the output directory for a pipeline run.

    Args:
        base_dir: Root output directory (e.g., outputs/runs).
        run_id: Pipeline run identifier (YYYYMMDD_HHMMSS_<mode>).

    Returns:
        Path to the created run output directory.
    """
    run_dir = Path(base_dir) / run_id
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


# ── Input loaders ──────────────────────────────────────────────────────────────

def _load_list(path: str | Path, key: str) -> List[Dict[str, Any]]:
    data = load_json(path)
    if data is None:
        raise FileNotFoundError(f"No readable JSON at {path}")
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list (or an object with {key!r}) in {path}")
    return data


def load_posts(path: str | Path) -> List[Post]:
    """Load posts from a JSON list (or ``{"posts": [...]}``)."""
    return [Post.from_dict(raw) for raw in _load_list(path, "posts")]


def load_user_reports(path: str | Path) -> List[UserReport]:
    """Load citizen reports from a JSON list (or ``{"reports": [...]}``)."""
    return [UserReport.from_dict(raw) for raw in _load_list(path, "reports")]


def load_clusters(path: str | Path) -> List[PostCluster]:
    """Load post clusters from a JSON list (or ``{"clusters": [...]}``)."""
    return [PostCluster.from_dict(raw) for raw in _load_list(path, "clusters")]


# ── Previous-score store ───────────────────────────────────────────────────────

class JsonScoreStore:
    """Previous combined sentiment score per area, kept in one JSON file.

    Keys on disk are area slugs ("Mission District" -> "mission_district").
    Updates are read-modify-write of the whole file, serialized per process
    by a lock; concurrent writers in other processes are not guarded.

    Args:
        path: JSON file path (created on first write).
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, float]:
        data = load_json(self.path)
        if not isinstance(data, dict):
            return {}
        return {
            str(k): float(v)
            for k, v in data.items()
            if isinstance(v, (int, float)) and not isinstance(v, bool)
        }

    def get(self, area_name: str) -> Optional[float]:
        """Stored score for an area, or None if never recorded."""
        return self._read().get(area_slug(area_name))

    def load_scores(self, area_names: Iterable[str]) -> Dict[str, float]:
        """Stored scores keyed by area name, for the areas that have one."""
        stored = self._read()
        scores: Dict[str, float] = {}
        for name in area_names:
            slug = area_slug(name)
            if slug in stored:
                scores[name] = stored[slug]
        return scores

    def set(self, area_name: str, score: float) -> None:
        """Record one area's score."""
        with self._lock:
            stored = self._read()
            stored[area_slug(area_name)] = float(score)
            save_json(stored, self.path)
