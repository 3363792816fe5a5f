"""Duplicate detection for IncidentFusion.

Groups posts that describe the same occurrence by combining temporal
proximity, spatial proximity and token-overlap similarity.

Grouping is seed-based and non-transitive: each unassigned post in input order
becomes a seed and absorbs every later unassigned post that is a duplicate of
the seed itself. A post similar only to an absorbed member is not pulled in.
Results depend on input order; callers wanting stable output must pass posts
in a stable order.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from config.defaults import (
    DUPLICATE_DISTANCE_METERS,
    DUPLICATE_TIME_WINDOW_MS,
    TEXT_SIMILARITY_THRESHOLD,
)
from incidentfusion.models.events import DuplicateGroup
from incidentfusion.models.posts import Post
from incidentfusion.utils.geo_utils import haversine_m
from incidentfusion.utils.text import text_similarity

logger = logging.getLogger(__name__)


class DuplicateDetector:
    """Pairwise duplicate test plus the seed-based grouping scan.

    Args:
        time_window_ms: Maximum timestamp gap between duplicates (inclusive).
        distance_threshold_m: Maximum separation when both posts are located (inclusive).
        similarity_threshold: Minimum Jaccard token similarity (inclusive).
    """

    def __init__(
        self,
        time_window_ms: int = DUPLICATE_TIME_WINDOW_MS,
        distance_threshold_m: float = DUPLICATE_DISTANCE_METERS,
        similarity_threshold: float = TEXT_SIMILARITY_THRESHOLD,
    ) -> None:
        self.time_window_ms = time_window_ms
        self.distance_threshold_m = distance_threshold_m
        self.similarity_threshold = similarity_threshold

    def are_duplicates(self, a: Post, b: Post) -> bool:
        """Decide whether two posts describe the same occurrence.

        The location check applies only when both posts are located.

        Args:
            a: First post.
            b: Second post.

        Returns:
            True if all applicable criteria hold.
        """
        if abs(a.timestamp_ms - b.timestamp_ms) > self.time_window_ms:
            return False

        if a.location is not None and b.location is not None:
            distance = haversine_m(a.location.lat, a.location.lon, b.location.lat, b.location.lon)
            if distance > self.distance_threshold_m:
                return False

        return text_similarity(a.text, b.text) >= self.similarity_threshold

    def detect(self, posts: Sequence[Post]) -> List[DuplicateGroup]:
        """Partition posts into duplicate groups of size >= 2.

        Args:
            posts: Posts in the order that determines seeding.

        Returns:
            Ordered groups of post ids; the seed's id comes first in each group.
            Posts with no duplicate do not appear.
        """
        assigned: List[bool] = [False] * len(posts)
        groups: List[DuplicateGroup] = []

        for i, seed in enumerate(posts):
            if assigned[i]:
                continue
            assigned[i] = True
            group: DuplicateGroup = [seed.id]

            for j in range(i + 1, len(posts)):
                if assigned[j]:
                    continue
                if self.are_duplicates(seed, posts[j]):
                    group.append(posts[j].id)
                    assigned[j] = True

            if len(group) > 1:
                groups.append(group)

        logger.debug("Detected %d duplicate groups across %d posts", len(groups), len(posts))
        return groups


def detect_duplicates(
    posts: Sequence[Post],
    time_window_ms: int = DUPLICATE_TIME_WINDOW_MS,
    distance_threshold_m: float = DUPLICATE_DISTANCE_METERS,
    similarity_threshold: float = TEXT_SIMILARITY_THRESHOLD,
) -> List[DuplicateGroup]:
    """Convenience wrapper around DuplicateDetector.detect()."""
    detector = DuplicateDetector(time_window_ms, distance_threshold_m, similarity_threshold)
    return detector.detect(posts)
