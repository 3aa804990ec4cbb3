"""Nearest-feature search over a candidate set."""

import math
from collections.abc import Sequence

from proximity_join.models.domain import Feature, MatchResult
from proximity_join.spatial.distance import GeometryDistanceResolver
from proximity_join.spatial.index import Candidate


def find_nearest(
    source: Feature,
    candidates: Sequence[Candidate],
    max_radius_m: float,
    resolver: GeometryDistanceResolver,
    source_index: int = 0,
) -> MatchResult | None:
    """Find the candidate nearest to ``source``.

    Linear scan keeping the minimum distance. The first candidate reached at
    the minimum distance wins, so results follow candidate order. When a
    finite radius is given and the best distance exceeds it, there is no
    match (the second best is never substituted).

    Args:
        source: Source feature
        candidates: Target candidates in target order
        max_radius_m: Search radius in metres (inf = unlimited)
        resolver: Distance resolver
        source_index: Index of the source feature, recorded on the result

    Returns:
        MatchResult for the nearest target, or None when there is no match
    """
    origin = resolver.source_point(source)
    if origin is None:
        return None
    source_kind = source.kind

    best: Candidate | None = None
    best_distance = math.inf
    best_coordinate = None
    for candidate in candidates:
        result = resolver.distance_from(
            origin, source_kind, candidate.feature.geometry, candidate.kind
        )
        if result.distance_m < best_distance:
            best = candidate
            best_distance = result.distance_m
            best_coordinate = result.nearest_coordinate

    if best is None:
        return None
    if math.isfinite(max_radius_m) and best_distance > max_radius_m:
        return None

    return MatchResult(
        source_index=source_index,
        matched_feature=best.feature,
        target_index=best.index,
        distance_m=best_distance,
        nearest_coordinate=best_coordinate,
    )
