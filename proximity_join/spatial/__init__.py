"""Spatial operations for the proximity join.

This package provides the nearest-feature engine:
- Distance resolution between any supported pair of geometry kinds
- Bounding-box index and radius-based candidate pre-filter
- Nearest search with radius cutoff
- General utilities (representative points, local projection, snapping)

Commonly used exports:
- GeometryDistanceResolver: Fail-soft source-to-target distance
- TargetSet: Targets prepared once per run (kinds, bbox index, pre-filter)
- build_index: Bounding-box index over target features
- find_nearest: Nearest candidate subject to the radius cutoff
- representative_point: Reduce a geometry to one (lon, lat)
"""

from proximity_join.spatial.distance import (
    DISTANCE_STRATEGIES,
    UNREACHABLE,
    DistanceResult,
    GeometryDistanceResolver,
    resolve_strategy,
)
from proximity_join.spatial.index import (
    BBoxEntry,
    BoundingBoxIndex,
    Candidate,
    TargetSet,
    build_index,
    expand_bounds,
)
from proximity_join.spatial.search import find_nearest
from proximity_join.spatial.utils import representative_point, snap_to_line

__all__ = [
    "GeometryDistanceResolver",
    "DistanceResult",
    "UNREACHABLE",
    "DISTANCE_STRATEGIES",
    "resolve_strategy",
    "BBoxEntry",
    "BoundingBoxIndex",
    "Candidate",
    "TargetSet",
    "build_index",
    "expand_bounds",
    "find_nearest",
    "representative_point",
    "snap_to_line",
]
