"""Bounding-box index and candidate pre-filter for target features.

The index is built once per run over the full target set. When a finite
search radius is configured, each source feature's bbox is expanded by the
radius converted to degrees and only targets whose bbox overlaps it are
searched.

The degree conversion is an approximation (~111 km per degree of latitude,
times a safety multiplier). The longitude buffer is widened by 1/cos(latitude)
at the highest latitude the expanded box reaches; boxes touching a pole or
crossing the antimeridian are not constrained in longitude. If the filter
returns nothing the full target set is searched instead, so the pre-filter
can only ever change speed, never the match.
"""

import logging
import math
from collections.abc import Sequence
from typing import NamedTuple

import numpy as np
import shapely

from proximity_join.config import DEFAULT_SETTINGS, ProximityJoinSettings
from proximity_join.models.domain import Feature
from proximity_join.models.enums import GeometryKind
from proximity_join.models.geometry import classify_geometry, is_usable

logger = logging.getLogger(__name__)


class BBoxEntry(NamedTuple):
    """Bounding box of one target feature."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float
    target_index: int


class Candidate(NamedTuple):
    """A target feature eligible for the nearest search."""

    index: int
    feature: Feature
    kind: GeometryKind


class BoundingBoxIndex:
    """Axis-aligned bounding boxes of target features, stored as numpy arrays.

    Features whose bbox cannot be computed (missing, empty or non-finite
    geometry) are omitted.
    """

    def __init__(self, entries: Sequence[BBoxEntry]):
        self._bounds = np.array([e[:4] for e in entries], dtype=float).reshape(-1, 4)
        self._target_indices = np.array([e.target_index for e in entries], dtype=int)

    def __len__(self) -> int:
        return len(self._target_indices)

    @property
    def entries(self) -> list[BBoxEntry]:
        return [
            BBoxEntry(*(float(v) for v in bounds), int(index))
            for bounds, index in zip(self._bounds, self._target_indices, strict=True)
        ]

    def overlapping(
        self,
        min_x: float,
        min_y: float,
        max_x: float,
        max_y: float,
    ) -> list[int]:
        """Target indices whose bbox overlaps the query box, in target order."""
        b = self._bounds
        mask = ~((b[:, 2] < min_x) | (b[:, 0] > max_x) | (b[:, 3] < min_y) | (b[:, 1] > max_y))
        return self._target_indices[mask].tolist()


def build_index(targets: Sequence[Feature]) -> BoundingBoxIndex:
    """Compute the bounding box of every usable target feature.

    Args:
        targets: Target features

    Returns:
        BoundingBoxIndex over the targets
    """
    geometries = np.array([t.geometry for t in targets], dtype=object)
    bounds = shapely.bounds(geometries).reshape(-1, 4)

    entries = []
    for i, target in enumerate(targets):
        row = bounds[i]
        if not is_usable(target.geometry):
            continue
        if not np.isfinite(row).all():
            continue
        entries.append(BBoxEntry(*(float(v) for v in row), i))

    omitted = len(targets) - len(entries)
    if omitted:
        logger.info(f"Bounding-box index omitted {omitted} target(s) with unusable geometry")
    return BoundingBoxIndex(entries)


def expand_bounds(
    bounds: tuple[float, float, float, float],
    max_radius_m: float,
    settings: ProximityJoinSettings = DEFAULT_SETTINGS,
) -> tuple[float, float, float, float]:
    """Expand a lon/lat bbox by a buffer approximating ``max_radius_m``.

    Args:
        bounds: (min_x, min_y, max_x, max_y) in degrees
        max_radius_m: Search radius in metres
        settings: Supplies metres per degree and the safety multiplier

    Returns:
        Expanded (min_x, min_y, max_x, max_y); longitudes span [-inf, inf]
        when the box reaches a pole or the antimeridian
    """
    min_x, min_y, max_x, max_y = bounds
    buffer_deg = max_radius_m / settings.metres_per_degree * settings.bbox_safety_factor

    min_y -= buffer_deg
    max_y += buffer_deg
    highest_lat = max(abs(min_y), abs(max_y))
    if highest_lat >= 90.0:
        return -math.inf, min_y, math.inf, max_y

    buffer_lon = buffer_deg / math.cos(math.radians(highest_lat))
    min_x -= buffer_lon
    max_x += buffer_lon
    if min_x < -180.0 or max_x > 180.0:
        return -math.inf, min_y, math.inf, max_y

    return min_x, min_y, max_x, max_y


class TargetSet:
    """Target features prepared once per run: kinds, bbox index and pre-filter."""

    def __init__(
        self,
        features: Sequence[Feature],
        settings: ProximityJoinSettings = DEFAULT_SETTINGS,
    ):
        self.features = list(features)
        self.settings = settings
        self.candidates = [
            Candidate(i, feature, classify_geometry(feature.geometry))
            for i, feature in enumerate(self.features)
        ]
        self.index = build_index(self.features)

    def __len__(self) -> int:
        return len(self.features)

    def filter_candidates(self, source: Feature, max_radius_m: float) -> list[Candidate]:
        """Narrow the targets to those that could lie within ``max_radius_m``.

        Only filters when the radius is finite. Falls back to the full target
        set when the source bbox cannot be computed or nothing overlaps.

        Args:
            source: Source feature
            max_radius_m: Search radius in metres

        Returns:
            Candidates in target order
        """
        if not math.isfinite(max_radius_m):
            return self.candidates

        if not is_usable(source.geometry):
            return self.candidates

        query = expand_bounds(source.geometry.bounds, max_radius_m, self.settings)
        indices = self.index.overlapping(*query)
        if not indices:
            return self.candidates

        return [self.candidates[i] for i in indices]
