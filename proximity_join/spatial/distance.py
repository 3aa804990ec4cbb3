"""Distance between a source feature and a target feature.

The resolver reduces the source to one representative point and measures the
distance to the target according to the target's geometry kind:

- Point/MultiPoint: great-circle distance to the nearest point
- LineString/MultiLineString: snap onto the line, distance to the snapped point
- Polygon/MultiPolygon: 0 if the point is covered, otherwise snap onto the boundary
- Anything else (or missing geometry on either side): unreachable (infinite)

The strategy for a pair is looked up once in a table keyed by
``(source_kind, target_kind)``. Distances are approximations on a sphere and
are not exact geodesic boundary distances near the poles or over very large
extents.
"""

import logging
import math
from collections.abc import Callable
from typing import NamedTuple

import shapely
from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry

from proximity_join.calculators.great_circle import haversine_m
from proximity_join.models.domain import Feature
from proximity_join.models.enums import GeometryKind, RepresentativePointMethod
from proximity_join.spatial.utils import Coordinate, representative_point, snap_to_line

logger = logging.getLogger(__name__)


class DistanceResult(NamedTuple):
    """Distance in metres and the closest coordinate on the target."""

    distance_m: float
    nearest_coordinate: Coordinate | None


UNREACHABLE = DistanceResult(math.inf, None)

DistanceStrategy = Callable[[Coordinate, BaseGeometry], DistanceResult]


def _distance_to_points(origin: Coordinate, target: BaseGeometry) -> DistanceResult:
    best = UNREACHABLE
    for lon, lat in shapely.get_coordinates(target):
        distance = haversine_m(origin[0], origin[1], lon, lat)
        if distance < best.distance_m:
            best = DistanceResult(distance, (float(lon), float(lat)))
    return best


def _distance_to_lines(origin: Coordinate, target: BaseGeometry) -> DistanceResult:
    snapped = snap_to_line(origin, target)
    return DistanceResult(haversine_m(origin[0], origin[1], snapped[0], snapped[1]), snapped)


def _distance_to_polygons(origin: Coordinate, target: BaseGeometry) -> DistanceResult:
    if target.covers(Point(origin)):
        return DistanceResult(0.0, origin)
    return _distance_to_lines(origin, target.boundary)


_TARGET_STRATEGIES: dict[GeometryKind, DistanceStrategy] = {
    GeometryKind.POINT: _distance_to_points,
    GeometryKind.MULTI_POINT: _distance_to_points,
    GeometryKind.LINE_STRING: _distance_to_lines,
    GeometryKind.MULTI_LINE_STRING: _distance_to_lines,
    GeometryKind.POLYGON: _distance_to_polygons,
    GeometryKind.MULTI_POLYGON: _distance_to_polygons,
}

# Every supported source kind is reduced to a point first, so the target kind
# alone picks the strategy; OTHER on either side has no entry.
DISTANCE_STRATEGIES: dict[tuple[GeometryKind, GeometryKind], DistanceStrategy] = {
    (source_kind, target_kind): strategy
    for source_kind in _TARGET_STRATEGIES
    for target_kind, strategy in _TARGET_STRATEGIES.items()
}


def resolve_strategy(
    source_kind: GeometryKind, target_kind: GeometryKind
) -> DistanceStrategy | None:
    """Look up the distance strategy for a pair of geometry kinds."""
    return DISTANCE_STRATEGIES.get((source_kind, target_kind))


class GeometryDistanceResolver:
    """Computes source-to-target distances without ever raising.

    Any failure inside a strategy is logged at DEBUG and reported as
    UNREACHABLE so one bad geometry cannot abort a join.
    """

    def __init__(
        self,
        method: RepresentativePointMethod = RepresentativePointMethod.CENTER_OF_MASS,
    ):
        self.method = RepresentativePointMethod(method)

    def source_point(self, source: Feature) -> Coordinate | None:
        """Representative (lon, lat) of a source feature, or None if unusable."""
        try:
            return representative_point(source.geometry, self.method)
        except Exception as e:
            logger.debug(f"Could not derive representative point: {e}")
            return None

    def distance(self, source: Feature, target: Feature) -> DistanceResult:
        """Distance from ``source`` to ``target`` in metres.

        Args:
            source: Source feature
            target: Target feature

        Returns:
            DistanceResult (UNREACHABLE when either geometry is unusable)
        """
        origin = self.source_point(source)
        if origin is None:
            return UNREACHABLE
        return self.distance_from(origin, source.kind, target.geometry, target.kind)

    def distance_from(
        self,
        origin: Coordinate,
        source_kind: GeometryKind,
        target_geometry: BaseGeometry | None,
        target_kind: GeometryKind,
    ) -> DistanceResult:
        """Distance from an already derived source point to a target geometry."""
        strategy = resolve_strategy(source_kind, target_kind)
        if strategy is None:
            return UNREACHABLE

        try:
            result = strategy(origin, target_geometry)
        except Exception as e:
            logger.debug(f"Distance to {target_kind.value} failed: {e}")
            return UNREACHABLE

        if math.isnan(result.distance_m):
            return UNREACHABLE
        return result
