"""General spatial utilities for lon/lat geometries.

This module provides:
- Representative point derivation (vertex centroid or centre of mass)
- A local equirectangular frame used to snap points onto lines in metres-ish space
"""

import math

import numpy as np
import shapely
from shapely.geometry import LineString, Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import nearest_points

from proximity_join.calculators.great_circle import haversine_m
from proximity_join.models.enums import GeometryKind, RepresentativePointMethod
from proximity_join.models.geometry import classify_geometry

Coordinate = tuple[float, float]

# Smallest longitude scale used by the local frame (about 0.06 degrees from a pole)
MIN_LONGITUDE_SCALE = 1e-3


def wrap_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return (lon + 180.0) % 360.0 - 180.0


def _vertex_coordinates(geometry: BaseGeometry) -> np.ndarray:
    """All vertex coordinates, excluding the closing vertex of polygon rings."""
    if isinstance(geometry, Polygon):
        rings = [geometry.exterior, *geometry.interiors]
        return np.concatenate([np.asarray(ring.coords)[:-1, :2] for ring in rings])
    if hasattr(geometry, "geoms"):
        return np.concatenate([_vertex_coordinates(part) for part in geometry.geoms])
    return shapely.get_coordinates(geometry)


def vertex_centroid(geometry: BaseGeometry) -> Coordinate:
    """Arithmetic mean of a geometry's vertices."""
    coords = _vertex_coordinates(geometry)
    lon, lat = coords.mean(axis=0)
    return float(lon), float(lat)


def representative_point(
    geometry: BaseGeometry | None,
    method: RepresentativePointMethod | str = RepresentativePointMethod.CENTER_OF_MASS,
) -> Coordinate | None:
    """Reduce a geometry to a single (lon, lat) point.

    Points are used as-is. Other geometries use either the mean of their
    vertices (``centroid``) or Shapely's area/length weighted centroid
    (``center-of-mass``), which behaves better for elongated or irregular
    shapes with unevenly spaced vertices.

    Args:
        geometry: Source geometry
        method: Representative point method

    Returns:
        (lon, lat) tuple, or None if the geometry is unusable
    """
    kind = classify_geometry(geometry)
    if kind is GeometryKind.OTHER:
        return None
    if kind is GeometryKind.POINT:
        return float(geometry.x), float(geometry.y)

    if RepresentativePointMethod(method) is RepresentativePointMethod.CENTROID:
        point = vertex_centroid(geometry)
    else:
        centroid = geometry.centroid
        point = (float(centroid.x), float(centroid.y))

    if not all(math.isfinite(v) for v in point):
        return None
    return point


def _longitude_scale(lat: float) -> float:
    return max(math.cos(math.radians(lat)), MIN_LONGITUDE_SCALE)


def unwrap_longitudes(lons: np.ndarray, lon0: float) -> np.ndarray:
    """Longitude offsets from ``lon0`` along a vertex sequence.

    Offsets are continuous across the antimeridian: consecutive vertices
    differ by at most 180 degrees, and the first offset lies in [-180, 180).
    Edges are therefore never split at the meridian opposite ``lon0``.
    """
    offsets = np.unwrap(np.asarray(lons, dtype=float) - lon0, period=360.0)
    return offsets + (wrap_longitude(offsets[0]) - offsets[0])


def to_local_frame(line: LineString, origin: Coordinate, turns: int = 0) -> LineString:
    """Project a lon/lat line into an equirectangular frame centred on ``origin``.

    x is the unwrapped longitude offset (shifted by ``turns`` full turns)
    scaled by cos(origin latitude), y is the latitude offset. Both are in
    degrees of arc, so planar nearest-point queries near the origin
    approximate great-circle ones.
    """
    lon0, lat0 = origin
    coords = shapely.get_coordinates(line)
    x = (unwrap_longitudes(coords[:, 0], lon0) + 360.0 * turns) * _longitude_scale(lat0)
    y = coords[:, 1] - lat0
    return LineString(np.column_stack([x, y]))


def from_local_frame(x: float, y: float, origin: Coordinate) -> Coordinate:
    """Inverse of :func:`to_local_frame` for a single point."""
    lon0, lat0 = origin
    lon = wrap_longitude(lon0 + x / _longitude_scale(lat0))
    lat = max(-90.0, min(90.0, lat0 + y))
    return lon, lat


def snap_to_line(origin: Coordinate, line: BaseGeometry) -> Coordinate:
    """Return the (lon, lat) on ``line`` nearest to ``origin``.

    Each part is unwrapped on its own and tried one turn either side, so a
    part lying across the antimeridian or the opposite meridian is measured
    the short way round.

    Args:
        origin: (lon, lat) point to snap
        line: LineString/MultiLineString (or polygon boundary) in lon/lat

    Returns:
        Snapped (lon, lat) coordinate
    """
    centre = Point(0.0, 0.0)
    best = None
    best_distance = math.inf
    for part in shapely.get_parts(line):
        for turns in (0, -1, 1):
            _, snapped = nearest_points(centre, to_local_frame(part, origin, turns))
            candidate = from_local_frame(snapped.x, snapped.y, origin)
            distance = haversine_m(origin[0], origin[1], candidate[0], candidate[1])
            if distance < best_distance:
                best, best_distance = candidate, distance
    return best
