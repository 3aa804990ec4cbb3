"""Geometry classification for the distance resolver."""

import numpy as np
import shapely
from shapely.geometry.base import BaseGeometry

from proximity_join.models.enums import GeometryKind

_KINDS_BY_TYPE = {kind.value: kind for kind in GeometryKind if kind is not GeometryKind.OTHER}


def classify_geometry(geometry: BaseGeometry | None) -> GeometryKind:
    """Classify a geometry into the variant used for distance dispatch.

    Missing or empty geometries, collections and anything with NaN/inf
    coordinates classify as OTHER, which the resolver treats as unusable.

    Args:
        geometry: Shapely geometry (or None)

    Returns:
        GeometryKind for the geometry
    """
    if geometry is None or not isinstance(geometry, BaseGeometry) or geometry.is_empty:
        return GeometryKind.OTHER

    kind = _KINDS_BY_TYPE.get(geometry.geom_type, GeometryKind.OTHER)
    if kind is GeometryKind.OTHER:
        return kind

    coords = shapely.get_coordinates(geometry)
    if len(coords) == 0 or not np.isfinite(coords).all():
        return GeometryKind.OTHER

    return kind


def is_usable(geometry: BaseGeometry | None) -> bool:
    """Return True if the geometry can take part in a distance calculation."""
    return classify_geometry(geometry) is not GeometryKind.OTHER
