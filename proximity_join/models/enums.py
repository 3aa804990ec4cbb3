"""Enumerations shared across the proximity join engine."""

from enum import Enum, StrEnum

from proximity_join.config import CONSTANTS


class GeometryKind(Enum):
    """Geometry variants the distance resolver knows how to dispatch on.

    OTHER covers collections, empty geometries and anything that cannot be
    used for a distance calculation.
    """

    POINT = "Point"
    MULTI_POINT = "MultiPoint"
    LINE_STRING = "LineString"
    MULTI_LINE_STRING = "MultiLineString"
    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"
    OTHER = "Other"

    @property
    def base(self) -> str | None:
        """Base type name with any Multi prefix removed (None for OTHER)."""
        if self is GeometryKind.OTHER:
            return None
        return self.value.removeprefix("Multi")


class RepresentativePointMethod(StrEnum):
    """How a non-point source geometry is reduced to a single point."""

    CENTROID = "centroid"
    CENTER_OF_MASS = "center-of-mass"


class DistanceUnit(StrEnum):
    """Units distances can be displayed and entered in."""

    FEET = "feet"
    METERS = "meters"
    MILES = "miles"
    KILOMETERS = "kilometers"

    @property
    def abbreviation(self) -> str:
        return _UNIT_ABBREVIATIONS[self]

    @property
    def per_metre(self) -> float:
        """How many of this unit make up one metre."""
        return _UNITS_PER_METRE[self]


_UNIT_ABBREVIATIONS = {
    DistanceUnit.FEET: "ft",
    DistanceUnit.METERS: "m",
    DistanceUnit.MILES: "mi",
    DistanceUnit.KILOMETERS: "km",
}

_UNITS_PER_METRE = {
    DistanceUnit.FEET: CONSTANTS.FEET_PER_METRE,
    DistanceUnit.METERS: 1.0,
    DistanceUnit.MILES: CONSTANTS.MILES_PER_METRE,
    DistanceUnit.KILOMETERS: CONSTANTS.KILOMETRES_PER_METRE,
}


class JoinState(Enum):
    """Lifecycle of a proximity join session."""

    IDLE = "idle"
    CONFIGURING = "configuring"
    PREVIEWING = "previewing"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ToastLevel(StrEnum):
    """Severity levels understood by the host's toast notifications."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
