"""Domain models for the proximity join."""

from proximity_join.models.domain import (
    Dataset,
    Feature,
    FieldSummary,
    FieldMapping,
    JoinConfig,
    JoinDraft,
    JoinPreview,
    JoinProgress,
    JoinResult,
    MatchResult,
    Schema,
)
from proximity_join.models.enums import (
    DistanceUnit,
    GeometryKind,
    JoinState,
    RepresentativePointMethod,
    ToastLevel,
)

__all__ = [
    "Feature",
    "Dataset",
    "FieldSummary",
    "Schema",
    "FieldMapping",
    "JoinDraft",
    "JoinConfig",
    "MatchResult",
    "JoinProgress",
    "JoinPreview",
    "JoinResult",
    "GeometryKind",
    "RepresentativePointMethod",
    "DistanceUnit",
    "JoinState",
    "ToastLevel",
]
