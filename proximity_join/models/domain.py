"""Core domain models for the proximity join.

Features and datasets are plain mutable containers because the join writes
new properties onto source features. Configuration and results are immutable
pydantic value objects, created once and never modified.

Includes models for:
- Features, datasets and their derived schema
- Join configuration (the interactive draft and the validated config)
- Per-feature match results, previews, progress and the final summary
"""

import math
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

import geopandas as gpd
from pydantic import BaseModel, ConfigDict, Field, field_validator
from shapely.errors import ShapelyError
from shapely.geometry import mapping, shape
from shapely.geometry.base import BaseGeometry

from proximity_join.config import CONSTANTS, DEFAULT_SETTINGS, MetadataFields
from proximity_join.models.enums import DistanceUnit, GeometryKind, RepresentativePointMethod
from proximity_join.models.geometry import classify_geometry

PropertyValue = str | int | float | bool | None


# ======================================================================================
# Features and datasets
# ======================================================================================


@dataclass
class Feature:
    """A single geometry plus its attribute properties.

    Attributes:
        geometry: Shapely geometry in lon/lat (None when missing or unreadable)
        properties: Attribute values keyed by field name
    """

    geometry: BaseGeometry | None
    properties: dict[str, PropertyValue] = field(default_factory=dict)

    @property
    def kind(self) -> GeometryKind:
        return classify_geometry(self.geometry)

    @classmethod
    def from_geojson(cls, data: dict[str, Any]) -> "Feature":
        """Build a Feature from a GeoJSON feature dict.

        A geometry that cannot be parsed is kept as None so it is reported as
        invalid by the join rather than failing the import.
        """
        geometry = None
        raw_geometry = data.get("geometry")
        if raw_geometry:
            try:
                geometry = shape(raw_geometry)
            except (ShapelyError, ValueError, TypeError, AttributeError, KeyError, IndexError):
                geometry = None
        return cls(geometry=geometry, properties=dict(data.get("properties") or {}))

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": mapping(self.geometry) if self.geometry is not None else None,
            "properties": dict(self.properties),
        }


class FieldSummary(BaseModel):
    """Derived description of one property field."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = Field(description="string, number, boolean, date, mixed or unknown")
    null_count: int = Field(ge=0)
    unique_count: int = Field(ge=0)
    sample_values: tuple[Any, ...] = ()
    min: float | None = None
    max: float | None = None
    order: int = Field(ge=0)


class Schema(BaseModel):
    """Derived schema of a dataset: its fields and geometry types."""

    model_config = ConfigDict(frozen=True)

    field_summaries: tuple[FieldSummary, ...] = ()
    geometry_type: str | None = Field(
        default=None, description="Single geometry type, \"Mixed\", or None when empty"
    )
    feature_count: int = Field(default=0, ge=0)
    crs: str = CONSTANTS.CRS_WGS84

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.field_summaries]


@dataclass
class Dataset:
    """A named, ordered collection of features (a layer).

    The lock guards in-place mutation of the features; anything writing to
    them (such as applying a join patch) must hold it.

    Attributes:
        id: Layer identifier
        name: Display name
        features: Ordered features
        schema: Derived schema (refreshed after writes)
        spatial: False for attribute-only tables
    """

    id: str
    name: str
    features: list[Feature] = field(default_factory=list)
    schema: Schema | None = None
    spatial: bool = True
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def __len__(self) -> int:
        return len(self.features)

    def field_names(self, sample_size: int = DEFAULT_SETTINGS.field_sample_size) -> list[str]:
        """Sorted union of property keys across the first ``sample_size`` features."""
        names: set[str] = set()
        for feature in self.features[:sample_size]:
            names.update(feature.properties.keys())
        return sorted(names)

    def dominant_geometry(self) -> str | None:
        """Most common base geometry type, folding Multi variants into their base."""
        counts = Counter(
            feature.kind.base for feature in self.features if feature.kind.base is not None
        )
        if not counts:
            return None
        return counts.most_common(1)[0][0]

    @classmethod
    def from_geojson(cls, id: str, name: str, feature_collection: dict[str, Any]) -> "Dataset":
        features = [Feature.from_geojson(f or {}) for f in feature_collection.get("features", [])]
        return cls(id=id, name=name, features=features)

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [feature.to_geojson() for feature in self.features],
        }

    def to_geodataframe(self, crs: str = CONSTANTS.CRS_WGS84) -> gpd.GeoDataFrame:
        records = [dict(feature.properties) for feature in self.features]
        geometries = [feature.geometry for feature in self.features]
        return gpd.GeoDataFrame(records, geometry=geometries, crs=crs)


# ======================================================================================
# Configuration
# ======================================================================================


class FieldMapping(BaseModel):
    """Copy ``target_field`` from the matched feature into ``new_field_name``."""

    model_config = ConfigDict(frozen=True)

    target_field: str = Field(default="", description="Property on the target dataset")
    new_field_name: str = Field(default="", description="Property written on the source")

    @field_validator("target_field", "new_field_name")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()

    @property
    def is_complete(self) -> bool:
        return bool(self.target_field) and bool(self.new_field_name)

    @staticmethod
    def default_name(target_field: str) -> str:
        return f"{MetadataFields.DEFAULT_PREFIX}{target_field}"


@dataclass
class JoinDraft:
    """Join configuration as it is being built interactively.

    Values are kept raw (max_radius is the text the user typed) so that
    validation can report every problem before a config is frozen.
    """

    source_layer_id: str | None = None
    target_layer_id: str | None = None
    selection_only: bool = False
    representative_point_method: str = RepresentativePointMethod.CENTER_OF_MASS
    display_unit: str = DistanceUnit.FEET
    max_radius: str = ""
    write_distance: bool = True
    write_match_id: bool = False
    match_id_field: str = ""
    write_match_layer: bool = False
    field_mappings: list[FieldMapping] = field(default_factory=list)

    @property
    def complete_mappings(self) -> list[FieldMapping]:
        return [m for m in self.field_mappings if m.is_complete]


class JoinConfig(BaseModel):
    """Validated, immutable configuration for a single join run.

    Attributes:
        source_layer_id: Dataset receiving the new fields
        target_layer_id: Dataset searched for the nearest feature
        selection_only: Only process the selected source features
        representative_point_method: How non-point sources become a point
        display_unit: Unit for max_radius and written distances
        max_radius: Search radius in display_unit (None = unlimited)
        write_distance: Write nearest_distance
        write_match_id: Write matched_target_id from match_id_field
        match_id_field: Target property used as the match identifier
        write_match_layer: Write matched_target_layer
        field_mappings: Complete field mappings only
    """

    model_config = ConfigDict(frozen=True)

    source_layer_id: str
    target_layer_id: str
    selection_only: bool = False
    representative_point_method: RepresentativePointMethod = (
        RepresentativePointMethod.CENTER_OF_MASS
    )
    display_unit: DistanceUnit = DistanceUnit.FEET
    max_radius: float | None = Field(default=None, gt=0)
    write_distance: bool = True
    write_match_id: bool = False
    match_id_field: str | None = None
    write_match_layer: bool = False
    field_mappings: tuple[FieldMapping, ...] = Field(min_length=1)

    @property
    def max_radius_m(self) -> float:
        """Search radius in metres (inf when unlimited)."""
        if self.max_radius is None:
            return math.inf
        return self.max_radius / self.display_unit.per_metre

    @property
    def has_radius(self) -> bool:
        return math.isfinite(self.max_radius_m)

    @property
    def writes_match_id(self) -> bool:
        return self.write_match_id and bool(self.match_id_field)


# ======================================================================================
# Results
# ======================================================================================


@dataclass(frozen=True)
class MatchResult:
    """Outcome of the nearest search for one source feature.

    Attributes:
        source_index: Index of the source feature in its dataset
        matched_feature: Nearest target feature (None when unmatched)
        target_index: Index of the matched feature in the target dataset
        distance_m: Distance to the match in metres (inf when unmatched)
        nearest_coordinate: Closest (lon, lat) on the matched feature
        geometry_invalid: Source geometry was missing/invalid and skipped
    """

    source_index: int
    matched_feature: Feature | None = None
    target_index: int | None = None
    distance_m: float = math.inf
    nearest_coordinate: tuple[float, float] | None = None
    geometry_invalid: bool = False

    @property
    def matched(self) -> bool:
        return self.matched_feature is not None


class JoinProgress(BaseModel):
    """Progress published after each batch."""

    model_config = ConfigDict(frozen=True)

    processed: int = Field(ge=0)
    total: int = Field(ge=0)

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 100.0
        return self.processed / self.total * 100


class JoinPreview(BaseModel):
    """Tabular preview of the first few matches."""

    model_config = ConfigDict(frozen=True)

    columns: tuple[str, ...]
    rows: tuple[dict[str, Any], ...]


class JoinResult(BaseModel):
    """Summary of a completed join run.

    Distance statistics are in display_unit and computed over matched features
    only; they are None when nothing matched.
    """

    model_config = ConfigDict(frozen=True)

    total_processed: int = Field(ge=0)
    matched_count: int = Field(ge=0)
    unmatched_count: int = Field(ge=0)
    invalid_geometry_count: int = Field(default=0, ge=0)
    min_distance: float | None = None
    mean_distance: float | None = None
    max_distance: float | None = None
    display_unit: DistanceUnit = DistanceUnit.METERS
    warnings: tuple[str, ...] = ()

    @property
    def match_rate(self) -> float:
        if self.total_processed == 0:
            return 0.0
        return self.matched_count / self.total_processed
