"""Configuration and constants for the proximity join engine.

This module defines the fixed constants and the tunable settings used by
the nearest-feature join.

Includes configuration for:
- Physical constants and unit conversion factors (CONSTANTS, not configurable)
- Engine tuning (ProximityJoinSettings with PJ_ prefix)
- Output metadata field names (MetadataFields)

Configuration can be overridden via:
1. Environment variables (e.g., PJ_BATCH_SIZE=500, PJ_BBOX_SAFETY_FACTOR=2.0)
2. .env file in the current directory
3. Default values in code
"""

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class PhysicalConstants:
    """Physical constants and unit conversion factors.

    These are NOT configurable - they are fixed conversion factors that
    should never vary between runs.

    All attributes are immutable (frozen=True prevents modification).
    """

    # Mean Earth radius used for great-circle distance
    EARTH_RADIUS_M: float = 6_371_008.8

    # Unit conversion factors (multiply metres by these)
    FEET_PER_METRE: float = 3.28084
    KILOMETRES_PER_METRE: float = 0.001
    MILES_PER_METRE: float = 0.000621371

    # Geographic coordinate reference system for GeoJSON input
    CRS_WGS84: str = "EPSG:4326"


# Module-level singleton for physical constants
CONSTANTS = PhysicalConstants()


class ProximityJoinSettings(BaseSettings):
    """Tuning for the proximity join engine.

    Can be overridden via environment variables with PJ_ prefix:
    - PJ_BATCH_SIZE
    - PJ_PREVIEW_SIZE
    - PJ_FIELD_SAMPLE_SIZE
    - PJ_LARGE_DATASET_WARN
    - PJ_METRES_PER_DEGREE
    - PJ_BBOX_SAFETY_FACTOR
    - PJ_DISTANCE_PRECISION
    - PJ_PREVIEW_DISTANCE_PRECISION
    - PJ_LOGGING_CONFIG
    - PJ_DEBUG_OUTPUT
    - PJ_DEBUG_OUTPUT_DIR

    Attributes:
        batch_size: Source features processed per batch before yielding
        preview_size: Number of source features matched by a preview
        field_sample_size: Features sampled when listing a dataset's fields
        large_dataset_warn: Warn when source x target exceeds this value squared
        metres_per_degree: Approximate metres per degree used by the bbox pre-filter
        bbox_safety_factor: Multiplier applied to the pre-filter buffer
        distance_precision: Decimals kept for nearest_distance in full runs
        preview_distance_precision: Decimals kept for nearest_distance in previews
        logging_config: dictConfig JSON file applied when a session starts (unset = leave
            logging alone)
        debug_output: Write each completed join to a GeoPackage (local debugging only)
        debug_output_dir: Directory the debug GeoPackages are written under
    """

    model_config = SettingsConfigDict(
        env_prefix="PJ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    batch_size: int = Field(
        default=200, ge=1, description="Source features processed per batch"
    )
    preview_size: int = Field(default=10, ge=1, description="Source features in a preview")
    field_sample_size: int = Field(
        default=200, ge=1, description="Features sampled when listing fields"
    )
    large_dataset_warn: int = Field(
        default=5000, ge=1, description="Large dataset threshold (per side)"
    )
    metres_per_degree: float = Field(
        default=111_000.0, gt=0, description="Approximate metres per degree of latitude"
    )
    bbox_safety_factor: float = Field(
        default=1.5, ge=1.0, description="Safety multiplier for the pre-filter buffer"
    )
    distance_precision: int = Field(
        default=4, ge=0, description="Decimals kept for nearest_distance"
    )
    preview_distance_precision: int = Field(
        default=2, ge=0, description="Decimals kept for nearest_distance in previews"
    )
    logging_config: str | None = Field(
        default=None, description="Logging dictConfig JSON file, absolute or repo-relative"
    )
    debug_output: bool = Field(default=False, description="Save joined layers as GeoPackages")
    debug_output_dir: Path = Field(
        default=Path("/tmp/proximity-join-debug"), description="Debug output directory"
    )


DEFAULT_SETTINGS = ProximityJoinSettings()


class MetadataFields:
    """Optional metadata field names written onto source features."""

    DISTANCE = "nearest_distance"
    MATCH_ID = "matched_target_id"
    MATCH_LAYER = "matched_target_layer"

    # Prefix used to auto-name an output field from its target field
    DEFAULT_PREFIX = "nearest_"

    @classmethod
    def all(cls) -> list[str]:
        """Get list of all metadata field names."""
        return [cls.DISTANCE, cls.MATCH_ID, cls.MATCH_LAYER]
