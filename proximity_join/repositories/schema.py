"""Schema analysis for GeoJSON feature collections.

Re-run after a join so the new fields are visible to anything reading the
dataset's schema (exporters, field pickers).
"""

import logging
from typing import Any

import pandas as pd

from proximity_join.models.domain import Dataset, FieldSummary, Schema

logger = logging.getLogger(__name__)

# Share of sampled values that must agree before a type is assigned
TYPE_THRESHOLD = 0.7
DATE_THRESHOLD = 0.9
TYPE_SAMPLE_SIZE = 100
SAMPLE_VALUE_COUNT = 5


def _is_null(value: Any) -> bool:
    return value is None or value == ""


def infer_field_type(values: list[Any]) -> str:
    """Infer a field type from its non-null values.

    Numbers, booleans and dates may also be given as strings. A type is only
    assigned when most of the first 100 values agree; otherwise the field is
    a string.

    Args:
        values: Non-null values of the field

    Returns:
        "number", "boolean", "date" or "string"
    """
    if not values:
        return "string"

    sample = pd.Series(values[:TYPE_SAMPLE_SIZE], dtype=object)
    is_bool = sample.map(lambda v: isinstance(v, bool) or v in ("true", "false"))
    not_bool = sample[~sample.map(lambda v: isinstance(v, bool))]
    numeric = pd.to_numeric(not_bool, errors="coerce").notna()

    strings = sample[sample.map(lambda v: isinstance(v, str) and len(v) > 6)]
    dates = pd.to_datetime(strings, errors="coerce", format="mixed").notna()

    threshold = len(sample) * TYPE_THRESHOLD
    if numeric.sum() >= threshold:
        return "number"
    if is_bool.sum() >= threshold:
        return "boolean"
    if dates.sum() >= len(sample) * DATE_THRESHOLD:
        return "date"
    return "string"


def analyze_schema(feature_collection: dict[str, Any]) -> Schema:
    """Derive the schema of a GeoJSON FeatureCollection.

    Fields are listed in first-seen order with their inferred type, null
    count, unique count, up to five sample values and numeric min/max.

    Args:
        feature_collection: GeoJSON FeatureCollection dict

    Returns:
        Schema for the collection
    """
    features = feature_collection.get("features") or []
    collected: dict[str, list[Any]] = {}
    null_counts: dict[str, int] = {}
    geometry_types: set[str] = set()

    for feature in features:
        geometry = (feature or {}).get("geometry") or {}
        if geometry.get("type"):
            geometry_types.add(geometry["type"])
        for key, value in ((feature or {}).get("properties") or {}).items():
            collected.setdefault(key, [])
            null_counts.setdefault(key, 0)
            if _is_null(value):
                null_counts[key] += 1
            else:
                collected[key].append(value)

    summaries = []
    for order, (name, values) in enumerate(collected.items()):
        field_type = infer_field_type(values)
        minimum = maximum = None
        if field_type == "number":
            numbers = pd.to_numeric(
                pd.Series([v for v in values if not isinstance(v, bool)], dtype=object),
                errors="coerce",
            ).dropna()
            if not numbers.empty:
                minimum, maximum = float(numbers.min()), float(numbers.max())

        summaries.append(
            FieldSummary(
                name=name,
                type=field_type,
                null_count=null_counts[name],
                unique_count=len({str(v) for v in values}),
                sample_values=tuple(values[:SAMPLE_VALUE_COUNT]),
                min=minimum,
                max=maximum,
                order=order,
            )
        )

    if len(geometry_types) == 1:
        geometry_type = next(iter(geometry_types))
    elif geometry_types:
        geometry_type = "Mixed"
    else:
        geometry_type = None

    return Schema(
        field_summaries=tuple(summaries),
        geometry_type=geometry_type,
        feature_count=len(features),
    )


def refresh_schema(dataset: Dataset, analyzer=analyze_schema) -> Schema:
    """Re-analyse a dataset's schema in place and return it."""
    with dataset.lock:
        dataset.schema = analyzer(dataset.to_geojson())
    logger.info(
        f"Updated schema for '{dataset.name}': {len(dataset.schema.field_summaries)} fields"
    )
    return dataset.schema
