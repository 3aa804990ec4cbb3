"""Result aggregation and previews.

Summaries report matched/unmatched counts, distance statistics over the
matched subset (in the display unit) and warnings. Previews tabulate the
first few matches before a full run is committed.
"""

import math
from collections.abc import Sequence

import numpy as np

from proximity_join.calculators.units import round_distance, to_display_unit
from proximity_join.config import DEFAULT_SETTINGS, MetadataFields, ProximityJoinSettings
from proximity_join.models.domain import JoinConfig, JoinPreview, JoinResult, MatchResult
from proximity_join.models.enums import DistanceUnit

PREVIEW_INDEX_COLUMN = "#"


def summarize(
    results: Sequence[MatchResult],
    display_unit: DistanceUnit = DistanceUnit.METERS,
    max_radius_m: float = math.inf,
) -> JoinResult:
    """Summarize per-feature match results.

    Args:
        results: One MatchResult per processed source feature
        display_unit: Unit for the distance statistics
        max_radius_m: Search radius used (inf = unlimited), for warnings

    Returns:
        JoinResult; statistics are None when nothing matched
    """
    total = len(results)
    matched = [r for r in results if r.matched]
    invalid = sum(1 for r in results if r.geometry_invalid)
    unmatched = total - len(matched)

    min_distance = mean_distance = max_distance = None
    if matched:
        distances = np.array(
            [to_display_unit(r.distance_m, display_unit) for r in matched], dtype=float
        )
        min_distance = float(distances.min())
        mean_distance = float(distances.mean())
        max_distance = float(distances.max())

    warnings = []
    if invalid > 0:
        warnings.append(f"{invalid} feature(s) had invalid/missing geometry.")
    outside_radius = unmatched - invalid
    if math.isfinite(max_radius_m) and outside_radius > 0:
        warnings.append(
            f"{outside_radius} feature(s) had no target within the max search radius."
        )

    return JoinResult(
        total_processed=total,
        matched_count=len(matched),
        unmatched_count=unmatched,
        invalid_geometry_count=invalid,
        min_distance=min_distance,
        mean_distance=mean_distance,
        max_distance=max_distance,
        display_unit=display_unit,
        warnings=tuple(warnings),
    )


class ResultAggregator:
    """Collects match results batch by batch and summarizes them at the end."""

    def __init__(self, config: JoinConfig):
        self.config = config
        self.results: list[MatchResult] = []

    def __len__(self) -> int:
        return len(self.results)

    def add(self, result: MatchResult) -> None:
        self.results.append(result)

    def summarize(self) -> JoinResult:
        return summarize(self.results, self.config.display_unit, self.config.max_radius_m)


def build_preview(
    results: Sequence[MatchResult],
    config: JoinConfig,
    settings: ProximityJoinSettings = DEFAULT_SETTINGS,
) -> JoinPreview:
    """Tabulate match results for a preview.

    Columns are the 1-based row number, each output field and, when enabled,
    nearest_distance rounded to the preview precision.
    """
    columns = [PREVIEW_INDEX_COLUMN, *(m.new_field_name for m in config.field_mappings)]
    if config.write_distance:
        columns.append(MetadataFields.DISTANCE)

    rows = []
    for position, result in enumerate(results, start=1):
        target_properties = result.matched_feature.properties if result.matched else None
        row = {PREVIEW_INDEX_COLUMN: position}
        for mapping in config.field_mappings:
            row[mapping.new_field_name] = (
                target_properties.get(mapping.target_field) if target_properties else None
            )
        if config.write_distance:
            row[MetadataFields.DISTANCE] = (
                round_distance(
                    result.distance_m,
                    config.display_unit,
                    settings.preview_distance_precision,
                )
                if result.matched
                else None
            )
        rows.append(row)

    return JoinPreview(columns=tuple(columns), rows=tuple(rows))
