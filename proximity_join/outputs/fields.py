"""Field mapping and metadata writing for join results.

The mapper turns each MatchResult into property updates for its source
feature. Updates are collected in a JoinPatch and applied to the source
dataset by the caller, under the dataset's lock, once the run completes.
"""

import logging
from collections.abc import Iterator
from typing import Any

from proximity_join.calculators.units import round_distance
from proximity_join.config import DEFAULT_SETTINGS, MetadataFields, ProximityJoinSettings
from proximity_join.models.domain import Dataset, JoinConfig, MatchResult

logger = logging.getLogger(__name__)


class FieldMapper:
    """Builds the property updates for one source feature.

    Every configured output field is always written: matched features get
    the target's value (None when the target lacks it), unmatched features
    get an explicit None, so the output schema stays uniform.
    """

    def __init__(
        self,
        config: JoinConfig,
        target_layer_name: str,
        settings: ProximityJoinSettings = DEFAULT_SETTINGS,
    ):
        self.config = config
        self.target_layer_name = target_layer_name
        self.precision = settings.distance_precision

    @property
    def output_fields(self) -> list[str]:
        """Names of every property this mapper writes, in write order."""
        names = [m.new_field_name for m in self.config.field_mappings]
        if self.config.write_distance:
            names.append(MetadataFields.DISTANCE)
        if self.config.writes_match_id:
            names.append(MetadataFields.MATCH_ID)
        if self.config.write_match_layer:
            names.append(MetadataFields.MATCH_LAYER)
        return names

    def updates_for(self, match: MatchResult | None) -> dict[str, Any]:
        """Property updates for a source feature given its match (or None).

        Args:
            match: Match result; None or an unmatched result writes nulls

        Returns:
            Mapping of field name to value
        """
        if match is None or not match.matched:
            return dict.fromkeys(self.output_fields)

        target_properties = match.matched_feature.properties
        updates: dict[str, Any] = {
            m.new_field_name: target_properties.get(m.target_field)
            for m in self.config.field_mappings
        }
        if self.config.write_distance:
            updates[MetadataFields.DISTANCE] = round_distance(
                match.distance_m, self.config.display_unit, self.precision
            )
        if self.config.writes_match_id:
            updates[MetadataFields.MATCH_ID] = target_properties.get(self.config.match_id_field)
        if self.config.write_match_layer:
            updates[MetadataFields.MATCH_LAYER] = self.target_layer_name
        return updates


class JoinPatch:
    """Property updates produced by a join, keyed by source feature index."""

    def __init__(self, dataset_id: str):
        self.dataset_id = dataset_id
        self._updates: dict[int, dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._updates)

    def __iter__(self) -> Iterator[tuple[int, dict[str, Any]]]:
        return iter(self._updates.items())

    def add(self, source_index: int, updates: dict[str, Any]) -> None:
        self._updates.setdefault(source_index, {}).update(updates)

    def apply(self, dataset: Dataset) -> int:
        """Apply the updates to ``dataset`` in place.

        Args:
            dataset: The source dataset the patch was produced for

        Returns:
            Number of features updated

        Raises:
            ValueError: If the patch belongs to a different dataset or refers
                to features that no longer exist
        """
        if dataset.id != self.dataset_id:
            msg = f"Patch for dataset '{self.dataset_id}' cannot be applied to '{dataset.id}'"
            raise ValueError(msg)

        with dataset.lock:
            out_of_range = [i for i in self._updates if not 0 <= i < len(dataset.features)]
            if out_of_range:
                msg = f"Patch refers to {len(out_of_range)} missing feature(s) in '{dataset.id}'"
                raise ValueError(msg)

            for source_index, updates in self._updates.items():
                dataset.features[source_index].properties.update(updates)

        logger.info(f"Applied join patch to {len(self._updates)} feature(s) in '{dataset.name}'")
        return len(self._updates)
