"""Validation of an interactively built join configuration."""

import logging
import math

from proximity_join.config import MetadataFields
from proximity_join.models.domain import Dataset, JoinConfig, JoinDraft
from proximity_join.models.enums import DistanceUnit, RepresentativePointMethod
from proximity_join.repositories.repository import LayerRepository, SelectionProvider
from proximity_join.validation.errors import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


def parse_max_radius(raw: str | float | None) -> float | None:
    """Parse the max radius as typed by the user.

    Args:
        raw: Text (or number) entered for the radius; empty means unlimited

    Returns:
        Radius as a float, or None when unlimited

    Raises:
        ValueError: If the value is not a positive, finite number
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    value = float(raw)
    if not math.isfinite(value) or value <= 0:
        msg = f"Max radius must be positive, got {value}"
        raise ValueError(msg)
    return value


class JoinConfigValidator:
    """Validates a JoinDraft against the loaded layers and selection.

    Checks:
    - Source and target layers selected, present and different
    - Neither layer is empty
    - Selection-only mode has a non-empty selection
    - At least one complete field mapping
    - Output field names are unique and not reserved for metadata
    - Mapped target fields exist on the target layer
    - Match ID field chosen when matched_target_id is enabled
    - Known display unit and representative point method
    - Max radius empty (unlimited) or a positive number
    """

    def __init__(
        self,
        repository: LayerRepository,
        selection_provider: SelectionProvider | None = None,
    ):
        self.repository = repository
        self.selection_provider = selection_provider

    def validate(self, draft: JoinDraft) -> list[ValidationError]:
        """Validate a draft configuration.

        Args:
            draft: Configuration being built

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        source = self.repository.get_layer_by_id(draft.source_layer_id or "")
        target = self.repository.get_layer_by_id(draft.target_layer_id or "")

        errors.extend(self._validate_layers(draft, source, target))
        errors.extend(self._validate_mappings(draft, target))
        errors.extend(self._validate_settings(draft))

        if errors:
            logger.info(f"Join configuration invalid: {[e.message for e in errors]}")
        return errors

    def _validate_layers(
        self, draft: JoinDraft, source: Dataset | None, target: Dataset | None
    ) -> list[ValidationError]:
        errors = []
        if source is None:
            errors.append(ValidationError("No source layer selected.", "source_layer_id"))
        if target is None:
            errors.append(ValidationError("No target layer selected.", "target_layer_id"))
        if draft.source_layer_id and draft.source_layer_id == draft.target_layer_id:
            errors.append(
                ValidationError("Source and target must be different layers.", "target_layer_id")
            )

        if source is not None and len(source) == 0:
            errors.append(ValidationError("Source layer has no features.", "source_layer_id"))
        if target is not None and len(target) == 0:
            errors.append(ValidationError("Target layer has no features.", "target_layer_id"))

        if draft.selection_only and source is not None:
            selected = []
            if self.selection_provider is not None:
                selected = self.selection_provider.get_selected_indices(source.id)
            if not any(0 <= i < len(source) for i in selected):
                errors.append(
                    ValidationError(
                        "Selection-only mode is enabled but no features are selected.",
                        "selection_only",
                    )
                )
        return errors

    def _validate_mappings(
        self, draft: JoinDraft, target: Dataset | None
    ) -> list[ValidationError]:
        errors = []
        mappings = draft.complete_mappings
        if not mappings:
            errors.append(
                ValidationError(
                    "Add at least one field mapping (target field -> new field name).",
                    "field_mappings",
                )
            )
            return errors

        names = [m.new_field_name for m in mappings]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(
                ValidationError(
                    f"Duplicate new field names: {', '.join(duplicates)}", "field_mappings"
                )
            )

        reserved = set()
        if draft.write_distance:
            reserved.add(MetadataFields.DISTANCE)
        if draft.write_match_id:
            reserved.add(MetadataFields.MATCH_ID)
        if draft.write_match_layer:
            reserved.add(MetadataFields.MATCH_LAYER)
        clashes = sorted(reserved.intersection(names))
        if clashes:
            errors.append(
                ValidationError(
                    f"New field names clash with metadata fields: {', '.join(clashes)}",
                    "field_mappings",
                )
            )

        if target is not None and len(target) > 0:
            available = set(target.field_names(sample_size=len(target)))
            missing = sorted({m.target_field for m in mappings} - available)
            if missing:
                errors.append(
                    ValidationError(
                        f"Target layer has no field(s): {', '.join(missing)}", "field_mappings"
                    )
                )
            id_field = draft.match_id_field
            if draft.write_match_id and id_field and id_field not in available:
                errors.append(
                    ValidationError(
                        f"Target layer has no field: {id_field}", "match_id_field"
                    )
                )

        return errors

    def _validate_settings(self, draft: JoinDraft) -> list[ValidationError]:
        errors = []
        if draft.write_match_id and not draft.match_id_field:
            errors.append(
                ValidationError(
                    "Choose a target field to write as matched_target_id.", "match_id_field"
                )
            )

        if draft.display_unit not in set(DistanceUnit):
            errors.append(ValidationError(f"Unknown unit: {draft.display_unit}", "display_unit"))
        if draft.representative_point_method not in set(RepresentativePointMethod):
            errors.append(
                ValidationError(
                    f"Unknown representative point method: {draft.representative_point_method}",
                    "representative_point_method",
                )
            )

        try:
            parse_max_radius(draft.max_radius)
        except (TypeError, ValueError):
            errors.append(
                ValidationError(
                    "Max radius must be a positive number or empty for unlimited.", "max_radius"
                )
            )
        return errors

    def build_config(self, draft: JoinDraft) -> JoinConfig:
        """Validate a draft and freeze it into a JoinConfig.

        Raises:
            ConfigurationError: If the draft has any validation errors
        """
        errors = self.validate(draft)
        if errors:
            raise ConfigurationError(errors)

        return JoinConfig(
            source_layer_id=draft.source_layer_id,
            target_layer_id=draft.target_layer_id,
            selection_only=draft.selection_only,
            representative_point_method=draft.representative_point_method,
            display_unit=draft.display_unit,
            max_radius=parse_max_radius(draft.max_radius),
            write_distance=draft.write_distance,
            write_match_id=draft.write_match_id,
            match_id_field=draft.match_id_field or None,
            write_match_layer=draft.write_match_layer,
            field_mappings=tuple(draft.complete_mappings),
        )
