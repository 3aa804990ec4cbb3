"""Unit tests for join configuration validation."""

import pytest

from proximity_join.models.domain import Dataset, FieldMapping, JoinDraft
from proximity_join.models.enums import DistanceUnit, RepresentativePointMethod
from proximity_join.validation import (
    ConfigurationError,
    JoinConfigValidator,
    ValidationError,
    parse_max_radius,
)


@pytest.fixture
def validator(repository, selection):
    return JoinConfigValidator(repository, selection)


@pytest.fixture
def valid_draft():
    return JoinDraft(
        source_layer_id="sites",
        target_layer_id="places",
        field_mappings=[FieldMapping(target_field="name", new_field_name="nearest_name")],
    )


def _messages(errors):
    return [e.message for e in errors]


class TestParseMaxRadius:
    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_is_unlimited(self, raw):
        assert parse_max_radius(raw) is None

    def test_parses_text_and_numbers(self):
        assert parse_max_radius(" 12.5 ") == 12.5
        assert parse_max_radius(50) == 50.0

    @pytest.mark.parametrize("raw", ["0", "-3", "abc", "inf", "nan"])
    def test_rejects_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_max_radius(raw)


class TestValidate:
    def test_valid_draft_has_no_errors(self, validator, valid_draft):
        assert validator.validate(valid_draft) == []

    def test_missing_layers(self, validator):
        errors = validator.validate(JoinDraft())

        assert _messages(errors)[:2] == ["No source layer selected.", "No target layer selected."]

    def test_same_source_and_target(self, validator, valid_draft):
        valid_draft.target_layer_id = "sites"

        assert "Source and target must be different layers." in _messages(
            validator.validate(valid_draft)
        )

    def test_empty_layers(self, repository, selection, valid_draft):
        repository.add(Dataset(id="empty", name="Empty"))
        validator = JoinConfigValidator(repository, selection)
        valid_draft.source_layer_id = "empty"

        assert "Source layer has no features." in _messages(validator.validate(valid_draft))

    def test_no_complete_mapping(self, validator, valid_draft):
        valid_draft.field_mappings = [FieldMapping(target_field="name")]

        assert _messages(validator.validate(valid_draft)) == [
            "Add at least one field mapping (target field -> new field name)."
        ]

    def test_duplicate_output_names(self, validator, valid_draft):
        valid_draft.field_mappings = [
            FieldMapping(target_field="name", new_field_name="out"),
            FieldMapping(target_field="pop", new_field_name="out"),
        ]

        assert _messages(validator.validate(valid_draft)) == ["Duplicate new field names: out"]

    def test_whitespace_only_name_is_not_a_mapping(self, validator, valid_draft):
        valid_draft.field_mappings = [FieldMapping(target_field="name", new_field_name="  ")]

        assert _messages(validator.validate(valid_draft)) == [
            "Add at least one field mapping (target field -> new field name)."
        ]

    def test_duplicate_output_names_ignore_padding(self, validator, valid_draft):
        valid_draft.field_mappings = [
            FieldMapping(target_field="name", new_field_name="out"),
            FieldMapping(target_field="pop", new_field_name=" out "),
        ]

        assert _messages(validator.validate(valid_draft)) == ["Duplicate new field names: out"]

    def test_output_name_clashes_with_enabled_metadata(self, validator, valid_draft):
        valid_draft.field_mappings = [
            FieldMapping(target_field="name", new_field_name="nearest_distance")
        ]

        assert _messages(validator.validate(valid_draft)) == [
            "New field names clash with metadata fields: nearest_distance"
        ]

        valid_draft.write_distance = False
        assert validator.validate(valid_draft) == []

    def test_unknown_target_field(self, validator, valid_draft):
        valid_draft.field_mappings = [FieldMapping(target_field="mayor", new_field_name="m")]

        assert _messages(validator.validate(valid_draft)) == [
            "Target layer has no field(s): mayor"
        ]

    def test_match_id_requires_field(self, validator, valid_draft):
        valid_draft.write_match_id = True

        errors = validator.validate(valid_draft)

        assert errors == [
            ValidationError(
                "Choose a target field to write as matched_target_id.", "match_id_field"
            )
        ]

    def test_match_id_field_must_exist(self, validator, valid_draft):
        valid_draft.write_match_id = True
        valid_draft.match_id_field = "code"

        assert _messages(validator.validate(valid_draft)) == ["Target layer has no field: code"]

    def test_unknown_unit_and_method(self, validator, valid_draft):
        valid_draft.display_unit = "furlongs"
        valid_draft.representative_point_method = "median"

        assert _messages(validator.validate(valid_draft)) == [
            "Unknown unit: furlongs",
            "Unknown representative point method: median",
        ]

    @pytest.mark.parametrize("radius", ["0", "-1", "ten"])
    def test_invalid_radius(self, validator, valid_draft, radius):
        valid_draft.max_radius = radius

        errors = validator.validate(valid_draft)

        assert errors[0].field == "max_radius"
        assert errors[0].message == "Max radius must be a positive number or empty for unlimited."

    def test_selection_only_with_empty_selection(self, validator, valid_draft):
        valid_draft.selection_only = True

        assert _messages(validator.validate(valid_draft)) == [
            "Selection-only mode is enabled but no features are selected."
        ]

    def test_selection_only_ignores_out_of_range_indices(self, validator, selection, valid_draft):
        valid_draft.selection_only = True
        selection.select("sites", [99])

        assert len(validator.validate(valid_draft)) == 1

        selection.select("sites", [1])
        assert validator.validate(valid_draft) == []

    def test_collects_every_problem(self, validator):
        draft = JoinDraft(source_layer_id="sites", max_radius="-5", write_match_id=True)

        messages = _messages(validator.validate(draft))

        assert messages[0] == "No target layer selected."
        assert len(messages) == 4


class TestBuildConfig:
    def test_builds_frozen_config(self, validator, valid_draft):
        valid_draft.max_radius = "250"
        valid_draft.display_unit = "meters"
        valid_draft.representative_point_method = "centroid"
        valid_draft.field_mappings.append(FieldMapping(target_field="pop"))

        config = validator.build_config(valid_draft)

        assert config.max_radius == 250.0
        assert config.max_radius_m == 250.0
        assert config.display_unit is DistanceUnit.METERS
        assert config.representative_point_method is RepresentativePointMethod.CENTROID
        assert config.field_mappings == (
            FieldMapping(target_field="name", new_field_name="nearest_name"),
        )
        assert config.match_id_field is None

    def test_invalid_draft_raises_with_first_error(self, validator):
        with pytest.raises(ConfigurationError) as exc_info:
            validator.build_config(JoinDraft())

        assert str(exc_info.value) == "No source layer selected."
        assert len(exc_info.value.errors) > 1
