"""Unit tests for configuration."""

import dataclasses

import pytest
from pydantic import ValidationError as PydanticValidationError


def test_default_settings_values():
    """Test default engine settings."""
    from proximity_join.config import DEFAULT_SETTINGS

    assert DEFAULT_SETTINGS.batch_size == 200
    assert DEFAULT_SETTINGS.preview_size == 10
    assert DEFAULT_SETTINGS.field_sample_size == 200
    assert DEFAULT_SETTINGS.large_dataset_warn == 5000
    assert DEFAULT_SETTINGS.metres_per_degree == 111_000.0
    assert DEFAULT_SETTINGS.bbox_safety_factor == 1.5
    assert DEFAULT_SETTINGS.distance_precision == 4
    assert DEFAULT_SETTINGS.preview_distance_precision == 2
    assert DEFAULT_SETTINGS.logging_config is None
    assert DEFAULT_SETTINGS.debug_output is False


def test_settings_read_from_environment(monkeypatch):
    """PJ_ prefixed environment variables override defaults."""
    from proximity_join.config import ProximityJoinSettings

    monkeypatch.setenv("PJ_BATCH_SIZE", "25")
    monkeypatch.setenv("PJ_BBOX_SAFETY_FACTOR", "2.0")

    settings = ProximityJoinSettings()

    assert settings.batch_size == 25
    assert settings.bbox_safety_factor == 2.0


def test_logging_and_debug_settings_read_from_environment(monkeypatch, tmp_path):
    from proximity_join.config import ProximityJoinSettings

    monkeypatch.setenv("PJ_LOGGING_CONFIG", "logging.json")
    monkeypatch.setenv("PJ_DEBUG_OUTPUT", "true")
    monkeypatch.setenv("PJ_DEBUG_OUTPUT_DIR", str(tmp_path))

    settings = ProximityJoinSettings()

    assert settings.logging_config == "logging.json"
    assert settings.debug_output is True
    assert settings.debug_output_dir == tmp_path


def test_settings_reject_invalid_batch_size():
    from proximity_join.config import ProximityJoinSettings

    with pytest.raises(PydanticValidationError):
        ProximityJoinSettings(batch_size=0)


def test_settings_reject_safety_factor_below_one():
    from proximity_join.config import ProximityJoinSettings

    with pytest.raises(PydanticValidationError):
        ProximityJoinSettings(bbox_safety_factor=0.5)


def test_physical_constants_are_frozen():
    from proximity_join.config import CONSTANTS

    assert CONSTANTS.EARTH_RADIUS_M == 6_371_008.8
    assert CONSTANTS.FEET_PER_METRE == 3.28084

    with pytest.raises(dataclasses.FrozenInstanceError):
        CONSTANTS.EARTH_RADIUS_M = 1.0


def test_metadata_field_names():
    from proximity_join.config import MetadataFields

    assert MetadataFields.all() == [
        "nearest_distance",
        "matched_target_id",
        "matched_target_layer",
    ]
