"""Unit tests for debug GeoPackage output."""

import logging

import geopandas as gpd
from shapely.geometry import Point

from proximity_join.config import ProximityJoinSettings
from proximity_join.debug import save_debug_layer
from proximity_join.models.domain import Dataset, Feature


def _dataset():
    return Dataset(
        id="sites",
        name="Sites",
        features=[
            Feature(Point(0, 0), {"site": "A", "nearest_city": "Springfield"}),
            Feature(Point(1, 1), {"site": "B", "nearest_city": None}),
        ],
    )


def test_disabled_writes_nothing(tmp_path):
    settings = ProximityJoinSettings(debug_output=False, debug_output_dir=tmp_path)

    save_debug_layer(_dataset(), "joined_source", "run1", settings)

    assert list(tmp_path.iterdir()) == []


def test_enabled_writes_geopackage_per_run(tmp_path):
    settings = ProximityJoinSettings(debug_output=True, debug_output_dir=tmp_path)

    save_debug_layer(_dataset(), "joined_source", "run1", settings)

    written = list((tmp_path / "run1").glob("*_joined_source.gpkg"))
    assert len(written) == 1

    gdf = gpd.read_file(written[0])
    assert len(gdf) == 2
    assert list(gdf["site"]) == ["A", "B"]
    assert gdf.crs == "EPSG:4326"


def test_write_failure_is_logged_not_raised(tmp_path, caplog, monkeypatch):
    def fail(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(gpd.GeoDataFrame, "to_file", fail)
    settings = ProximityJoinSettings(debug_output=True, debug_output_dir=tmp_path)

    with caplog.at_level(logging.WARNING, logger="proximity_join.debug"):
        save_debug_layer(_dataset(), "joined_source", "run1", settings)

    assert "Failed to save debug output joined_source: disk full" in caplog.text
