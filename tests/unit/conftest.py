"""Shared fixtures for unit tests."""

import pytest
from shapely.geometry import LineString, Point, Polygon

from proximity_join.models.domain import Dataset, Feature
from proximity_join.repositories.repository import (
    InMemoryLayerRepository,
    StaticSelectionProvider,
)


@pytest.fixture
def origin_feature():
    """Source point A at (0, 0)."""
    return Feature(geometry=Point(0, 0), properties={"name": "A"})


@pytest.fixture
def near_far_targets():
    """Target P ~111 m north of the origin and Q ~786 km away."""
    return [
        Feature(geometry=Point(0, 0.001), properties={"name": "P", "city_id": 1}),
        Feature(geometry=Point(5, 5), properties={"name": "Q", "city_id": 2}),
    ]


@pytest.fixture
def source_layer():
    """Three source points plus one feature without geometry."""
    return Dataset(
        id="sites",
        name="Sites",
        features=[
            Feature(geometry=Point(0, 0), properties={"site": "A"}),
            Feature(geometry=Point(1, 1), properties={"site": "B"}),
            Feature(geometry=Point(10, 10), properties={"site": "C"}),
            Feature(geometry=None, properties={"site": "D"}),
        ],
    )


@pytest.fixture
def target_layer():
    """Mixed target geometries: two cities, a road and a park."""
    return Dataset(
        id="places",
        name="Places",
        features=[
            Feature(geometry=Point(0, 0.001), properties={"name": "Springfield", "pop": 30000}),
            Feature(geometry=Point(5, 5), properties={"name": "Shelbyville", "pop": 12000}),
            Feature(
                geometry=LineString([(0.9, 0.9), (0.9, 1.1)]),
                properties={"name": "Main Road", "pop": None},
            ),
            Feature(
                geometry=Polygon([(9.5, 9.5), (10.5, 9.5), (10.5, 10.5), (9.5, 10.5)]),
                properties={"name": "Central Park", "pop": 0},
            ),
        ],
    )


@pytest.fixture
def repository(source_layer, target_layer):
    return InMemoryLayerRepository([source_layer, target_layer])


@pytest.fixture
def selection():
    return StaticSelectionProvider()
