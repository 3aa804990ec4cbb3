"""Unit tests for the in-memory layer repository and selection provider."""

import pytest

from proximity_join.models.domain import Dataset
from proximity_join.repositories import InMemoryLayerRepository, StaticSelectionProvider


def test_layers_keep_insertion_order(repository):
    assert [layer.id for layer in repository.get_layers()] == ["sites", "places"]


def test_get_layer_by_id(repository, source_layer):
    assert repository.get_layer_by_id("sites") is source_layer
    assert repository.get_layer_by_id("missing") is None
    assert repository.get_layer_by_id("") is None


def test_duplicate_layer_id_rejected(repository):
    with pytest.raises(ValueError, match="already exists"):
        repository.add(Dataset(id="sites", name="Other"))


def test_remove_layer(repository):
    removed = repository.remove("places")

    assert removed.id == "places"
    assert repository.get_layer_by_id("places") is None
    assert repository.remove("places") is None


def test_empty_repository():
    assert InMemoryLayerRepository().get_layers() == []


def test_selection_provider():
    selection = StaticSelectionProvider({"sites": [0, 2]})

    assert selection.get_selected_indices("sites") == [0, 2]
    assert selection.get_selected_indices("places") == []

    selection.select("places", iter([1]))
    selection.clear("sites")

    assert selection.get_selected_indices("places") == [1]
    assert selection.get_selected_indices("sites") == []


def test_selection_is_copied():
    selection = StaticSelectionProvider({"sites": [0]})

    selection.get_selected_indices("sites").append(5)

    assert selection.get_selected_indices("sites") == [0]
