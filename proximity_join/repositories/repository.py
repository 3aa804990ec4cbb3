"""Layer and selection access for the proximity join.

The host application owns its layers and the current selection; the join
only talks to them through these protocols. In-memory implementations are
provided for hosts without their own store, and for tests.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Protocol

from proximity_join.models.domain import Dataset

logger = logging.getLogger(__name__)


class LayerRepository(Protocol):
    """Read access to the host's loaded layers."""

    def get_layers(self) -> list[Dataset]:
        """Return all loaded layers in display order."""
        ...

    def get_layer_by_id(self, layer_id: str) -> Dataset | None:
        """Return the layer with ``layer_id``, or None if it does not exist."""
        ...


class SelectionProvider(Protocol):
    """The host's current feature selection."""

    def get_selected_indices(self, layer_id: str) -> list[int]:
        """Return indices of the selected features in ``layer_id``."""
        ...


class InMemoryLayerRepository:
    """Layer repository backed by an ordered dict of datasets."""

    def __init__(self, layers: Iterable[Dataset] = ()):
        self._layers: dict[str, Dataset] = {}
        for layer in layers:
            self.add(layer)

    def add(self, layer: Dataset) -> None:
        if layer.id in self._layers:
            msg = f"Layer '{layer.id}' already exists"
            raise ValueError(msg)
        self._layers[layer.id] = layer
        logger.debug(f"Added layer {layer.id} ({len(layer)} features)")

    def remove(self, layer_id: str) -> Dataset | None:
        return self._layers.pop(layer_id, None)

    def get_layers(self) -> list[Dataset]:
        return list(self._layers.values())

    def get_layer_by_id(self, layer_id: str) -> Dataset | None:
        if not layer_id:
            return None
        return self._layers.get(layer_id)


class StaticSelectionProvider:
    """Selection provider holding fixed index lists per layer."""

    def __init__(self, selections: Mapping[str, Iterable[int]] | None = None):
        self._selections = {k: list(v) for k, v in (selections or {}).items()}

    def select(self, layer_id: str, indices: Iterable[int]) -> None:
        self._selections[layer_id] = list(indices)

    def clear(self, layer_id: str) -> None:
        self._selections.pop(layer_id, None)

    def get_selected_indices(self, layer_id: str) -> list[int]:
        return list(self._selections.get(layer_id, []))
