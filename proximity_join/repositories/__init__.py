"""Access to the host's layers, selection and schema analysis."""

from proximity_join.repositories.repository import (
    InMemoryLayerRepository,
    LayerRepository,
    SelectionProvider,
    StaticSelectionProvider,
)
from proximity_join.repositories.schema import analyze_schema, refresh_schema

__all__ = [
    "LayerRepository",
    "SelectionProvider",
    "InMemoryLayerRepository",
    "StaticSelectionProvider",
    "analyze_schema",
    "refresh_schema",
]
