"""Validation for proximity join configuration.

Configuration problems are collected as ValidationError values and raised
together as a ConfigurationError before any run starts. Geometry problems are
never raised; they are counted per feature by the join itself.
"""

from proximity_join.validation.config import JoinConfigValidator, parse_max_radius
from proximity_join.validation.errors import (
    ConfigurationError,
    JoinInProgressError,
    ValidationError,
)

__all__ = [
    "ValidationError",
    "ConfigurationError",
    "JoinInProgressError",
    "JoinConfigValidator",
    "parse_max_radius",
]
