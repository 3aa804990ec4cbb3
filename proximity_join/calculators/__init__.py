"""Pure calculators used by the proximity join.

This package contains stateless numeric functions (unit conversion and
great-circle distance) that are testable without any spatial data.
"""

from proximity_join.calculators.great_circle import haversine_m
from proximity_join.calculators.units import round_distance, to_display_unit

__all__ = [
    "haversine_m",
    "to_display_unit",
    "round_distance",
]
