"""Distance unit conversion.

All internal distances are metres; the display unit is only used for values
entered by, or shown to, the user.
"""

from proximity_join.models.enums import DistanceUnit


def to_display_unit(distance_m: float, unit: DistanceUnit | str) -> float:
    """Convert a distance in metres to the display unit.

    Args:
        distance_m: Distance in metres
        unit: Target display unit

    Returns:
        Distance expressed in ``unit``

    Raises:
        ValueError: If the unit is not recognised
    """
    return distance_m * DistanceUnit(unit).per_metre


def round_distance(distance_m: float, unit: DistanceUnit | str, precision: int) -> float:
    """Convert metres to the display unit, rounded to ``precision`` decimals."""
    return round(to_display_unit(distance_m, unit), precision)
