"""Great-circle distance on a spherical Earth."""

import math

from proximity_join.config import CONSTANTS


def haversine_m(
    lon1: float,
    lat1: float,
    lon2: float,
    lat2: float,
    radius_m: float = CONSTANTS.EARTH_RADIUS_M,
) -> float:
    """Compute great-circle distance in metres between two lon/lat points.

    Uses the haversine formula on a sphere of mean Earth radius, which is
    within ~0.5% of the ellipsoidal distance.

    Args:
        lon1: Longitude of the first point (degrees)
        lat1: Latitude of the first point (degrees)
        lon2: Longitude of the second point (degrees)
        lat2: Latitude of the second point (degrees)
        radius_m: Sphere radius in metres

    Returns:
        Distance in metres
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * radius_m * math.asin(math.sqrt(min(1.0, h)))
