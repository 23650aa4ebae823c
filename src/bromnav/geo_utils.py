# geo_utils.py
# Pure mathematical / geographic helper functions.
# No side effects, only imports models from this project.

import math
from typing import Sequence, Tuple

import numpy as np
from shapely.geometry import MultiPoint

from .models import Coord


EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Distance in metres.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Forward azimuth (bearing) from point 1 to point 2 in degrees [0, 360).

    The result for two identical points is 0.0; callers that can hit that
    case must handle it themselves.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Bearing in degrees.
    """
    rlat1, rlon1 = math.radians(lat1), math.radians(lon1)
    rlat2, rlon2 = math.radians(lat2), math.radians(lon2)
    d_lon = rlon2 - rlon1
    y = math.sin(d_lon) * math.cos(rlat2)
    x = math.cos(rlat1) * math.sin(rlat2) - math.sin(rlat1) * math.cos(rlat2) * math.cos(d_lon)
    bearing = (math.degrees(math.atan2(y, x)) + 360) % 360
    # -0.0 % 360 and tiny negatives can round up to exactly 360.0
    return 0.0 if bearing >= 360.0 else bearing


def distance_m(a: Coord, b: Coord) -> float:
    """Haversine distance between two coordinates in metres."""
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def bearing_deg(origin: Coord, target: Coord) -> float:
    """Initial compass bearing from origin toward target, in [0, 360)."""
    return calculate_bearing(origin.lat, origin.lon, target.lat, target.lon)


def haversine_many(origin: Coord, lats: np.ndarray, lons: np.ndarray) -> np.ndarray:
    """
    Vectorized haversine from one point to many.

    Args:
        origin: Reference coordinate.
        lats:   Latitudes in decimal degrees.
        lons:   Longitudes in decimal degrees, same shape as lats.

    Returns:
        Array of distances in metres.
    """
    lat1 = math.radians(origin.lat)
    lat2 = np.radians(lats)
    d_lat = lat2 - lat1
    d_lon = np.radians(lons) - math.radians(origin.lon)
    a = np.sin(d_lat / 2) ** 2 + math.cos(lat1) * np.cos(lat2) * np.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def padded_bounds(coords: Sequence[Coord], pad_deg: float = 0.01) -> Tuple[float, float, float, float]:
    """
    Bounding box around a coordinate sequence, padded on every side.

    Returns:
        (min_lon, min_lat, max_lon, max_lat)

    Raises:
        ValueError: If coords is empty.
    """
    if not coords:
        raise ValueError("Cannot compute bounds of an empty coordinate list.")
    min_lon, min_lat, max_lon, max_lat = MultiPoint([(c.lon, c.lat) for c in coords]).bounds
    return (min_lon - pad_deg, min_lat - pad_deg, max_lon + pad_deg, max_lat + pad_deg)
