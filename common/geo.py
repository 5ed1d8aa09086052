from __future__ import annotations

from typing import Iterable, Tuple
import math
import numpy as np


# Mean Earth radius used for straight-line ("as the crow flies") distances
EARTH_MEAN_RADIUS_M = 6371e3

LatLon = Tuple[float, float]


# -------------------------
# Great-circle distance
# -------------------------
def haversine_m(a: LatLon, b: LatLon) -> float:
    """Great-circle distance in meters between two (lat, lon) pairs in degrees."""
    lat1, lon1 = a
    lat2, lon2 = b
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dl = math.radians(lon2 - lon1)
    h = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    return EARTH_MEAN_RADIUS_M * 2.0 * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))


def haversine_many_m(origin: LatLon, points: Iterable[LatLon]) -> np.ndarray:
    """
    Vectorised haversine from one origin to N (lat, lon) points.
    Returns a float64 array of shape (N,); empty input gives an empty array.
    """
    pts = np.asarray(list(points), dtype=float).reshape(-1, 2)
    if pts.shape[0] == 0:
        return np.zeros(0, dtype=float)
    lat1 = math.radians(origin[0])
    lat2 = np.radians(pts[:, 0])
    dphi = lat2 - lat1
    dl = np.radians(pts[:, 1] - origin[1])
    h = np.sin(dphi / 2.0) ** 2 + math.cos(lat1) * np.cos(lat2) * np.sin(dl / 2.0) ** 2
    return EARTH_MEAN_RADIUS_M * 2.0 * np.arctan2(np.sqrt(h), np.sqrt(1.0 - h))


def valid_latlon(lat: float, lon: float) -> bool:
    return math.isfinite(lat) and math.isfinite(lon) and -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0
