# coupure/geo.py
from math import radians, sin, cos, atan2, sqrt

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance orthodromique (km) entre deux points en degrés."""
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    a = sin(d_lat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    a = min(1.0, a)  # arrondis flottants près des antipodes
    return EARTH_RADIUS_KM * 2 * atan2(sqrt(a), sqrt(1 - a))
