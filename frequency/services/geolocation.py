"""Nearest catalog region for a coordinate, by great-circle distance."""
import math
from typing import Iterable, Optional

from frequency.schemas.catalog import NearestRegion

EARTH_RADIUS_KM = 6371


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two points given in degrees"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push antipodal pairs just past 1
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def find_nearest_region(latitude: float, longitude: float, regions: Iterable) -> Optional[NearestRegion]:
    """
    Pick the region closest to ``(latitude, longitude)``.

    ``regions`` holds objects exposing ``id``, ``name``, ``country``,
    ``description``, ``latitude`` and ``longitude`` (ORM rows or schemas).
    Regions missing either coordinate are skipped, and the first of equally
    distant regions wins. Returns None when no region has coordinates.
    """
    nearest = None
    min_distance = math.inf

    for region in regions:
        if region.latitude is None or region.longitude is None:
            continue
        distance = haversine_distance(latitude, longitude, float(region.latitude), float(region.longitude))
        if distance < min_distance:
            min_distance = distance
            nearest = region

    if nearest is None:
        return None

    return NearestRegion(
        id=nearest.id,
        name=nearest.name,
        country=nearest.country,
        description=getattr(nearest, "description", None),
        distance=math.floor(min_distance + 0.5)
    )
