"""
Haversine Algorithm - Calculate distance between two geographical points
Used to show how far each responding donor is from the requesting hospital
"""

import math

import numpy as np
from django.conf import settings

EARTH_RADIUS_KM = 6371


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate straight-line distance between two points.
    Note: This is "as the crow flies" distance, not road distance.

    Args:
        lat1, lon1: Latitude and longitude of point 1 (reference point)
        lat2, lon2: Latitude and longitude of point 2 (responder)

    Returns:
        Distance in kilometers
    """
    # Convert decimal degrees to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return c * EARTH_RADIUS_KM


def haversine_distances(ref_lat, ref_lon, lats, lons):
    """
    Vectorized haversine from one reference point to many responders

    Args:
        ref_lat, ref_lon: Reference point
        lats, lons: Sequences of responder coordinates; None marks a missing value

    Returns:
        numpy array of distances in km, NaN where coordinates are missing
    """
    lats = np.array([np.nan if v is None else v for v in lats], dtype=float)
    lons = np.array([np.nan if v is None else v for v in lons], dtype=float)
    if lats.size == 0:
        return lats

    ref_lat, ref_lon = np.radians(ref_lat), np.radians(ref_lon)
    lats, lons = np.radians(lats), np.radians(lons)

    a = np.sin((lats - ref_lat) / 2) ** 2 + np.cos(ref_lat) * np.cos(lats) * np.sin((lons - ref_lon) / 2) ** 2
    c = 2 * np.arcsin(np.minimum(1.0, np.sqrt(a)))

    return c * EARTH_RADIUS_KM


def classify_proximity(distance_km, threshold=None):
    """
    Label a distance 'near' or 'far' for display. Never used to filter.
    """
    if distance_km is None:
        return None
    if threshold is None:
        threshold = settings.NEAR_THRESHOLD_KM
    return 'near' if distance_km <= threshold else 'far'


def reference_point_for(hospital=None):
    """
    Fixed point all distances are measured from: the hospital's own
    coordinates when on file, otherwise the configured default.
    """
    if hospital is not None and hospital.latitude is not None and hospital.longitude is not None:
        return (hospital.latitude, hospital.longitude)
    return tuple(settings.DEFAULT_REFERENCE_POINT)


def rank_by_distance(items, key):
    """
    Sort items by distance (closest first); unknown distances go last.
    The sort is stable so equal distances keep their incoming order.
    """
    return sorted(items, key=lambda item: (key(item) is None, key(item) or 0.0))
