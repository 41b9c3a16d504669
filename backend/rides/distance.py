import numpy as np

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1, lon1, lat2, lon2):
    """
    Great-circle distance in km between two WGS84 points.

    Works on scalars or numpy arrays; NaN inputs give NaN.
    """
    rlat1, rlon1, rlat2, rlon2 = map(np.radians, (lat1, lon1, lat2, lon2))
    dlat = rlat2 - rlat1
    dlon = rlon2 - rlon1

    a = np.sin(dlat / 2) ** 2 + np.cos(rlat1) * np.cos(rlat2) * np.sin(dlon / 2) ** 2
    a = np.minimum(a, 1.0)  # rounding near antipodes
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def estimate_distance_km(lat1, lon1, lat2, lon2, adjustment_factor=1.0) -> float:
    """
    Estimated travel distance for a trip the feed reported no distance for.

    The haversine figure is a straight line, so it undershoots the real route;
    ``adjustment_factor`` scales it up (AnalyticsConfig defaults to 1.2).
    """
    return float(haversine_km(lat1, lon1, lat2, lon2)) * adjustment_factor
