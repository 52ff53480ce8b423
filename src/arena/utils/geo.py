from math import asin, cos, radians, sin, sqrt

from arena.models.venue import GeoPoint

EARTH_RADIUS_METERS = 6_371_000


def distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    # haversine on a spherical earth; good enough for a geofence
    lat1, lng1, lat2, lng2 = map(radians, (a.lat, a.lng, b.lat, b.lng))
    h = sin((lat2 - lat1) / 2) ** 2 + cos(lat1) * cos(lat2) * sin((lng2 - lng1) / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * asin(sqrt(h))
