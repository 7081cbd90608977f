"""
Great-circle distance and proximity helpers.

Distances are in kilometres. Bounding boxes are deliberately loose (a
superset of the true circle) so they can pre-filter rows in SQL before
the exact Haversine check.
"""

import math
from typing import Callable, Iterable, List, NamedTuple, Optional, Tuple, TypeVar

EARTH_RADIUS_KM = 6371.0

T = TypeVar("T")


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def validate_coordinates(lat: float, lng: float) -> None:
    """Raise ValueError unless (lat, lng) is a finite point on the globe."""
    if not (isinstance(lat, (int, float)) and isinstance(lng, (int, float))):
        raise ValueError(f"Coordinates must be numbers, got ({lat!r}, {lng!r})")
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValueError(f"Coordinates must be finite, got ({lat}, {lng})")
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude must be within [-90, 90], got {lat}")
    if not -180.0 <= lng <= 180.0:
        raise ValueError(f"Longitude must be within [-180, 180], got {lng}")


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Haversine distance between two points.

    Args:
        lat1, lng1: First point in decimal degrees
        lat2, lng2: Second point in decimal degrees

    Returns:
        Distance in kilometres
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push a fractionally above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _check_radius(radius_km: float) -> None:
    if radius_km < 0 or not math.isfinite(radius_km):
        raise ValueError(f"Radius must be a non-negative number, got {radius_km}")


def get_bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """
    Lat/lng rectangle containing every point within radius_km of (lat, lng).

    Near the poles, or when the box would cross the antimeridian, the
    longitude range widens to the full [-180, 180].

    Raises:
        ValueError: On invalid coordinates or a negative radius
    """
    validate_coordinates(lat, lng)
    _check_radius(radius_km)

    angular = radius_km / EARTH_RADIUS_KM
    lat_delta = math.degrees(angular)
    min_lat = lat - lat_delta
    max_lat = lat + lat_delta

    if min_lat <= -90.0 or max_lat >= 90.0:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), -180.0, 180.0)

    # Widest longitude spread of the circle, reached at the tangent latitude
    ratio = math.sin(angular) / math.cos(math.radians(lat))
    if ratio >= 1.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)
    lng_delta = math.degrees(math.asin(ratio))
    min_lng = lng - lng_delta
    max_lng = lng + lng_delta

    if min_lng < -180.0 or max_lng > 180.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)

    return BoundingBox(min_lat, max_lat, min_lng, max_lng)


def is_within_radius(
    lat1: float, lng1: float, lat2: float, lng2: float, radius_km: float
) -> bool:
    _check_radius(radius_km)
    return calculate_distance(lat1, lng1, lat2, lng2) <= radius_km


def filter_by_radius(
    items: Iterable[T],
    lat: float,
    lng: float,
    radius_km: float,
    coords: Callable[[T], Optional[Tuple[float, float]]],
) -> List[Tuple[T, float]]:
    """
    Keep items within radius_km of (lat, lng), nearest first.

    Args:
        items: Anything with a location
        lat, lng: Search centre
        radius_km: Search radius
        coords: Returns (lat, lng) for an item, or None if it has no location

    Returns:
        List of (item, distance_km) pairs sorted by distance
    """
    box = get_bounding_box(lat, lng, radius_km)
    hits: List[Tuple[T, float]] = []
    for item in items:
        point = coords(item)
        if point is None:
            continue
        item_lat, item_lng = point
        if not box.contains(item_lat, item_lng):
            continue
        distance = calculate_distance(lat, lng, item_lat, item_lng)
        if distance <= radius_km:
            hits.append((item, distance))
    hits.sort(key=lambda pair: pair[1])
    return hits
