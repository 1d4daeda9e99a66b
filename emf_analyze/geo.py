"""Geospatial utilities (no external dependencies)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Protocol


class HasLatLon(Protocol):
    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute Haversine distance in meters between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Distance in meters.
    """

    r = 6_371_000.0  # mean Earth radius in meters
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return r * c


def path_length_m(points: Iterable[HasLatLon]) -> float:
    """Sum of haversine distances along consecutive points."""

    total = 0.0
    prev: HasLatLon | None = None
    for p in points:
        if prev is not None:
            total += haversine_m(prev.latitude, prev.longitude, p.latitude, p.longitude)
        prev = p
    return total


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Axis-aligned lat/lon box for viewport fitting."""

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    @property
    def center(self) -> tuple[float, float]:
        return (0.5 * (self.min_lat + self.max_lat), 0.5 * (self.min_lon + self.max_lon))

    def as_bounds(self) -> list[list[float]]:
        """[[south, west], [north, east]] as map renderers expect."""

        return [[self.min_lat, self.min_lon], [self.max_lat, self.max_lon]]


def bounding_box(points: Iterable[HasLatLon]) -> BoundingBox | None:
    """Bounding box of all points, or None for an empty input."""

    it = iter(points)
    first = next(it, None)
    if first is None:
        return None
    min_lat = max_lat = first.latitude
    min_lon = max_lon = first.longitude
    for p in it:
        min_lat = min(min_lat, p.latitude)
        max_lat = max(max_lat, p.latitude)
        min_lon = min(min_lon, p.longitude)
        max_lon = max(max_lon, p.longitude)
    return BoundingBox(min_lat=min_lat, min_lon=min_lon, max_lat=max_lat, max_lon=max_lon)
