# pitext_trek/api/services/coordinate_service.py
"""Nudges unroutable coordinates onto the routing network."""

import logging
import math
from functools import lru_cache
from typing import List, Sequence, Tuple

from pitext_trek.api.geocoding import Geocoder
from pitext_trek.api.models import Point
from pitext_trek.api.points import PointValidator
from pitext_trek.api.routing import RoutingService

logger = logging.getLogger(__name__)

# Degrees; roughly 100 m, 200 m, 500 m and 1 km
SEARCH_RADII = (0.001, 0.002, 0.005, 0.01)
RING_STEPS = 8
CENTROID_CACHE_SIZE = 128


class CoordinateResolver:
    """Finds the nearest routable point around a rejected coordinate."""

    def __init__(self, routing: RoutingService, geocoder: Geocoder,
                 radii: Sequence[float] = SEARCH_RADII, centroid_cache_size: int = CENTROID_CACHE_SIZE):
        self.routing = routing
        self.geocoder = geocoder
        self.radii = tuple(radii)
        self._centroid = lru_cache(maxsize=centroid_cache_size)(self.geocoder.search)

    @staticmethod
    def ring(point: Point, radius: float) -> List[Point]:
        """Candidates at ``radius`` degrees on evenly spaced bearings, due north first.

        The bearings are multiples of 45°, so N, E, S and W are all included.
        """
        candidates = []
        for i in range(RING_STEPS):
            angle = i * 2 * math.pi / RING_STEPS
            candidates.append(Point(
                lat=point.lat + radius * math.cos(angle),
                lng=point.lng + radius * math.sin(angle),
                name=point.name,
            ))
        return candidates

    def _probe(self, candidate: Point, profile: str) -> bool:
        if not PointValidator.is_valid(candidate):
            return False
        return self.routing.is_routable(candidate.as_lng_lat(), profile)

    def resolve(self, point: Point, city_name: str, profile: str) -> Point:
        """Return ``point`` itself if routable, else the closest accepted candidate.

        Rings are searched smallest radius first; the first accepted candidate
        wins. When nothing is accepted the geocoded city centroid is returned.
        """
        if self._probe(point, profile):
            return point

        for radius in self.radii:
            for candidate in self.ring(point, radius):
                if self._probe(candidate, profile):
                    logger.info(
                        f"Moved '{point.name}' {PointValidator.haversine_km(point, candidate) * 1000:.0f} m "
                        f"to a routable point (radius {radius}°)"
                    )
                    return candidate

        logger.warning(f"No routable point near '{point.name}'; falling back to the centre of {city_name}")
        lat, lng = self.city_centroid(city_name)
        return Point(lat=lat, lng=lng, name=point.name)

    def resolve_all(self, points: Sequence[Point], city_name: str, profile: str) -> List[Point]:
        return [self.resolve(p, city_name, profile) for p in points]

    def city_centroid(self, city_name: str) -> Tuple[float, float]:
        """Geocode ``city_name`` through a bounded LRU cache.

        Raises:
            ExternalServiceError: If the geocoder cannot resolve the city
        """
        return self._centroid(city_name)


__all__ = ["CoordinateResolver", "SEARCH_RADII"]
