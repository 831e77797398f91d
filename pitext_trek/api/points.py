# pitext_trek/api/points.py
"""Pure geometric checks shared by every pipeline stage."""

import logging
import math
from typing import Optional

from pitext_trek.api.errors import RoutingUnreachable, ValidationError
from pitext_trek.api.models import Point

logger = logging.getLogger(__name__)

# ~100 m at the equator
POINT_TOLERANCE_DEG = 0.001
EARTH_RADIUS_KM = 6371.0

# (south, north, west, east) boxes of open ocean with no islands inside
OPEN_OCEAN_BOXES = (
    (-1.0, 1.0, -1.0, 1.0),          # around null island, Gulf of Guinea
    (25.0, 50.0, -175.0, -130.0),    # north-east Pacific, between Hawaii and the US coast
    (-60.0, -30.0, -170.0, -80.0),   # south-east Pacific, south of Easter Island
)


class PointValidator:
    """Stateless coordinate checks."""

    @staticmethod
    def check_bounds(point: Point) -> Point:
        """Reject non-finite, out-of-range or null-island coordinates.

        Args:
            point: Point to check

        Returns:
            The same point, for chaining

        Raises:
            ValidationError: If the coordinate is unusable
        """
        lat, lng = point.lat, point.lng
        if not isinstance(lat, (int, float)) or isinstance(lat, bool) or not math.isfinite(lat):
            raise ValidationError(f"Invalid latitude: {lat!r}")
        if not isinstance(lng, (int, float)) or isinstance(lng, bool) or not math.isfinite(lng):
            raise ValidationError(f"Invalid longitude: {lng!r}")
        if not -90 <= lat <= 90:
            raise ValidationError(f"Invalid latitude: {lat} (must be between -90 and 90)")
        if not -180 <= lng <= 180:
            raise ValidationError(f"Invalid longitude: {lng} (must be between -180 and 180)")
        if lat == 0 and lng == 0:
            raise ValidationError("Invalid coordinates: (0, 0) is in the ocean off West Africa")
        return point

    @staticmethod
    def is_likely_on_land(lat: float, lng: float) -> bool:
        """Cheap, permissive oceanic pre-filter.

        Only a few coarse boxes of open water are rejected; coastal and
        island points always pass. The routing service stays the authority.
        """
        for south, north, west, east in OPEN_OCEAN_BOXES:
            if south < lat < north and west < lng < east:
                return False
        return True

    @staticmethod
    def validate(point: Point) -> Point:
        """Bounds check followed by the land heuristic.

        Raises:
            ValidationError: Coordinate outside numeric bounds
            RoutingUnreachable: Coordinate appears to be in open water
        """
        PointValidator.check_bounds(point)
        if not PointValidator.is_likely_on_land(point.lat, point.lng):
            logger.debug(f"Point '{point.name}' [{point.lat}, {point.lng}] rejected by land heuristic")
            raise RoutingUnreachable(
                f"Coordinate [{point.lat}, {point.lng}] ('{point.name}') appears to be in water. "
                "Use coordinates on land with road/path access."
            )
        return point

    @staticmethod
    def is_valid(point: Point) -> bool:
        try:
            PointValidator.validate(point)
        except (ValidationError, RoutingUnreachable):
            return False
        return True

    @staticmethod
    def same_point(a: Optional[Point], b: Optional[Point]) -> bool:
        """True when both coordinate deltas are under the tolerance."""
        if a is None or b is None:
            return False
        return (abs(a.lat - b.lat) < POINT_TOLERANCE_DEG
                and abs(a.lng - b.lng) < POINT_TOLERANCE_DEG)

    @staticmethod
    def haversine_km(a: Point, b: Point) -> float:
        """Great-circle distance between two points in kilometres."""
        d_lat = math.radians(b.lat - a.lat)
        d_lng = math.radians(b.lng - a.lng)
        h = (math.sin(d_lat / 2) ** 2
             + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2)
        return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


__all__ = ["PointValidator", "POINT_TOLERANCE_DEG"]
