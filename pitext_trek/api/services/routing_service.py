# pitext_trek/api/services/routing_service.py
"""Service layer turning ordered points into a real path."""

import logging
from typing import Any, Dict, List, Sequence

from pitext_trek.api.errors import RoutingFailed, ValidationError
from pitext_trek.api.models import Elevation, Instruction, Point, RouteLeg
from pitext_trek.api.points import PointValidator
from pitext_trek.api.routing import RoutingService

logger = logging.getLogger(__name__)


class RoutingResolver:
    """Validates points, calls the routing service and normalises the answer."""

    def __init__(self, routing: RoutingService, search_radius_m: int = 5000):
        self.routing = routing
        self.search_radius_m = search_radius_m

    def route(self, points: Sequence[Point], profile: str, city_name: str = "") -> RouteLeg:
        """Resolve an ordered list of points into a RouteLeg.

        Args:
            points: At least two points, in travel order
            profile: Routing profile, e.g. ``foot-walking``
            city_name: City context, only used for logging

        Returns:
            Normalised distance, duration, geometry, elevation and steps

        Raises:
            ValidationError: Fewer than two points or a point out of bounds
            RoutingUnreachable: A point is in water or off the network
            RoutingFailed: Any other routing rejection
        """
        if len(points) < 2:
            raise ValidationError("Need at least 2 coordinates for route generation")

        for point in points:
            PointValidator.validate(point)

        logger.debug(f"Routing {len(points)} points in {city_name or 'unknown city'} ({profile})")
        data = self.routing.directions(
            [p.as_lng_lat() for p in points],
            profile,
            self.search_radius_m,
        )
        return self.normalize(data, profile)

    @staticmethod
    def normalize(data: Dict[str, Any], profile: str) -> RouteLeg:
        """Convert a GeoJSON directions response to kilometres and minutes."""
        features = (data or {}).get("features") or []
        if not features:
            raise RoutingFailed("No route found in routing response")

        feature = features[0]
        geometry = feature.get("geometry") or {}
        raw_coords = geometry.get("coordinates") or []
        if len(raw_coords) < 2:
            raise RoutingFailed("Routing service returned invalid route geometry")

        properties = feature.get("properties") or {}
        summary = properties.get("summary") or {}
        coordinates = [[float(c[0]), float(c[1])] for c in raw_coords]

        return RouteLeg(
            distance_km=round((summary.get("distance") or 0) / 1000, 2),
            duration_min=int(round((summary.get("duration") or 0) / 60)),
            geometry={"type": geometry.get("type", "LineString"), "coordinates": coordinates},
            coordinates=coordinates,
            elevation=Elevation(
                ascent=int(round(properties.get("ascent") or 0)),
                descent=int(round(properties.get("descent") or 0)),
            ),
            instructions=RoutingResolver.flatten_steps(properties.get("segments") or []),
            profile=profile,
        )

    @staticmethod
    def flatten_steps(segments: List[Dict[str, Any]]) -> List[Instruction]:
        instructions = []
        for segment_index, segment in enumerate(segments):
            for step_index, step in enumerate(segment.get("steps") or []):
                instructions.append(Instruction(
                    segment=segment_index,
                    step=step_index,
                    instruction=step.get("instruction") or "",
                    distance_km=round((step.get("distance") or 0) / 1000, 2),
                    duration_min=int(round((step.get("duration") or 0) / 60)),
                    name=step.get("name") or "",
                ))
        return instructions


__all__ = ["RoutingResolver"]
