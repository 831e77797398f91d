"""Shared data structures for trip planning.

Every stage of the pipeline passes these dataclasses around instead of raw
dicts; ``to_dict()`` gives the camelCase shape the front-end expects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

TREK = "trek"
CYCLING = "cycling"
TRIP_TYPES = (TREK, CYCLING)


@dataclass(frozen=True)
class Point:
    """A named coordinate on a route."""

    lat: float
    lng: float
    name: str

    def as_lng_lat(self) -> List[float]:
        """Coordinate in routing-service order."""
        return [self.lng, self.lat]

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng, "name": self.name}


@dataclass
class RouteProposal:
    """One day of the route skeleton proposed by the text model."""

    day: int
    start_point: Point
    end_point: Point
    waypoints: List[Point] = field(default_factory=list)
    description: str = ""

    @property
    def points(self) -> List[Point]:
        return [self.start_point, *self.waypoints, self.end_point]


@dataclass
class TripProposal:
    """The validated, structured output of the text model."""

    city: str
    trip_type: str
    estimated_days: int
    routes: List[RouteProposal]
    highlights: List[str] = field(default_factory=list)
    equipment: List[str] = field(default_factory=list)
    tips: List[str] = field(default_factory=list)
    # text-generation calls spent producing this proposal
    attempts: int = 1


@dataclass(frozen=True)
class Instruction:
    segment: int
    step: int
    instruction: str
    distance_km: float
    duration_min: int
    name: str = ""

    def to_dict(self) -> dict:
        return {
            "segment": self.segment,
            "step": self.step,
            "instruction": self.instruction,
            "distance": self.distance_km,
            "duration": self.duration_min,
            "name": self.name,
        }


@dataclass(frozen=True)
class Elevation:
    ascent: int = 0
    descent: int = 0

    def to_dict(self) -> dict:
        return {"ascent": self.ascent, "descent": self.descent}


@dataclass
class RouteLeg:
    """Normalized routing result for an ordered list of points."""

    distance_km: float
    duration_min: int
    geometry: Dict[str, Any]
    coordinates: List[List[float]]
    elevation: Elevation = field(default_factory=Elevation)
    instructions: List[Instruction] = field(default_factory=list)
    profile: str = ""


@dataclass
class ResolvedRoute:
    """A day proposal bound to a real path from the routing service."""

    day: int
    start_point: Point
    end_point: Point
    waypoints: List[Point]
    description: str
    leg: RouteLeg

    @classmethod
    def from_proposal(cls, proposal: RouteProposal, leg: RouteLeg) -> "ResolvedRoute":
        return cls(
            day=proposal.day,
            start_point=proposal.start_point,
            end_point=proposal.end_point,
            waypoints=list(proposal.waypoints),
            description=proposal.description,
            leg=leg,
        )

    @property
    def distance_km(self) -> float:
        return self.leg.distance_km

    @property
    def duration_min(self) -> int:
        return self.leg.duration_min

    @property
    def points(self) -> List[Point]:
        return [self.start_point, *self.waypoints, self.end_point]

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "distanceKm": self.leg.distance_km,
            "durationMin": self.leg.duration_min,
            "startPoint": self.start_point.to_dict(),
            "endPoint": self.end_point.to_dict(),
            "waypoints": [w.to_dict() for w in self.waypoints],
            "description": self.description,
            "geometry": self.leg.geometry,
            "coordinates": self.leg.coordinates,
            "elevation": self.leg.elevation.to_dict(),
            "instructions": [i.to_dict() for i in self.leg.instructions],
        }


@dataclass
class Trip:
    destination: str
    city: str
    trip_type: str
    total_distance_km: float
    total_duration_min: int
    estimated_days: int
    routes: List[ResolvedRoute]
    highlights: List[str]
    equipment: List[str]
    tips: List[str]
    difficulty: str

    def to_dict(self) -> dict:
        return {
            "destination": self.destination,
            "city": self.city,
            "tripType": self.trip_type,
            "totalDistanceKm": self.total_distance_km,
            "totalDurationMin": self.total_duration_min,
            "estimatedDays": self.estimated_days,
            "routes": [r.to_dict() for r in self.routes],
            "highlights": list(self.highlights),
            "equipment": list(self.equipment),
            "tips": list(self.tips),
            "difficulty": self.difficulty,
        }


@dataclass(frozen=True)
class TripRules:
    """Hard bounds and shape for one trip type."""

    min_days: int
    max_days: int
    min_day_km: float
    max_day_km: float
    profile: str
    loop: bool
    # average km/day upper limits for "easy" and "moderate"
    easy_max_km: float
    moderate_max_km: float


TRIP_RULES: Dict[str, TripRules] = {
    TREK: TripRules(
        min_days=1,
        max_days=5,
        min_day_km=5.0,
        max_day_km=15.0,
        profile="foot-walking",
        loop=True,
        easy_max_km=8.0,
        moderate_max_km=12.0,
    ),
    CYCLING: TripRules(
        min_days=2,
        max_days=2,
        min_day_km=10.0,
        max_day_km=60.0,
        profile="cycling-regular",
        loop=False,
        easy_max_km=30.0,
        moderate_max_km=50.0,
    ),
}


def rules_for(trip_type: str) -> Optional[TripRules]:
    return TRIP_RULES.get(trip_type)
