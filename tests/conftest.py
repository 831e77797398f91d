import json
import math
from typing import Callable, List, Optional

import pytest

from pitext_trek.api.errors import RoutingUnreachable
from pitext_trek.api.models import Point, ResolvedRoute, RouteLeg
from pitext_trek.api.services.constraint_service import ConstraintEnforcer
from pitext_trek.api.services.coordinate_service import CoordinateResolver
from pitext_trek.api.services.proposal_service import RouteProposalGenerator
from pitext_trek.api.services.routing_service import RoutingResolver
from pitext_trek.api.services.trip_service import TripAssembler


def path_km(coords) -> float:
    """Haversine length of a [lng, lat] polyline."""
    total = 0.0
    for (lng1, lat1), (lng2, lat2) in zip(coords, coords[1:]):
        d_lat = math.radians(lat2 - lat1)
        d_lng = math.radians(lng2 - lng1)
        h = (math.sin(d_lat / 2) ** 2
             + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2)
        total += 6371.0 * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return total


class FakeTextGenerator:
    """Replays canned answers (strings or exceptions) and records calls."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def complete(self, system_prompt, user_prompt, temperature, max_tokens):
        self.calls.append({"system": system_prompt, "user": user_prompt})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FakeRoutingService:
    """Draws straight lines between the requested coordinates.

    ``blocked(lat, lng)`` marks coordinates off the network; ``distance_km``
    overrides the path length for a coordinate list.
    """

    def __init__(self, blocked: Optional[Callable[[float, float], bool]] = None,
                 distance_km: Optional[Callable[[list], float]] = None):
        self.blocked = blocked or (lambda lat, lng: False)
        self.distance_km = distance_km or path_km
        self.calls: List[list] = []
        self.probes: List[list] = []

    def directions(self, coordinates, profile, radius_m=None):
        coords = [list(c) for c in coordinates]
        self.calls.append(coords)
        for lng, lat in coords:
            if self.blocked(lat, lng):
                raise RoutingUnreachable(f"Could not find routable point within a radius of {radius_m} m")
        km = self.distance_km(coords)
        return {
            "type": "FeatureCollection",
            "features": [{
                "geometry": {"type": "LineString", "coordinates": [c + [35.0] for c in coords]},
                "properties": {
                    "summary": {"distance": km * 1000, "duration": km * 1000 / 1.4},
                    "ascent": 120.4,
                    "descent": 118.6,
                    "segments": [
                        {"steps": [
                            {"instruction": "Head north", "distance": 500.0, "duration": 360.0, "name": "Trail"},
                            {"instruction": "Arrive", "distance": 0.0, "duration": 0.0, "name": "-"},
                        ]}
                        for _ in coords[1:]
                    ],
                },
            }],
        }

    def is_routable(self, coordinate, profile, radius_m=None):
        self.probes.append(list(coordinate))
        lng, lat = coordinate
        return not self.blocked(lat, lng)


class FakeGeocoder:
    def __init__(self, centroid=(48.8566, 2.3522)):
        self.centroid = centroid
        self.queries = []

    def search(self, text):
        self.queries.append(text)
        return self.centroid


def point_dict(lat, lng, name):
    return {"lat": lat, "lng": lng, "name": name}


def proposal_json(city, trip_type, routes, **extra):
    payload = {
        "city": city,
        "tripType": trip_type,
        "estimatedDays": len(routes),
        "routes": routes,
        "highlights": ["Views"],
        "equipment": ["Water"],
        "tips": ["Start early"],
    }
    payload.update(extra)
    return json.dumps(payload)


# Paris: two ~6 km days forming a loop around the centre
PARIS_A = point_dict(48.8566, 2.3522, "Hôtel de Ville")
PARIS_W1 = point_dict(48.8800, 2.3522, "Gare du Nord")
PARIS_B = point_dict(48.8800, 2.4000, "Parc des Buttes-Chaumont")
PARIS_W2 = point_dict(48.8566, 2.4000, "Père Lachaise")

PARIS_TREK = proposal_json("Paris, France", "trek", [
    {"day": 1, "startPoint": PARIS_A, "waypoints": [PARIS_W1], "endPoint": PARIS_B,
     "description": "North along the canal"},
    {"day": 2, "startPoint": PARIS_B, "waypoints": [PARIS_W2], "endPoint": PARIS_A,
     "description": "Back through the east"},
])

# Tel Aviv to Hadera along the coast
TLV_START = point_dict(32.0853, 34.7818, "Tel Aviv Port")
TLV_W1 = point_dict(32.1500, 34.8000, "Tel Baruch")
TLV_MID = point_dict(32.2500, 34.8500, "Netanya")
TLV_W2 = point_dict(32.3300, 34.8600, "Mikhmoret")
TLV_END = point_dict(32.4400, 34.9200, "Hadera")

TLV_CYCLING = proposal_json("Tel Aviv, Israel", "cycling", [
    {"day": 1, "startPoint": TLV_START, "waypoints": [TLV_W1], "endPoint": TLV_MID,
     "description": "Coastal ride north"},
    {"day": 2, "startPoint": TLV_MID, "waypoints": [TLV_W2], "endPoint": TLV_END,
     "description": "On to Hadera"},
])


def make_point(lat, lng, name="P"):
    return Point(lat=lat, lng=lng, name=name)


def make_route(day, start, end, waypoints=(), km=8.0):
    points = [start, *waypoints, end]
    coords = [p.as_lng_lat() for p in points]
    leg = RouteLeg(
        distance_km=km,
        duration_min=int(km * 12),
        geometry={"type": "LineString", "coordinates": coords},
        coordinates=coords,
    )
    return ResolvedRoute(day=day, start_point=start, end_point=end,
                         waypoints=list(waypoints), description="", leg=leg)


def build_assembler(generator, routing=None, geocoder=None):
    routing = routing or FakeRoutingService()
    geocoder = geocoder or FakeGeocoder()
    resolver = RoutingResolver(routing)
    return TripAssembler(
        proposals=RouteProposalGenerator(generator),
        resolver=resolver,
        coordinates=CoordinateResolver(routing, geocoder),
        enforcer=ConstraintEnforcer(resolver),
    )


@pytest.fixture
def routing():
    return FakeRoutingService()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def resolver(routing):
    return RoutingResolver(routing)


@pytest.fixture
def enforcer(resolver):
    return ConstraintEnforcer(resolver)
