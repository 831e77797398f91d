# pitext_trek/api/services/proposal_service.py
"""Service layer turning a destination string into a validated route skeleton."""

import json
import logging
import re
from typing import Any, List, Optional

from pitext_trek.api.errors import GenerationFailed, RoutingUnreachable, TripPlanningError, ValidationError
from pitext_trek.api.llm import TextGenerator
from pitext_trek.api.models import CYCLING, TREK, Point, RouteProposal, TripProposal, rules_for
from pitext_trek.api.points import PointValidator
from pitext_trek.api.retry import always_retry, with_retries

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
MAX_WAYPOINTS = 4

SYSTEM_PROMPT = "Return ONLY valid JSON matching the specified schema. No additional text."
STRICT_SYSTEM_PROMPT = (
    "You MUST return ONLY valid JSON. No markdown, no backticks, no explanations. "
    "Start with { and end with }."
)

ROUTABLE_GUIDANCE = """
ROUTABILITY FIX:
- The previous coordinates could not be reached by the routing network.
- Place EVERY point directly on a road, footpath, cycle path or at a trailhead.
- Never use points in water, on beaches, in the middle of parks, fields or inside buildings.
- Prefer well-known street intersections, train stations and trail parking areas."""

_FENCE_START = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```\s*$")


class RouteProposalGenerator:
    """Builds the prompt, calls the text model and validates its answer."""

    def __init__(self, generator: TextGenerator, temperature: float = 0.2,
                 max_tokens: int = 4000, max_attempts: int = MAX_ATTEMPTS):
        self.generator = generator
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_attempts = max_attempts

    def generate(self, destination: str, trip_type: str,
                 previous_error: Optional[BaseException] = None,
                 max_attempts: Optional[int] = None) -> TripProposal:
        """Generate a route skeleton for ``destination``.

        Args:
            destination: Free-text destination, e.g. "Paris, France"
            trip_type: ``trek`` or ``cycling``
            previous_error: Why an earlier plan for the same request was
                rejected downstream; unroutable coordinates add routing guidance
            max_attempts: Call budget for this plan, defaults to the generator's own

        Returns:
            A schema-valid TripProposal

        Raises:
            GenerationFailed: If every attempt failed
        """
        prompt = self.build_prompt(destination, trip_type)

        def attempt(number: int, last_error: Optional[BaseException]) -> TripProposal:
            system_prompt = STRICT_SYSTEM_PROMPT if number > 1 or previous_error is not None else SYSTEM_PROMPT
            user_prompt = prompt
            if _is_unroutable_failure(previous_error) or _is_unroutable_failure(last_error):
                user_prompt = prompt + "\n" + ROUTABLE_GUIDANCE
            raw = self.generator.complete(system_prompt, user_prompt, self.temperature, self.max_tokens)
            proposal = self.parse(raw, trip_type)
            proposal.attempts = number
            return proposal

        budget = max_attempts or self.max_attempts
        try:
            proposal = with_retries(budget, always_retry, attempt)
        except Exception as exc:
            logger.error(f"Route generation for '{destination}' failed after {budget} attempts: {exc}")
            raise GenerationFailed(
                f"Failed to generate valid route after {budget} attempts: {exc}"
            ) from exc

        logger.info(f"LLM determined city: {proposal.city} for destination: {destination}")
        return proposal

    # ------------------------------------------------------------------
    # Prompt construction
    # ------------------------------------------------------------------

    @staticmethod
    def build_prompt(destination: str, trip_type: str) -> str:
        rules = rules_for(trip_type)
        if rules is None:
            raise ValidationError(f"Trip type must be either \"{TREK}\" or \"{CYCLING}\"")

        base = f"""Generate a {trip_type} route plan for "{destination}".

First, determine the specific city and country for this destination = {destination}.
Then create routes starting from coordinates near the center of this destination.
NEVER make a day's route shorter than {rules.min_day_km:g} km - MUST.
NEVER make a day's route longer than {rules.max_day_km:g} km - MUST.
CHECK your output: if a route is outside these bounds, change it or find a new route.
MUST use coordinates on land with road/path access.
MUST find routes that are realistic and safe for the specified trip type.
Coordinates are decimal degrees with 6 decimal places.
Each route must have a start point, an end point, and optional waypoints (at most {MAX_WAYPOINTS}).
Output ONLY valid JSON matching this exact schema with no additional text:
{{
  "city": "City, Country",
  "tripType": "{trip_type}",
  "estimatedDays": number,
  "routes": [
    {{
      "day": number,
      "startPoint": {{"lat": number, "lng": number, "name": string}},
      "waypoints": [{{"lat": number, "lng": number, "name": string}}],
      "endPoint": {{"lat": number, "lng": number, "name": string}},
      "description": string
    }}
  ],
  "highlights": [string],
  "equipment": [string],
  "tips": [string]
}}"""

        if trip_type == TREK:
            return base + f"""

TREK REQUIREMENTS:
- Total trip: {rules.min_days}-{rules.max_days} days
- Each day: {rules.min_day_km:g}-{rules.max_day_km:g} km walking distance (aim for 8-12 km)
- OVERALL trip is circular (day 1 start = final day end), but individual days are NOT circular
- Each day ends where the next day starts (continuous path)
- Keep routes within a 20 km radius to avoid excessive distances
- Use real hiking trails, parks, and walking paths
- 2-3 waypoints per day maximum to keep distances manageable
- Different route each day"""

        return base + f"""

CYCLING REQUIREMENTS:
- Exactly {rules.min_days} consecutive days
- Each day: {rules.min_day_km:g}-{rules.max_day_km:g} km cycling distance
- Point-to-point journey (day 1 start != day 2 end)
- Day 1 ends where day 2 starts
- Use real cycling paths and roads
- 2-4 waypoints per day
- Progressive route from city to city"""

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    @staticmethod
    def extract_json(text: str) -> str:
        """Strip code fences and slice from the first ``{`` to the last ``}``."""
        cleaned = _FENCE_END.sub("", _FENCE_START.sub("", text or ""))
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end == -1 or end <= start:
            raise ValueError("No valid JSON object found in response")
        return cleaned[start:end + 1]

    @classmethod
    def parse(cls, text: str, trip_type: str) -> TripProposal:
        """Parse and schema-validate a raw model answer.

        Raises:
            ValueError: On malformed JSON or any schema violation
        """
        try:
            payload = json.loads(cls.extract_json(text))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON format: {exc}") from exc

        if not isinstance(payload, dict):
            raise ValueError("Top-level JSON value must be an object")

        city = payload.get("city")
        if not isinstance(city, str) or "," not in city:
            raise ValueError('Invalid or missing city in format "City, Country"')

        if payload.get("tripType") != trip_type:
            raise ValueError(f"Invalid tripType: expected {trip_type}, got {payload.get('tripType')}")

        days = payload.get("estimatedDays")
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValueError(f"Invalid estimatedDays: {days!r}")

        routes = payload.get("routes")
        if not isinstance(routes, list) or len(routes) != days:
            raise ValueError(f"Routes array must have {days} elements")

        rules = rules_for(trip_type)
        if not rules.min_days <= days <= rules.max_days:
            if rules.min_days == rules.max_days:
                raise ValueError(f"{trip_type.capitalize()} must be exactly {rules.min_days} days")
            raise ValueError(f"{trip_type.capitalize()} must be {rules.min_days}-{rules.max_days} days")

        return TripProposal(
            city=city.strip(),
            trip_type=trip_type,
            estimated_days=days,
            routes=[cls._parse_route(route, index) for index, route in enumerate(routes)],
            highlights=_string_list(payload.get("highlights")),
            equipment=_string_list(payload.get("equipment")),
            tips=_string_list(payload.get("tips")),
        )

    @classmethod
    def _parse_route(cls, route: Any, index: int) -> RouteProposal:
        if not isinstance(route, dict):
            raise ValueError(f"Route {index + 1} must be an object")

        day = route.get("day")
        if isinstance(day, bool) or not isinstance(day, int) or day < 1:
            day = index + 1

        if not route.get("startPoint") or not route.get("endPoint"):
            raise ValueError(f"Route day {day} missing start/end point")

        waypoints = route.get("waypoints") or []
        if not isinstance(waypoints, list):
            raise ValueError(f"Route day {day} waypoints must be a list")
        if len(waypoints) > MAX_WAYPOINTS:
            logger.debug(f"Day {day}: dropping {len(waypoints) - MAX_WAYPOINTS} extra waypoints")
            waypoints = waypoints[:MAX_WAYPOINTS]

        description = route.get("description")
        return RouteProposal(
            day=day,
            start_point=cls._parse_point(route["startPoint"], f"Day {day} start"),
            end_point=cls._parse_point(route["endPoint"], f"Day {day} end"),
            waypoints=[cls._parse_point(w, f"Waypoint {i + 1}") for i, w in enumerate(waypoints)],
            description=description if isinstance(description, str) else "",
        )

    @staticmethod
    def _parse_point(raw: Any, default_name: str) -> Point:
        if not isinstance(raw, dict):
            raise ValueError(f"{default_name}: invalid point object")
        try:
            lat = float(raw.get("lat"))
            lng = float(raw.get("lng"))
        except (TypeError, ValueError):
            raise ValueError(f"{default_name}: non-numeric coordinates {raw.get('lat')!r}, {raw.get('lng')!r}")

        name = raw.get("name")
        point = Point(lat=lat, lng=lng, name=str(name).strip() if name else default_name)
        try:
            return PointValidator.check_bounds(point)
        except ValidationError as exc:
            raise ValueError(f"{default_name}: {exc.message}") from exc


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None]


def _is_unroutable_failure(error: Optional[BaseException]) -> bool:
    if error is None:
        return False
    if isinstance(error, RoutingUnreachable):
        return True
    message = error.message if isinstance(error, TripPlanningError) else str(error)
    message = message.lower()
    return "routable point" in message or "in water" in message


__all__ = ["RouteProposalGenerator", "MAX_ATTEMPTS"]
