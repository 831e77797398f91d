# pitext_trek/api/services/constraint_service.py
"""Repairs and validates resolved day routes against trip-type invariants.

Trek trips are repaired: over-long days are shortened, consecutive days are
stitched together and the overall loop is closed with one extra routing call.
Cycling trips have no repair path and are only validated.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from pitext_trek.api.errors import ConstraintViolation, ValidationError
from pitext_trek.api.models import TREK, Point, ResolvedRoute, TripRules, rules_for
from pitext_trek.api.points import PointValidator
from pitext_trek.api.services.routing_service import RoutingResolver

logger = logging.getLogger(__name__)


class ConstraintEnforcer:
    """Post-processes resolved routes so the trip satisfies its rules."""

    def __init__(self, resolver: RoutingResolver):
        self.resolver = resolver

    def enforce(self, routes: List[ResolvedRoute], trip_type: str,
                city_name: str = "") -> List[ResolvedRoute]:
        """Return a repaired copy of ``routes``.

        Raises:
            ConstraintViolation: When the trip cannot be repaired
        """
        rules = _rules(trip_type)
        if not routes:
            raise ConstraintViolation("Trip has no routes")

        if trip_type == TREK:
            return self._enforce_trek(list(routes), rules, city_name)

        self._check_cycling(routes, rules)
        return list(routes)

    # ------------------------------------------------------------------
    # Trek repair
    # ------------------------------------------------------------------

    def _enforce_trek(self, routes: List[ResolvedRoute], rules: TripRules,
                      city_name: str) -> List[ResolvedRoute]:
        for i, route in enumerate(routes):
            if route.distance_km <= rules.max_day_km:
                continue
            # Not the last day: aim for where tomorrow begins
            end_point = routes[i + 1].start_point if i < len(routes) - 1 else route.end_point
            logger.info(f"Day {route.day}: {route.distance_km} km exceeds {rules.max_day_km:g} km, shortening")
            routes[i] = self.shorten(route, end_point, rules, city_name)

        for i in range(len(routes) - 1):
            current_end = routes[i].end_point
            if not PointValidator.same_point(current_end, routes[i + 1].start_point):
                logger.debug(f"Day {routes[i + 1].day}: start moved to previous day's end '{current_end.name}'")
                routes[i + 1] = replace(routes[i + 1], start_point=current_end)

        first_start = routes[0].start_point
        last = routes[-1]
        if not PointValidator.same_point(first_start, last.end_point):
            logger.info(f"Closing the loop: rerouting day {last.day} back to '{first_start.name}'")
            leg = self.resolver.route([last.start_point, *last.waypoints, first_start], rules.profile, city_name)
            closed = replace(last, end_point=first_start, leg=leg)
            if closed.distance_km > rules.max_day_km:
                closed = self.shorten(closed, first_start, rules, city_name)
            routes[-1] = closed

        return routes

    def shorten(self, route: ResolvedRoute, end_point: Point, rules: TripRules,
                city_name: str = "") -> ResolvedRoute:
        """Trim waypoints, then fall back to a direct start-to-end route."""
        waypoints = route.waypoints
        reduced = waypoints[:2] if len(waypoints) > 2 else waypoints[:1]

        shortened: Optional[ResolvedRoute] = None
        changed = len(reduced) != len(waypoints) or not PointValidator.same_point(end_point, route.end_point)
        if reduced and changed:
            leg = self.resolver.route([route.start_point, *reduced, end_point], rules.profile, city_name)
            shortened = replace(route, waypoints=list(reduced), end_point=end_point, leg=leg)
            logger.debug(f"Day {route.day}: {len(reduced)} waypoint(s) kept, now {leg.distance_km} km")

        if shortened is None or shortened.distance_km > rules.max_day_km:
            leg = self.resolver.route([route.start_point, end_point], rules.profile, city_name)
            shortened = replace(route, waypoints=[], end_point=end_point, leg=leg)
            logger.debug(f"Day {route.day}: direct route is {leg.distance_km} km")

        return shortened

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _check_cycling(routes: List[ResolvedRoute], rules: TripRules) -> None:
        if len(routes) != rules.min_days:
            raise ConstraintViolation(f"Cycling trip must have exactly {rules.min_days} days, got {len(routes)}")

        for route in routes:
            if not rules.min_day_km <= route.distance_km <= rules.max_day_km:
                raise ConstraintViolation(
                    f"Day {route.day}: Distance {route.distance_km}km is outside "
                    f"{rules.min_day_km:g}-{rules.max_day_km:g}km range"
                )

        if not PointValidator.same_point(routes[0].end_point, routes[1].start_point):
            raise ConstraintViolation("Cycling days must be continuous: Day 1 end must equal Day 2 start")

        if PointValidator.same_point(routes[0].start_point, routes[-1].end_point):
            raise ConstraintViolation("Cycling trip must be point-to-point (day 1 start must not equal day 2 end)")

    def validate(self, trip_type: str, routes: List[ResolvedRoute]) -> None:
        """Final invariant check on a repaired trip.

        Raises:
            ConstraintViolation: On the first broken invariant
        """
        rules = _rules(trip_type)

        if not rules.min_days <= len(routes) <= rules.max_days:
            raise ConstraintViolation(
                f"{trip_type.capitalize()} must be {rules.min_days}-{rules.max_days} days, got {len(routes)}"
            )

        for route in routes:
            for point in route.points:
                if not PointValidator.is_valid(point):
                    raise ConstraintViolation(
                        f"Day {route.day}: point '{point.name}' [{point.lat}, {point.lng}] is not a valid land coordinate"
                    )

        if not rules.loop:
            self._check_cycling(routes, rules)
            return

        for route in routes:
            if route.distance_km < rules.min_day_km:
                raise ConstraintViolation(
                    f"Day {route.day}: Distance {route.distance_km}km is too short (minimum {rules.min_day_km:g}km)"
                )
            if route.distance_km > rules.max_day_km:
                raise ConstraintViolation(
                    f"Day {route.day}: Distance {route.distance_km}km is too long (maximum {rules.max_day_km:g}km)"
                )

        for i in range(len(routes) - 1):
            if not PointValidator.same_point(routes[i].end_point, routes[i + 1].start_point):
                raise ConstraintViolation(f"Day {routes[i].day} end does not match day {routes[i + 1].day} start")

        if not PointValidator.same_point(routes[0].start_point, routes[-1].end_point):
            raise ConstraintViolation("Trek must end where it started")


def _rules(trip_type: str) -> TripRules:
    rules = rules_for(trip_type)
    if rules is None:
        raise ValidationError(f"Unknown trip type: {trip_type}")
    return rules


__all__ = ["ConstraintEnforcer"]
