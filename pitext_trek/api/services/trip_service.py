# pitext_trek/api/services/trip_service.py
"""Service layer for trip generation."""

import logging
from typing import List, Optional

from pitext_trek.api.config import get_geocoding_config, get_llm_config, get_routing_config
from pitext_trek.api.errors import AssemblyFailed, RoutingFailed, RoutingUnreachable, ValidationError
from pitext_trek.api.geocoding import create_geocoder
from pitext_trek.api.llm import OpenAITextGenerator
from pitext_trek.api.models import (
    TRIP_TYPES,
    ResolvedRoute,
    RouteProposal,
    Trip,
    TripProposal,
    TripRules,
    rules_for,
)
from pitext_trek.api.routing import OpenRouteServiceClient
from pitext_trek.api.services.constraint_service import ConstraintEnforcer
from pitext_trek.api.services.coordinate_service import CoordinateResolver
from pitext_trek.api.services.proposal_service import RouteProposalGenerator
from pitext_trek.api.services.routing_service import RoutingResolver

logger = logging.getLogger(__name__)

MIN_DESTINATION_LENGTH = 2
MAX_DESTINATION_LENGTH = 100


class TripAssembler:
    """Runs the whole pipeline for one destination and trip type."""

    def __init__(self, proposals: RouteProposalGenerator, resolver: RoutingResolver,
                 coordinates: CoordinateResolver, enforcer: ConstraintEnforcer):
        self.proposals = proposals
        self.resolver = resolver
        self.coordinates = coordinates
        self.enforcer = enforcer

    @staticmethod
    def validate_request(destination: Optional[str], trip_type: Optional[str]) -> tuple:
        """Normalise and validate caller input.

        Args:
            destination: Free-text destination
            trip_type: ``trek`` or ``cycling`` in any case

        Returns:
            (destination, trip_type) trimmed and lowercased

        Raises:
            ValidationError: If either parameter is unusable
        """
        if not destination or not isinstance(destination, str) or not destination.strip():
            raise ValidationError("Destination is required")
        destination = destination.strip()
        if not MIN_DESTINATION_LENGTH <= len(destination) <= MAX_DESTINATION_LENGTH:
            raise ValidationError(
                f"Destination must be between {MIN_DESTINATION_LENGTH} and {MAX_DESTINATION_LENGTH} characters"
            )

        if not trip_type or not isinstance(trip_type, str):
            raise ValidationError("Trip type is required")
        trip_type = trip_type.strip().lower()
        if trip_type not in TRIP_TYPES:
            raise ValidationError('Trip type must be either "trek" or "cycling"')

        return destination, trip_type

    def generate_trip(self, destination: str, trip_type: str) -> Trip:
        """Generate a complete, validated trip.

        Raises:
            ValidationError: Invalid input
            GenerationFailed: The text model never produced a usable plan
            RoutingFailed: A day could not be routed, even after repair and a re-plan
            ConstraintViolation: The trip cannot satisfy its invariants
            ExternalServiceError: A provider is unavailable
            AssemblyFailed: The final trip is structurally incomplete
        """
        destination, trip_type = self.validate_request(destination, trip_type)
        rules = rules_for(trip_type)

        logger.info(f"Generating {trip_type} trip for {destination}")
        proposal = self.proposals.generate(destination, trip_type)
        try:
            routes = self.resolve_days(proposal, rules)
        except RoutingFailed as exc:
            # one fresh plan from the unused call budget, steered onto the path network
            remaining = self.proposals.max_attempts - proposal.attempts
            if not isinstance(exc.__cause__, RoutingUnreachable) or remaining < 1:
                raise
            logger.warning(f"Re-planning {destination} ({remaining} calls left): {exc.message}")
            proposal = self.proposals.generate(destination, trip_type, previous_error=exc.__cause__,
                                               max_attempts=remaining)
            routes = self.resolve_days(proposal, rules)

        routes = self.enforcer.enforce(routes, trip_type, proposal.city)

        total_distance = round(sum(r.distance_km for r in routes), 2)
        total_duration = sum(r.duration_min for r in routes)

        trip = Trip(
            destination=destination,
            city=proposal.city,
            trip_type=trip_type,
            total_distance_km=total_distance,
            total_duration_min=total_duration,
            estimated_days=proposal.estimated_days,
            routes=routes,
            highlights=proposal.highlights,
            equipment=proposal.equipment,
            tips=proposal.tips,
            difficulty=self.calculate_difficulty(total_distance, proposal.estimated_days, rules),
        )

        self.validate_trip(trip)
        self.enforcer.validate(trip_type, trip.routes)

        logger.info(
            f"Generated {trip.estimated_days}-day {trip_type} trip in {trip.city}: "
            f"{trip.total_distance_km} km, {trip.difficulty}"
        )
        return trip

    def resolve_days(self, proposal: TripProposal, rules: TripRules) -> List[ResolvedRoute]:
        return [self.resolve_day(day, rules, proposal.city) for day in proposal.routes]

    def resolve_day(self, day: RouteProposal, rules: TripRules, city_name: str) -> ResolvedRoute:
        """Route one day, repairing unreachable coordinates once."""
        try:
            leg = self.resolver.route(day.points, rules.profile, city_name)
            return ResolvedRoute.from_proposal(day, leg)
        except RoutingUnreachable as exc:
            logger.warning(f"Day {day.day}: {exc.message}; searching for routable coordinates")

        fixed = self.coordinates.resolve_all(day.points, city_name, rules.profile)
        repaired = RouteProposal(
            day=day.day,
            start_point=fixed[0],
            end_point=fixed[-1],
            waypoints=fixed[1:-1],
            description=day.description,
        )
        try:
            leg = self.resolver.route(repaired.points, rules.profile, city_name)
        except (RoutingUnreachable, RoutingFailed) as exc:
            logger.error(f"Day {day.day}: routing failed after coordinate repair: {exc}")
            raise RoutingFailed(f"Day {day.day}: routing failed after coordinate repair: {exc}") from exc
        return ResolvedRoute.from_proposal(repaired, leg)

    @staticmethod
    def calculate_difficulty(total_distance: float, days: int, rules: TripRules) -> str:
        average = total_distance / days if days else 0
        if average <= rules.easy_max_km:
            return "easy"
        if average <= rules.moderate_max_km:
            return "moderate"
        return "hard"

    @staticmethod
    def validate_trip(trip: Trip) -> None:
        """Structural check; gaps are fatal, never repaired."""
        if not trip.routes:
            raise AssemblyFailed("Invalid trip: missing routes")
        if len(trip.routes) != trip.estimated_days:
            raise AssemblyFailed(f"Expected {trip.estimated_days} routes, got {len(trip.routes)}")

        for route in trip.routes:
            if not route.leg.geometry or not route.leg.geometry.get("coordinates") or not route.leg.coordinates:
                raise AssemblyFailed(f"Day {route.day}: Missing geometry data")
            if route.start_point is None or route.end_point is None:
                raise AssemblyFailed(f"Day {route.day}: Missing start/end points")


def build_trip_assembler() -> TripAssembler:
    """Wire the default providers from environment configuration."""
    llm_config = get_llm_config()
    routing_config = get_routing_config()

    routing = OpenRouteServiceClient(routing_config)
    geocoder = create_geocoder(get_geocoding_config(), routing_config)
    resolver = RoutingResolver(routing, routing_config.search_radius_m)

    return TripAssembler(
        proposals=RouteProposalGenerator(
            OpenAITextGenerator(llm_config),
            temperature=llm_config.temperature,
            max_tokens=llm_config.max_tokens,
        ),
        resolver=resolver,
        coordinates=CoordinateResolver(routing, geocoder),
        enforcer=ConstraintEnforcer(resolver),
    )


__all__ = ["TripAssembler", "build_trip_assembler"]
