# pitext_trek/api/errors.py
"""Typed failures raised by the trip generation pipeline.

Every error carries a stable machine-readable ``code`` and the HTTP status
the blueprint answers with, so callers never have to inspect messages.
"""

from __future__ import annotations

from typing import Any, Dict


class TripPlanningError(Exception):
    """Base class for all pipeline failures."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message}}


class ValidationError(TripPlanningError):
    """Malformed caller input or a coordinate outside numeric bounds."""

    code = "VALIDATION_ERROR"
    status_code = 400


class GenerationFailed(TripPlanningError):
    """The text-generation service never produced a valid route proposal."""

    code = "TRIP_GENERATION_FAILED"
    status_code = 502


class RoutingUnreachable(TripPlanningError):
    """A coordinate cannot be anchored to the routing network."""

    code = "ROUTE_UNREACHABLE"
    status_code = 422


class RoutingFailed(TripPlanningError):
    """The routing service rejected a request for a non-reachability reason."""

    code = "ROUTING_FAILED"
    status_code = 502


class ConstraintViolation(TripPlanningError):
    """The resolved trip cannot satisfy its trip-type invariants."""

    code = "CONSTRAINT_VIOLATION"
    status_code = 422


class ExternalServiceError(TripPlanningError):
    """A downstream dependency is unavailable or answered unexpectedly."""

    code = "EXTERNAL_SERVICE_ERROR"
    status_code = 503


class AssemblyFailed(TripPlanningError):
    """The assembled trip is structurally incomplete."""

    code = "TRIP_ASSEMBLY_FAILED"
    status_code = 500


__all__ = [
    "TripPlanningError",
    "ValidationError",
    "GenerationFailed",
    "RoutingUnreachable",
    "RoutingFailed",
    "ConstraintViolation",
    "ExternalServiceError",
    "AssemblyFailed",
]
