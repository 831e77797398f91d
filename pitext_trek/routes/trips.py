# pitext_trek/routes/trips.py
"""Trip routes and blueprint configuration."""

import logging

from flask import Blueprint, jsonify, request

from pitext_trek.api.errors import TripPlanningError, ValidationError

logger = logging.getLogger(__name__)


def create_trips_blueprint(get_assembler):
    """Create and configure the trips blueprint.

    Args:
        get_assembler: Zero-argument callable returning the TripAssembler

    Returns:
        Configured Flask Blueprint
    """
    trips_bp = Blueprint("trek", __name__, url_prefix="/trek")

    @trips_bp.errorhandler(TripPlanningError)
    def handle_trip_error(error):
        logger.warning(f"{error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @trips_bp.route("/api/trips/generate", methods=["POST"])
    def api_generate_trip():
        """Generate a trip for a destination and trip type."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        trip = get_assembler().generate_trip(data.get("destination"), data.get("tripType"))
        return jsonify(trip.to_dict())

    @trips_bp.route("/health")
    def health():
        """Health check endpoint."""
        return jsonify({"status": "ok", "service": "trek"})

    return trips_bp


__all__ = ["create_trips_blueprint"]
