"""
PiText-Trek – main application entry point

* Flask app exposing the trip generation pipeline under `/trek`.
* Providers (text model, routing, geocoding) are wired from the environment
  on first use, so the app starts even before API keys are configured.
"""

import logging

from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv

from pitext_trek.api.config import get_port
from pitext_trek.api.errors import ExternalServiceError
from pitext_trek.api.services.trip_service import build_trip_assembler
from pitext_trek.routes import create_trips_blueprint

# --------------------------------------------------------------------------- #
# Environment & logging
# --------------------------------------------------------------------------- #
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Flask initialisation
# --------------------------------------------------------------------------- #
def create_app(assembler=None):
    """Build the Flask app.

    Args:
        assembler: Optional TripAssembler; built from env config when omitted
    """
    app = Flask(__name__)

    # CORS for local dev / cross‑origin front‑end requests
    CORS(app, origins="*")

    state = {"assembler": assembler}

    def get_assembler():
        if state["assembler"] is None:
            try:
                state["assembler"] = build_trip_assembler()
            except ValueError as exc:
                logger.error(f"Trip planner is not configured: {exc}")
                raise ExternalServiceError(f"Trip planner is not configured: {exc}") from exc
            logger.info("Trip assembler initialised from environment")
        return state["assembler"]

    app.register_blueprint(create_trips_blueprint(get_assembler))

    @app.route("/debug")
    def debug():
        """Simple JSON health endpoint."""
        return {
            "status": "ok",
            "assembler_initialized": state["assembler"] is not None,
            "endpoints": {
                "generate": "/trek/api/trips/generate",
                "health": "/trek/health",
            },
        }

    return app


app = create_app()

# --------------------------------------------------------------------------- #
# Local development runner ( `python main.py` )
# --------------------------------------------------------------------------- #
if __name__ == "__main__":
    port = get_port()
    logger.info("Starting trek app on http://localhost:%d", port)
    app.run(host="0.0.0.0", port=port, debug=False)

__all__ = ["app", "create_app"]
