# pitext_trek/routes/__init__.py
from pitext_trek.routes.trips import create_trips_blueprint

__all__ = ["create_trips_blueprint"]
