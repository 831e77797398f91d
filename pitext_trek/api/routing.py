# pitext_trek/api/routing.py
"""Routing-service client.

Only the transport lives here: the response is handed back as the raw
GeoJSON FeatureCollection and normalised by the routing resolver.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Protocol, Sequence

import requests

from pitext_trek.api.config import RoutingConfig
from pitext_trek.api.errors import ExternalServiceError, RoutingFailed, RoutingUnreachable

logger = logging.getLogger(__name__)

# ORS "could not find routable point within a radius" error code
ORS_UNROUTABLE_POINT = 2010


class RoutingService(Protocol):
    def directions(self, coordinates: Sequence[Sequence[float]], profile: str,
                   radius_m: int | None = None) -> Dict[str, Any]:
        ...

    def is_routable(self, coordinate: Sequence[float], profile: str,
                    radius_m: int | None = None) -> bool:
        ...


class OpenRouteServiceClient:
    """``RoutingService`` backed by the OpenRouteService directions API."""

    def __init__(self, config: RoutingConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/json, application/geo+json",
            "Content-Type": "application/json",
            "Authorization": config.api_key,
        })

    def _url(self, profile: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{profile}/geojson"

    def directions(self, coordinates: Sequence[Sequence[float]], profile: str,
                   radius_m: int | None = None) -> Dict[str, Any]:
        """Request a path through ``coordinates`` (each ``[lng, lat]``).

        Raises:
            RoutingUnreachable: A coordinate is not within ``radius_m`` of the network
            RoutingFailed: Any other non-success answer
            ExternalServiceError: Transport failure or timeout
        """
        coords: List[List[float]] = [[float(c[0]), float(c[1])] for c in coordinates]
        radius = radius_m if radius_m is not None else self.config.search_radius_m
        body = {
            "coordinates": coords,
            "radiuses": [radius] * len(coords),
            "elevation": True,
            "instructions": True,
        }

        logger.debug(f"Fetching route for profile: {profile}, coordinates: {coords}")

        try:
            response = self.session.post(self._url(profile), json=body, timeout=self.config.timeout)
        except requests.RequestException as exc:
            logger.error(f"Routing service unavailable: {exc}")
            raise ExternalServiceError(f"Routing service unavailable: {exc}") from exc

        if not response.ok:
            self._raise_for_error(response)

        try:
            return response.json()
        except ValueError as exc:
            raise RoutingFailed(f"Routing service returned invalid JSON: {exc}") from exc

    @staticmethod
    def _raise_for_error(response: requests.Response) -> None:
        text = response.text
        try:
            body = response.json()
        except ValueError:
            raise RoutingFailed(f"ORS API error: {response.status_code} – {text}")
        if not isinstance(body, dict):
            raise RoutingFailed(f"ORS API error: {response.status_code} – {text}")

        error = body.get("error") or {}

        if not isinstance(error, dict):
            error = {"message": str(error)}

        if error.get("code") == ORS_UNROUTABLE_POINT:
            logger.warning(f"ORS could not find a routable point: {error.get('message')}")
            raise RoutingUnreachable(
                "Could not find routable point within routing radius. Coordinates may be in "
                f"water, buildings, or inaccessible terrain: {error.get('message', '')}"
            )

        raise RoutingFailed(f"ORS API error: {response.status_code} – {error.get('message') or text}")

    def is_routable(self, coordinate: Sequence[float], profile: str,
                    radius_m: int | None = None) -> bool:
        """Probe a single coordinate with a trivial same-point route.

        Snaps with the same radius as ``directions``.
        """
        radius = radius_m if radius_m is not None else self.config.search_radius_m
        point = [float(coordinate[0]), float(coordinate[1])]
        try:
            response = self.session.post(
                self._url(profile),
                json={"coordinates": [point, point], "radiuses": [radius, radius]},
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.debug(f"Routability probe failed for {coordinate}: {exc}")
            return False
        return response.ok


__all__ = ["RoutingService", "OpenRouteServiceClient", "ORS_UNROUTABLE_POINT"]
