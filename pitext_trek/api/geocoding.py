# pitext_trek/api/geocoding.py
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, List, Protocol, Tuple

import googlemaps
import requests

from pitext_trek.api.config import GeocodingConfig, RoutingConfig
from pitext_trek.api.errors import ExternalServiceError

logger = logging.getLogger(__name__)

# Results at or above this confidence win over the provider's first hit
MIN_CONFIDENCE = 0.8


class Geocoder(Protocol):
    def search(self, text: str) -> Tuple[float, float]:
        """Resolve free text to the best-confidence ``(lat, lng)``."""
        ...


class OpenRouteServiceGeocoder:
    """Pelias-based geocoding through the OpenRouteService API."""

    def __init__(self, config: RoutingConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()

    def search(self, text: str) -> Tuple[float, float]:
        logger.debug(f"Geocoding place: {text}")
        try:
            response = self.session.get(
                self.config.geocode_url,
                params={"api_key": self.config.api_key, "text": text, "size": 5},
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            logger.error(f"Geocoding error for '{text}': {exc}")
            raise ExternalServiceError(f"Geocoding service unavailable: {exc}") from exc

        if not response.ok:
            logger.error(f"Geocoding error for '{text}': {response.status_code} – {response.text}")
            raise ExternalServiceError(f"Geocoding error: {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            logger.error(f"Geocoding returned invalid JSON for '{text}': {exc}")
            raise ExternalServiceError(f"Geocoding service returned invalid JSON: {exc}") from exc

        features: List[Dict[str, Any]] = (body.get("features") if isinstance(body, dict) else None) or []
        if not features:
            logger.warning(f"No results found for place: {text}")
            raise ExternalServiceError(f"No geocoding results found for: {text}")

        best = next(
            (f for f in features if (f.get("properties") or {}).get("confidence", 0) >= MIN_CONFIDENCE),
            features[0],
        )
        try:
            lng, lat = best["geometry"]["coordinates"][:2]
            lat, lng = float(lat), float(lng)
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalServiceError(f"Malformed geocoding result for: {text}") from exc
        logger.debug(f"Geocoded {text} to {lat}, {lng}")
        return lat, lng


class GoogleMapsGeocoder:
    """Geocoding through the Google Maps client, LRU cached per query."""

    def __init__(self, config: GeocodingConfig, client: googlemaps.Client | None = None):
        if client is None:
            if not config.google_api_key:
                raise ValueError("GOOGLE_MAPS_API_KEY not set")
            logger.info(f"Initializing Google Maps client with key: {config.google_api_key[:10]}...")
            client = googlemaps.Client(key=config.google_api_key)
        self._client = client
        self._lookup = lru_cache(maxsize=1000)(self._geocode)

    def _geocode(self, text: str) -> Tuple[float, float]:
        try:
            results = self._client.geocode(text, language="en")
        except (googlemaps.exceptions.ApiError, googlemaps.exceptions.TransportError,
                googlemaps.exceptions.Timeout) as exc:
            logger.error(f"Geocoding error for '{text}': {exc}")
            raise ExternalServiceError(f"Geocoding service unavailable: {exc}") from exc

        if not results:
            logger.warning(f"No results found for place: {text}")
            raise ExternalServiceError(f"No geocoding results found for: {text}")

        loc = results[0]["geometry"]["location"]
        logger.debug(f"Geocoded {text} to {loc['lat']}, {loc['lng']}")
        return loc["lat"], loc["lng"]

    def search(self, text: str) -> Tuple[float, float]:
        return self._lookup(text)


def create_geocoder(geocoding: GeocodingConfig, routing: RoutingConfig) -> Geocoder:
    if geocoding.provider == "google":
        return GoogleMapsGeocoder(geocoding)
    return OpenRouteServiceGeocoder(routing)


__all__ = [
    "Geocoder",
    "OpenRouteServiceGeocoder",
    "GoogleMapsGeocoder",
    "create_geocoder",
]
