# api/config.py
"""Configuration management for the trek planner API."""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class LLMConfig:
    """Settings for the text-generation provider."""

    api_key: str
    model: str = "gpt-4.1"
    base_url: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 4000
    timeout: float = 30.0


@dataclass(frozen=True)
class RoutingConfig:
    """Settings for the OpenRouteService directions and geocoding APIs."""

    api_key: str
    base_url: str = "https://api.openrouteservice.org/v2/directions"
    geocode_url: str = "https://api.openrouteservice.org/geocode/search"
    search_radius_m: int = 5000
    timeout: float = 30.0


@dataclass(frozen=True)
class GeocodingConfig:
    provider: str = "ors"
    google_api_key: str = ""


def get_llm_api_key():
    """Get the text-generation API key from environment."""
    api_key = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ValueError("LLM_API_KEY (or OPENAI_API_KEY) not set")
    return api_key


def get_ors_api_key():
    """Get OpenRouteService API key from environment."""
    api_key = os.getenv("ORS_API_KEY")
    if not api_key:
        raise ValueError("ORS_API_KEY not set")
    return api_key


def get_llm_config() -> LLMConfig:
    """Get text-generation configuration."""
    return LLMConfig(
        api_key=get_llm_api_key(),
        model=os.getenv("LLM_MODEL", "gpt-4.1"),
        base_url=os.getenv("LLM_BASE_URL") or None,
        temperature=float(os.getenv("LLM_TEMPERATURE", "0.2")),
        max_tokens=int(os.getenv("LLM_MAX_TOKENS", "4000")),
        timeout=float(os.getenv("LLM_TIMEOUT_SECONDS", "30")),
    )


def get_routing_config() -> RoutingConfig:
    """Get OpenRouteService configuration."""
    return RoutingConfig(
        api_key=get_ors_api_key(),
        base_url=os.getenv("ORS_BASE_URL", "https://api.openrouteservice.org/v2/directions"),
        geocode_url=os.getenv("ORS_GEOCODE_URL", "https://api.openrouteservice.org/geocode/search"),
        search_radius_m=int(os.getenv("ORS_SEARCH_RADIUS_M", "5000")),
        timeout=float(os.getenv("ORS_TIMEOUT_SECONDS", "30")),
    )


def get_geocoding_config() -> GeocodingConfig:
    """Get geocoder selection; ``ors`` or ``google``."""
    provider = os.getenv("GEOCODER_PROVIDER", "ors").strip().lower()
    if provider not in ("ors", "google"):
        raise ValueError(f"Invalid GEOCODER_PROVIDER '{provider}'. Must be 'ors' or 'google'")
    return GeocodingConfig(
        provider=provider,
        google_api_key=os.getenv("GOOGLE_MAPS_API_KEY", ""),
    )


def get_port():
    """Get port configuration."""
    return int(os.getenv("PORT", 3000))
