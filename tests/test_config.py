import pytest

from pitext_trek.api.config import (
    get_geocoding_config,
    get_llm_config,
    get_port,
    get_routing_config,
)


def test_llm_defaults(monkeypatch):
    monkeypatch.delenv("LLM_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    for name in ("LLM_MODEL", "LLM_BASE_URL", "LLM_TEMPERATURE", "LLM_MAX_TOKENS", "LLM_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    config = get_llm_config()

    assert config.api_key == "sk-test"
    assert config.model == "gpt-4.1"
    assert config.base_url is None
    assert config.temperature == 0.2
    assert config.max_tokens == 4000


def test_missing_keys_raise(monkeypatch):
    for name in ("LLM_API_KEY", "OPENAI_API_KEY", "ORS_API_KEY"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(ValueError, match="LLM_API_KEY"):
        get_llm_config()
    with pytest.raises(ValueError, match="ORS_API_KEY"):
        get_routing_config()


def test_routing_overrides(monkeypatch):
    monkeypatch.setenv("ORS_API_KEY", "ors-key")
    monkeypatch.setenv("ORS_SEARCH_RADIUS_M", "350")

    config = get_routing_config()

    assert config.api_key == "ors-key"
    assert config.search_radius_m == 350


def test_geocoder_provider(monkeypatch):
    monkeypatch.setenv("GEOCODER_PROVIDER", " Google ")
    assert get_geocoding_config().provider == "google"

    monkeypatch.setenv("GEOCODER_PROVIDER", "nominatim")
    with pytest.raises(ValueError, match="GEOCODER_PROVIDER"):
        get_geocoding_config()


def test_port(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    assert get_port() == 3000
    monkeypatch.setenv("PORT", "8080")
    assert get_port() == 8080
