from unittest.mock import patch

import pytest

from paintmix.ai.errors import ConfigurationError
from paintmix.ai.factory import ProviderCache, build_provider
from paintmix.ai.providers import GeminiProvider, LLMStudioProvider


@pytest.fixture(autouse=True)
def fake_genai():
    with patch("paintmix.ai.providers.gemini.genai.Client") as MockClient:
        yield MockClient


def test_defaults_to_gemini(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "test-key")
    provider = build_provider()
    assert isinstance(provider, GeminiProvider)


def test_env_selects_provider(monkeypatch):
    monkeypatch.setenv("AI_PROVIDER", "llmstudio")
    monkeypatch.setenv("AI_URL", "http://localhost:1234")
    provider = build_provider()
    assert isinstance(provider, LLMStudioProvider)
    assert provider.api_key == "not-needed"


def test_override_beats_env(monkeypatch):
    monkeypatch.setenv("AI_PROVIDER", "gemini")
    monkeypatch.setenv("AI_URL", "http://localhost:1234")
    provider = build_provider("llmstudio")
    assert isinstance(provider, LLMStudioProvider)


def test_config_is_passed_through(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "test-api-key")
    monkeypatch.setenv("AI_URL", "http://custom-api.com")
    monkeypatch.setenv("AI_MODEL", 'model="custom-model"')
    provider = build_provider()
    assert provider.config.api_key == "test-api-key"
    assert provider.config.url == "http://custom-api.com"
    assert provider.model_name == "custom-model"


def test_missing_key_is_configuration_error():
    with pytest.raises(ConfigurationError, match="AI_API_KEY is required"):
        build_provider("gemini")


def test_local_provider_needs_url_not_key():
    with pytest.raises(ConfigurationError, match="LLMStudio URL is required"):
        build_provider("llmstudio")


def test_unknown_provider_is_named(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "test-key")
    monkeypatch.setenv("AI_PROVIDER", "unknown-provider")
    with pytest.raises(ConfigurationError, match="Unknown AI provider: unknown-provider"):
        build_provider()


def test_openai_is_reserved(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "test-key")
    with pytest.raises(ConfigurationError, match="not yet implemented"):
        build_provider("openai")


def test_cache_returns_same_instance_until_reset(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "test-key")
    cache = ProviderCache()

    first = cache.create()
    assert cache.create() is first

    cache.reset()
    assert cache.cached is None
    second = cache.create()
    assert second is not first


def test_reset_picks_up_new_configuration(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "test-key")
    cache = ProviderCache()
    assert isinstance(cache.create(), GeminiProvider)

    monkeypatch.setenv("AI_PROVIDER", "llmstudio")
    monkeypatch.setenv("AI_URL", "http://localhost:1234")
    assert isinstance(cache.create(), GeminiProvider)

    cache.reset()
    assert isinstance(cache.create(), LLMStudioProvider)


def test_failed_construction_is_not_cached(monkeypatch):
    cache = ProviderCache()
    with pytest.raises(ConfigurationError):
        cache.create()
    assert cache.cached is None

    monkeypatch.setenv("AI_API_KEY", "test-key")
    assert isinstance(cache.create(), GeminiProvider)


def test_invalid_cached_instance_is_rebuilt(monkeypatch):
    monkeypatch.setenv("AI_API_KEY", "test-key")
    cache = ProviderCache()
    first = cache.create()
    first.client = None

    second = cache.create()
    assert second is not first
    assert second.is_valid()
