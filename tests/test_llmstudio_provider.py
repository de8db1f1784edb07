import json
from unittest.mock import patch

import httpx
import pytest

from paintmix.ai.errors import ConfigurationError, GenerationError, TransportError
from paintmix.ai.provider import PaletteEntry, ProviderConfig, ProviderKind
from paintmix.ai.providers.llmstudio import (
    GENERATION_TIMEOUT_S,
    HEALTH_CHECK_TIMEOUT_S,
    LLMStudioProvider,
)

PALETTE = [
    PaletteEntry(id="abc-123", brand="Vallejo", name="German Grey", color="#4A4A4A"),
    PaletteEntry(id="def-456", brand="Vallejo", name="White", color="#FFFFFF", reference="70.951"),
]

RECIPE = {
    "targetBrand": "Vallejo",
    "targetName": "Grey",
    "confidence": 0.7,
    "explanation": "Lighten the grey",
    "components": [{"paintId": "abc-123", "drops": 3}, {"paintId": "def-456", "drops": 1}],
}

URL = "http://localhost:1234/v1/chat/completions"


def local_config(**overrides):
    values = {"provider": ProviderKind.LLMSTUDIO, "url": "http://localhost:1234/"}
    values.update(overrides)
    return ProviderConfig(**values)


def chat_response(content: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"choices": [{"message": {"role": "assistant", "content": content}}]},
        request=httpx.Request("POST", URL),
    )


def test_requires_url():
    with pytest.raises(ConfigurationError, match="LLMStudio URL is required"):
        LLMStudioProvider(local_config(url=None))


def test_strips_trailing_slash_and_defaults_key():
    provider = LLMStudioProvider(local_config())
    assert provider.base_url == "http://localhost:1234"
    assert provider.api_key == "not-needed"
    assert provider.is_valid()
    assert provider.info().base_url == "http://localhost:1234"


def test_prompt_leads_with_quoted_id():
    provider = LLMStudioProvider(local_config())
    prompt = provider.build_prompt("Vallejo", "Grey", PALETTE)
    assert '- ID: "abc-123" | Vallejo German Grey (#4A4A4A)' in prompt
    assert '- ID: "def-456" | Vallejo White (#FFFFFF) [Ref: 70.951]' in prompt
    assert "Use 2-4 paints maximum" in prompt
    assert "use the paint's ID exactly as shown" in prompt


def test_generate_mix_posts_chat_completion():
    provider = LLMStudioProvider(local_config(api_key="sk-local", model="qwen2.5-7b"))
    with patch("paintmix.ai.providers.llmstudio.httpx.post", return_value=chat_response(json.dumps(RECIPE))) as mock_post:
        recipe = provider.generate_mix("Vallejo", "Grey", PALETTE)

    args, kwargs = mock_post.call_args
    assert args[0] == URL
    body = kwargs["json"]
    assert body["model"] == "qwen2.5-7b"
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert body["max_tokens"] == 2048
    assert kwargs["headers"]["Authorization"] == "Bearer sk-local"
    assert kwargs["timeout"] == GENERATION_TIMEOUT_S

    assert recipe["components"][0]["paintId"] == "abc-123"
    assert recipe["aiMetadata"]["provider"] == "llmstudio"
    assert recipe["aiMetadata"]["baseUrl"] == "http://localhost:1234"


def test_http_error_is_wrapped():
    provider = LLMStudioProvider(local_config())
    error_response = httpx.Response(500, text="model not loaded", request=httpx.Request("POST", URL))
    with patch("paintmix.ai.providers.llmstudio.httpx.post", return_value=error_response):
        with pytest.raises(GenerationError) as exc:
            provider.generate_mix("Vallejo", "Grey", PALETTE)

    cause = exc.value.__cause__
    assert isinstance(cause, TransportError)
    assert cause.status_code == 500
    assert "LLMStudio API error: 500" in str(exc.value)


def test_connection_refused_is_wrapped():
    provider = LLMStudioProvider(local_config())
    with patch("paintmix.ai.providers.llmstudio.httpx.post", side_effect=httpx.ConnectError("refused")):
        with pytest.raises(GenerationError, match="LLMStudio request failed: refused"):
            provider.generate_mix("Vallejo", "Grey", PALETTE)


def test_unexpected_body_is_transport_error():
    provider = LLMStudioProvider(local_config())
    odd = httpx.Response(200, json={"result": "OK"}, request=httpx.Request("POST", URL))
    with patch("paintmix.ai.providers.llmstudio.httpx.post", return_value=odd):
        with pytest.raises(TransportError, match="unexpected response"):
            provider.complete("hi")


def test_connection_ok_uses_short_timeout():
    provider = LLMStudioProvider(local_config())
    with patch("paintmix.ai.providers.llmstudio.httpx.post", return_value=chat_response("OK")) as mock_post:
        status = provider.test_connection()

    assert mock_post.call_args.kwargs["timeout"] == HEALTH_CHECK_TIMEOUT_S
    assert mock_post.call_args.kwargs["json"]["max_tokens"] == 5
    assert status["connected"] is True
    assert status["baseUrl"] == "http://localhost:1234"
    assert status["apiKeyPreview"] == "not-required"


def test_connection_error_reports_status():
    provider = LLMStudioProvider(local_config())
    with patch("paintmix.ai.providers.llmstudio.httpx.post", side_effect=httpx.ConnectTimeout("timed out")):
        status = provider.test_connection()

    assert status["connected"] is False
    assert status["status"] == "error"
    assert "timed out" in status["error"]


def test_non_string_content_is_transport_error():
    provider = LLMStudioProvider(local_config())
    odd = httpx.Response(
        200,
        json={"choices": [{"message": {"content": {"a": 1}}}]},
        request=httpx.Request("POST", URL),
    )
    with patch("paintmix.ai.providers.llmstudio.httpx.post", return_value=odd):
        with pytest.raises(TransportError, match="unexpected response"):
            provider.complete("hi")
        with pytest.raises(GenerationError, match="unexpected response"):
            provider.generate_mix("Vallejo", "Grey", PALETTE)

        status = provider.test_connection()

    assert status["connected"] is False
    assert "unexpected response" in status["error"]
