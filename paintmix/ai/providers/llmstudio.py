import json
import logging
import time

import httpx

from ..errors import ConfigurationError, TransportError
from ..provider import (
    CONNECTION_TEST_PROMPT,
    AIProvider,
    PaletteEntry,
    ProviderConfig,
    ProviderInfo,
    ProviderKind,
    format_color,
    format_reference,
)
from ..utils import api_key_preview

logger = logging.getLogger("paintmix.ai")

NO_API_KEY = "not-needed"

# Local inference is slow; health checks should fail fast.
GENERATION_TIMEOUT_S = 120.0
HEALTH_CHECK_TIMEOUT_S = 30.0

SYSTEM_PROMPT = (
    "You are a paint mixing expert for model painting and miniatures. "
    "Respond ONLY with valid JSON."
)


class LLMStudioProvider(AIProvider):
    """Local provider speaking the OpenAI-compatible chat completions API."""

    kind = ProviderKind.LLMSTUDIO
    default_model = "deepseek-coder-v2-lite-16b"

    max_tokens = 2048
    temperature = 0.7

    def __init__(self, config: ProviderConfig):
        super().__init__(config)

        if not config.url:
            raise ConfigurationError("LLMStudio URL is required (e.g., http://localhost:1234)")

        self.base_url = config.url.rstrip("/")
        self.api_key = config.api_key or NO_API_KEY

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/v1/chat/completions"

    def is_valid(self) -> bool:
        return bool(self.base_url)

    def info(self) -> ProviderInfo:
        return ProviderInfo(kind=self.kind, model=self.model_name, base_url=self.base_url)

    def _post(self, body: dict, timeout: float) -> str:
        try:
            response = httpx.post(
                self.completions_url,
                json=body,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"LLMStudio API error: {e.response.status_code} - {e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"LLMStudio request failed: {e}") from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TransportError(
                f"LLMStudio returned an unexpected response: {response.text[:200]}"
            ) from e

        if not isinstance(content, str):
            raise TransportError(
                f"LLMStudio returned an unexpected response: {response.text[:200]}"
            )
        return content

    def complete(self, prompt: str) -> str:
        return self._post(
            {
                "model": self.model_name,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
            },
            timeout=GENERATION_TIMEOUT_S,
        )

    def build_metadata(self, prompt: str) -> dict:
        metadata = super().build_metadata(prompt)
        metadata["baseUrl"] = self.base_url
        return metadata

    def build_prompt(self, target_brand: str, target_name: str, palette: list[PaletteEntry]) -> str:
        # Local models echo the id most reliably when it leads the line.
        palette_str = "\n".join(
            f'- ID: {json.dumps(p.id)} | {p.brand} {p.name} ({format_color(p)}){format_reference(p)}'
            for p in palette
        )

        return f"""You are a paint mixing expert for model painting and miniatures.

Task: Create a recipe to mix a paint that matches "{target_brand} {target_name}".

CRITICAL INSTRUCTIONS:
1. You MUST use ONLY the paints listed below in the EXACT format provided
2. For each component, you MUST use the paint's ID exactly as shown (including the full ID string)
3. Example: if you see "ID: "abc-123" | Vallejo German Grey (#4A4A4A)", use "abc-123" as the paintId

Available paints in user's palette:
{palette_str}

REQUIREMENTS:
1. Use ONLY the paints listed above - do NOT invent new ones
2. Provide exact number of drops for each component (1 drop minimum, typically 1-5 drops)
3. Recipe must be reproducible with exact IDs
4. Consider color theory and paint properties
5. Use 2-4 paints maximum for a good mix

RESPONSE FORMAT (JSON only, no markdown):
{{
  "targetBrand": "{target_brand}",
  "targetName": "{target_name}",
  "confidence": 0.0-1.0,
  "explanation": "Brief explanation of why these paints work together",
  "components": [
    {{"paintId": "exact-id-from-list-above", "drops": number}},
    {{"paintId": "another-exact-id", "drops": number}}
  ]
}}

Confidence guidelines:
- 0.9-1.0: Exact match possible with available paints
- 0.7-0.89: Very close approximation
- 0.5-0.69: Good approximation
- <0.5: Rough approximation only

Important: Return ONLY the JSON, no markdown formatting, no explanations outside the JSON."""

    def test_connection(self) -> dict:
        key_preview = api_key_preview(
            None if self.api_key == NO_API_KEY else self.api_key, missing="not-required"
        )
        start = time.perf_counter()
        try:
            text = self._post(
                {
                    "model": self.model_name,
                    "messages": [{"role": "user", "content": CONNECTION_TEST_PROMPT}],
                    "max_tokens": 5,
                },
                timeout=HEALTH_CHECK_TIMEOUT_S,
            )
        except TransportError as e:
            logger.error(f"[LLMStudio Health Check] Connection failed: {e}")
            return self._connection_result(
                False, error=str(e), baseUrl=self.base_url, apiKeyPreview=key_preview
            )

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        return self._connection_result(
            True,
            baseUrl=self.base_url,
            responseTime=f"{elapsed_ms}ms",
            testResponse=text.strip(),
            apiKeyPreview=key_preview,
        )
