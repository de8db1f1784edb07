import logging
import time
from typing import Optional

from google import genai
from google.genai import types

from ..errors import ConfigurationError, TransportError
from ..provider import (
    CONNECTION_TEST_PROMPT,
    AIProvider,
    PaletteEntry,
    ProviderConfig,
    ProviderKind,
    format_color,
    format_reference,
)
from ..utils import api_key_preview

logger = logging.getLogger("paintmix.ai")

GEMINI_TIMEOUT_MS = 60_000


class GeminiProvider(AIProvider):
    """Cloud provider backed by the Gemini generate-content API."""

    kind = ProviderKind.GEMINI
    default_model = "gemini-2.5-flash"

    def __init__(self, config: ProviderConfig):
        super().__init__(config)

        if not config.api_key:
            raise ConfigurationError("Gemini API key is required")

        self.client: Optional[genai.Client] = genai.Client(
            api_key=config.api_key,
            http_options=types.HttpOptions(timeout=GEMINI_TIMEOUT_MS),
        )

    def is_valid(self) -> bool:
        return self.client is not None

    def complete(self, prompt: str) -> str:
        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
            )
        except Exception as e:
            raise TransportError(f"Gemini request failed: {e}") from e

        if not response.text:
            raise TransportError(f"Gemini returned empty response from model {self.model_name}")
        return response.text

    def build_prompt(self, target_brand: str, target_name: str, palette: list[PaletteEntry]) -> str:
        # Ids are inlined so the model can echo them back verbatim.
        palette_str = "\n".join(
            f"- {p.brand} {p.name} ({format_color(p)}) [ID: {p.id}]{format_reference(p)}"
            for p in palette
        )

        return f"""You are an expert in model paint mixing. Create a recipe to match "{target_brand} {target_name}".

AVAILABLE PAINTS (use ONLY these):
{palette_str}

REQUIREMENTS:
1. Use 2-5 paints from the available list
2. Specify exact drop counts for each
3. Total drops should be reasonable (10-30 total)
4. Consider color theory
5. Prefer paints with similar properties when possible

RESPONSE FORMAT (JSON only):
{{
  "targetBrand": "{target_brand}",
  "targetName": "{target_name}",
  "confidence": 0.0-1.0,
  "explanation": "Brief mixing rationale",
  "components": [
    {{"paintId": "id-from-list", "drops": number}},
    ...
  ]
}}

Confidence guide:
- 0.90-1.00: Exact match possible
- 0.75-0.89: Very close approximation
- 0.60-0.74: Good match
- 0.40-0.59: Approximate only
- <0.40: Poor match with available paints"""

    def test_connection(self) -> dict:
        key_preview = api_key_preview(self.config.api_key)
        start = time.perf_counter()
        try:
            text = self.complete(CONNECTION_TEST_PROMPT)
        except TransportError as e:
            logger.error(f"[AI Health Check] Gemini connection failed: {e}")
            return self._connection_result(False, error=str(e), apiKeyPreview=key_preview)

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        return self._connection_result(
            True,
            responseTime=f"{elapsed_ms}ms",
            testResponse=text.strip(),
            apiKeyPreview=key_preview,
        )
