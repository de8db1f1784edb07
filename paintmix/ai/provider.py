"""Provider abstraction for AI mix generation.

Every backend implements ``complete`` (one prompt in, raw text out),
``test_connection`` and ``is_valid``. Prompt building, response parsing,
validation and metadata stamping are shared here and may be overridden.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from ..services.recipe_validation import validate_recipe
from .errors import AIError, GenerationError, ParseError

logger = logging.getLogger("paintmix.ai")

RESPONSE_EXCERPT_CHARS = 200
CONNECTION_TEST_PROMPT = 'Respond with "OK" if you receive this message.'

_CODE_BLOCK_RE = re.compile(r"```json\s*([\s\S]*?)```")
_BRACES_RE = re.compile(r"\{[\s\S]*\}")


class ProviderKind(str, Enum):
    GEMINI = "gemini"
    LLMSTUDIO = "llmstudio"
    OPENAI = "openai"
    NONE = "none"


class ProviderConfig(BaseModel):
    provider: ProviderKind
    api_key: Optional[str] = None
    url: Optional[str] = None
    model: Optional[str] = None


class ProviderInfo(BaseModel):
    """Transport details for debug output. ``base_url`` is set for REST backends only."""
    kind: ProviderKind
    model: str
    base_url: Optional[str] = None


class PaletteEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    brand: str
    name: str
    color: Optional[str] = None
    reference: Optional[str] = None
    is_mix: bool = False


def format_color(entry: PaletteEntry) -> str:
    return entry.color or "no color"


def format_reference(entry: PaletteEntry) -> str:
    return f" [Ref: {entry.reference}]" if entry.reference else ""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AIProvider(ABC):
    kind: ProviderKind = ProviderKind.NONE
    default_model: str = ""

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.model_name = config.model or self.default_model

    # --- backend contract ---

    @abstractmethod
    def complete(self, prompt: str) -> str:
        """Send one prompt to the backend and return its raw text.

        Raises TransportError on any backend failure.
        """

    @abstractmethod
    def test_connection(self) -> dict:
        """Minimal round trip. Never raises; reports ``connected`` instead."""

    @abstractmethod
    def is_valid(self) -> bool:
        """True when the handle needed to reach the backend was built."""

    def info(self) -> ProviderInfo:
        return ProviderInfo(kind=self.kind, model=self.model_name)

    # --- shared pipeline ---

    def build_prompt(self, target_brand: str, target_name: str, palette: list[PaletteEntry]) -> str:
        palette_str = "\n".join(
            f"- {p.brand} {p.name} ({format_color(p)}){format_reference(p)}"
            for p in palette
        )

        return f"""You are a paint mixing expert for model painting and miniatures.

Task: Create a recipe to mix a paint that matches "{target_brand} {target_name}".

Available paints in user's palette:
{palette_str}

Requirements:
1. Use ONLY the paints listed above
2. Provide exact number of drops for each component
3. Recipe must be reproducible
4. Consider color theory and paint properties

Respond in JSON format with this structure:
{{
  "targetBrand": "{target_brand}",
  "targetName": "{target_name}",
  "confidence": 0.0-1.0,
  "explanation": "Brief explanation of the mix",
  "components": [
    {{"paintId": "paint-id", "drops": number}},
    ...
  ]
}}

Confidence guidelines:
- 0.9-1.0: Exact match possible with available paints
- 0.7-0.89: Very close approximation
- 0.5-0.69: Good approximation
- <0.5: Rough approximation only"""

    def parse_response(self, response_text: str) -> Any:
        """Extract the JSON payload from model output.

        Tried in order: whole text, a ```json fenced block, the outermost {...} span.
        """
        text = response_text or ""

        candidates = [text]
        block = _CODE_BLOCK_RE.search(text)
        if block:
            candidates.append(block.group(1))
        braces = _BRACES_RE.search(text)
        if braces:
            candidates.append(braces.group(0))

        for candidate in candidates:
            try:
                return json.loads(candidate)
            except ValueError:
                continue

        excerpt = text[:RESPONSE_EXCERPT_CHARS]
        raise ParseError(
            f"Failed to parse AI response: No valid JSON found in response. Response was: {excerpt}",
            excerpt=excerpt,
        )

    def validate_recipe(self, recipe: Any) -> None:
        validate_recipe(recipe)

    def build_metadata(self, prompt: str) -> dict:
        return {
            "provider": self.kind.value,
            "model": self.model_name,
            "timestamp": utc_now_iso(),
            "promptLength": len(prompt),
        }

    def generate_mix(self, target_brand: str, target_name: str, palette: list[PaletteEntry]) -> dict:
        """Prompt the backend and return a validated recipe with ``aiMetadata``."""
        prompt = self.build_prompt(target_brand, target_name, palette)
        try:
            text = self.complete(prompt)
            recipe = self.parse_response(text)
            self.validate_recipe(recipe)
        except AIError as e:
            logger.error(f"{self.kind.value} generation failed with model {self.model_name}: {e}")
            raise GenerationError(f"AI generation failed: {e}") from e

        recipe["aiMetadata"] = self.build_metadata(prompt)
        return recipe

    def _connection_result(self, connected: bool, **fields) -> dict:
        result = {
            "status": "connected" if connected else "error",
            "connected": connected,
            "provider": self.kind.value,
            "model": self.model_name,
            "timestamp": utc_now_iso(),
        }
        result.update(fields)
        return result
