"""Provider selection with a process-wide cache.

``provider_cache`` is the shared instance used by the app. Tests and
per-tenant setups can build their own ``ProviderCache``.
"""

import logging
import threading
from typing import Callable, Optional

from ..settings import AISettings
from .errors import ConfigurationError
from .provider import AIProvider, ProviderConfig, ProviderKind
from .providers import GeminiProvider, LLMStudioProvider

logger = logging.getLogger("paintmix.ai")

DEFAULT_PROVIDER = ProviderKind.GEMINI.value

# Providers that may run without AI_API_KEY
KEYLESS_PROVIDERS = {ProviderKind.LLMSTUDIO.value}

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    ProviderKind.GEMINI.value: GeminiProvider,
    ProviderKind.LLMSTUDIO.value: LLMStudioProvider,
}


def build_provider(provider_name: Optional[str] = None, ai_settings: Optional[AISettings] = None) -> AIProvider:
    """Construct a provider from configuration. Raises ConfigurationError."""
    ai_settings = ai_settings or AISettings()
    name = (provider_name or ai_settings.ai_provider or DEFAULT_PROVIDER).strip().lower()

    if not ai_settings.ai_api_key and name not in KEYLESS_PROVIDERS:
        raise ConfigurationError("AI_API_KEY is required for cloud providers")

    if name == ProviderKind.OPENAI.value:
        raise ConfigurationError("OpenAI provider not yet implemented")

    provider_cls = PROVIDER_CLASSES.get(name)
    if provider_cls is None:
        raise ConfigurationError(f"Unknown AI provider: {name}")

    config = ProviderConfig(
        provider=ProviderKind(name),
        api_key=ai_settings.ai_api_key,
        url=ai_settings.ai_url,
        model=ai_settings.ai_model,
    )
    provider = provider_cls(config)

    if not provider.is_valid():
        raise ConfigurationError(f"Failed to initialize {name} provider")

    logger.info(f"AI provider ready: {name} (model={provider.model_name})")
    return provider


class ProviderCache:
    """Get-or-create cache holding at most one provider.

    Failed constructions are never cached. ``reset`` is serialized with
    ``create`` so no caller sees an instance cached before the reset.
    """

    def __init__(self, builder: Callable[..., AIProvider] = build_provider):
        self._builder = builder
        self._instance: Optional[AIProvider] = None
        self._lock = threading.Lock()

    def create(self, provider_name: Optional[str] = None) -> AIProvider:
        with self._lock:
            if self._instance is not None:
                if self._instance.is_valid():
                    return self._instance
                logger.info("Resetting invalid cached provider instance")
                self._instance = None

            provider = self._builder(provider_name)
            self._instance = provider
            return provider

    def reset(self) -> None:
        with self._lock:
            self._instance = None

    @property
    def cached(self) -> Optional[AIProvider]:
        return self._instance


provider_cache = ProviderCache()
