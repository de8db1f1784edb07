from .gemini import GeminiProvider
from .llmstudio import LLMStudioProvider

__all__ = ["GeminiProvider", "LLMStudioProvider"]
