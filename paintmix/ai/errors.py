"""Error taxonomy for AI mix generation.

- ConfigurationError: provider cannot be built (missing key/URL, unknown name)
- ParseError: no JSON could be extracted from the model output
- StructureError: parsed JSON is not a usable recipe
- TransportError: the backend call itself failed
- GenerationError: provider-level wrapper around any of the above
"""

from typing import Optional


class AIError(Exception):
    """Base class for AI provider errors."""


class ConfigurationError(AIError):
    pass


class ParseError(AIError):
    def __init__(self, message: str, excerpt: Optional[str] = None):
        super().__init__(message)
        self.excerpt = excerpt


class StructureError(AIError):
    pass


class TransportError(AIError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GenerationError(AIError):
    pass
