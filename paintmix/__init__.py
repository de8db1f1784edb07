"""Paint inventory API with AI-assisted mix recipe generation."""

__version__ = "0.1.0"
