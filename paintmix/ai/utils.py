from typing import Optional


def normalize_model_id(model_string: str) -> str:
    """
    Sanitizes a model string to be SDK-compatible.

    Examples:
    - 'model="gemini-2.5-flash"' -> 'gemini-2.5-flash'
    - '"deepseek-coder-v2-lite-16b"' -> 'deepseek-coder-v2-lite-16b'
    """
    if not model_string:
        return model_string

    s = model_string.strip()

    # Strip optional 'model=' prefix (case insensitive)
    if s.lower().startswith("model="):
        s = s[6:]

    s = s.strip('"\'')

    return s.strip()


def api_key_preview(api_key: Optional[str], missing: str = "not-set") -> str:
    """First 8 characters of a credential, safe to show in health output."""
    if not api_key:
        return missing
    return f"{api_key[:8]}..."
