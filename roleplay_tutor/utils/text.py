"""Text utilities for cleaning model output and parsing JSON replies."""
import json
import re
from typing import Any, Dict, Optional


def sanitize_text(text: Optional[str]) -> str:
    """Clean and normalize text before it is spoken or shown to the learner.

    Removes control characters, collapses runs of spaces and trims each line,
    keeping UTF-8 characters (accents, phonetic symbols) and paragraph breaks.

    Examples:
        >>> sanitize_text("  Try /θɪŋk/  with the 'th' sound ")
        "Try /θɪŋk/ with the 'th' sound"
        >>> sanitize_text(None)
        ""
    """
    if text is None:
        return ""

    text = str(text)

    # Keep \t, \n and \r
    text = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F-\x9F]', '', text)
    text = re.sub(r'[ \t]+', ' ', text)
    text = re.sub(r'\n{3,}', '\n\n', text)
    text = '\n'.join(line.strip() for line in text.split('\n'))

    return text.strip()


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON object out of a model reply.

    Tries the whole reply first, then the first ``{...}`` block (models
    sometimes wrap JSON in prose or code fences).

    Raises:
        ValueError: If no JSON object can be parsed
    """
    if not text or not text.strip():
        raise ValueError("Empty model reply")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        match = re.search(r"\{[\s\S]*\}", text)
        if not match:
            raise ValueError("No JSON object found in model reply")
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in model reply: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def string_field(data: Dict[str, Any], key: str) -> Optional[str]:
    """Return ``data[key]`` sanitized if it is a non-blank string, else None."""
    value = data.get(key)
    if isinstance(value, str):
        cleaned = sanitize_text(value)
        return cleaned or None
    return None
