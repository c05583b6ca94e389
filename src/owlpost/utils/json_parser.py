"""
JSON extraction for LLM replies.

Providers wrap JSON in prose ("Sure! {...} Hope that helps"). Extraction
takes everything from the first '{' to the last '}' and parses that span
once. No recursive bracket matching, no repair heuristics.
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class ParsedJson:
    """A JSON object recovered from free text."""
    data: Dict[str, Any]


@dataclass(frozen=True)
class ParseFailure:
    """Extraction failed; the raw text is kept for logging and fallback."""
    raw_text: str
    reason: str


JsonExtraction = Union[ParsedJson, ParseFailure]


def extract_json_object(text: str) -> JsonExtraction:
    """Extract the largest brace-delimited span of ``text`` as a JSON object."""
    if not text or not isinstance(text, str):
        return ParseFailure(raw_text=text or "", reason="empty response")

    json_start = text.find('{')
    json_end = text.rfind('}') + 1

    if json_start < 0 or json_end <= json_start:
        return ParseFailure(raw_text=text, reason="no brace-delimited span")

    try:
        data = json.loads(text[json_start:json_end])
    except (json.JSONDecodeError, ValueError) as e:
        return ParseFailure(raw_text=text, reason=f"invalid JSON: {e}")

    if not isinstance(data, dict):
        return ParseFailure(raw_text=text, reason="JSON value is not an object")

    return ParsedJson(data=data)


def safe_json_parse(json_str: str, fallback: Any = None) -> Any:
    """Parse a JSON string, returning ``fallback`` when it is not valid JSON."""
    try:
        return json.loads(json_str)
    except (json.JSONDecodeError, TypeError, ValueError):
        return fallback
