"""Helpers that turn free-form model output into usable values."""

import json
import re
from typing import Any, Optional

from ..errors import MalformedResponseError

URL_PATTERN = re.compile(r"https?://[^\s)]+")

_FENCE_PATTERN = re.compile(r"```(?:json)?[ \t]*\n?|\n?```")

# CJK ideographs, Latin letters, digits, whitespace and plain punctuation.
_SPEECH_DISALLOWED = re.compile(r"[^\u4e00-\u9fa5a-zA-Z0-9\s,，.。?？!！:：;；]")

SPEECH_PAUSE = " [medium pause]。"


def _find_object_span(text: str) -> Optional[tuple[int, int]]:
    """Locate the outermost balanced ``{...}`` pair, ignoring braces in strings."""
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(text[start:], start):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return start, i + 1

    return None


def extract_json_object(text: Optional[str]) -> dict[str, Any]:
    """Extract the single JSON object embedded in a model response.

    The response may wrap the object in prose or markdown code fences.

    Raises:
        MalformedResponseError: If the text is empty, holds no balanced
            object, or the object does not parse.
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response text")

    cleaned = _FENCE_PATTERN.sub("", text).strip()
    span = _find_object_span(cleaned)
    if span is None:
        raise MalformedResponseError("No JSON object found in response")

    try:
        data = json.loads(cleaned[span[0]:span[1]])
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Invalid JSON in response: {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponseError("Response JSON is not an object")
    return data


def extract_first_url(text: Optional[str]) -> Optional[str]:
    """Return the first URL-shaped substring of ``text``, if any."""
    if not text:
        return None
    match = URL_PATTERN.search(text)
    return match.group(0) if match else None


def clean_speech_text(text: str) -> str:
    """Replace characters the narrator would otherwise read out with spaces."""
    return _SPEECH_DISALLOWED.sub(" ", text)
