"""JSON extraction from language-model output, tolerant of common quirks."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(
    r'^```(?:json|javascript|)?\s*\n(.*?)\n```\s*$',
    re.DOTALL | re.MULTILINE,
)


def _escape_control_chars(s: str) -> str:
    result = []
    for ch in s:
        cp = ord(ch)
        if cp < 0x20 and ch not in ('\n', '\r'):
            result.append(f'\\u{cp:04x}')
        else:
            result.append(ch)
    return ''.join(result)


def parse_json_response(text: str) -> Any:
    """Parse model output as JSON.

    Strips markdown fences. Output that is valid JSON is returned as decoded,
    whatever its type. Otherwise // comments and trailing commas are removed
    and anything outside the outermost braces is trimmed. Raises ValueError
    when nothing can be recovered.
    """
    text = (text or "").strip()

    match = _FENCE_RE.search(text)
    if match:
        text = match.group(1).strip()
        logger.debug("Stripped markdown code fences from model response")
    if text.startswith('```') or text.endswith('```'):
        text = text.strip('`').strip()
        if text.lower().startswith("json"):
            text = text[4:].lstrip()

    # Attempt 1: as-is (strict=False tolerates raw control chars in strings)
    try:
        return json.loads(text, strict=False)
    except json.JSONDecodeError:
        pass

    # Attempt 2: clean up and cut to the object boundaries
    cleaned = re.sub(r'(?<=[\s,\]\}])//[^\n]*', '', text)
    cleaned = re.sub(r'^//[^\n]*', '', cleaned, flags=re.MULTILINE)
    cleaned = re.sub(r',\s*([}\]])', r'\1', cleaned)
    cleaned = _escape_control_chars(cleaned)

    first_brace = cleaned.find('{')
    last_brace = cleaned.rfind('}')
    if first_brace != -1 and last_brace > first_brace:
        cleaned = cleaned[first_brace:last_brace + 1]

    try:
        parsed = json.loads(cleaned, strict=False)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse model response as JSON: %s", e)
        logger.debug("Raw response (first 2000 chars):\n%s", text[:2000])
        raise ValueError(f"Model returned invalid JSON: {e}") from e
    return parsed
