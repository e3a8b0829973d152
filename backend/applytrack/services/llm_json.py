"""Pull a JSON object out of free-form model output.

Models answer either with bare JSON or with a ```json fenced block surrounded
by chatter; both are accepted.
"""

from __future__ import annotations

import json
import re

_FENCED = re.compile(r"```(?:json|JSON)?\s*(.*?)\s*```", re.DOTALL)


def extract_json_object(text: str) -> dict:
    """Return the first JSON object found in ``text``.

    Raises:
        ValueError: if no parseable JSON object is present.
    """
    if not text or not text.strip():
        raise ValueError("empty response")

    candidates = [m.group(1) for m in _FENCED.finditer(text)]
    candidates.append(text.strip())

    # Last resort: the outermost {...} span in the raw text
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    last_error = "no JSON object found"
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = str(e)
            continue
        if isinstance(parsed, dict):
            return parsed
        last_error = f"expected a JSON object, got {type(parsed).__name__}"
    raise ValueError(last_error)
