from __future__ import annotations

import json
import re
from typing import Any

from core.errors import MalformedJson, NoJsonFound

_FENCE_RE = re.compile(r"```json|```", re.IGNORECASE)


def extract_json(text: str) -> Any:
    """
    Pull the single JSON object out of free-form oracle output.

    Fence markers are stripped, then everything from the first ``{`` to the
    last ``}`` (inclusive) is parsed. Prose before or after the object is
    ignored; the object itself must be well-formed.
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    first = cleaned.find("{")
    last = cleaned.rfind("}")

    if first == -1 or last == -1 or last < first:
        raise NoJsonFound("Oracle response did not contain a JSON object.")

    try:
        return json.loads(cleaned[first : last + 1])
    except json.JSONDecodeError as exc:
        raise MalformedJson(f"Failed to parse oracle JSON output: {exc.msg}") from exc
