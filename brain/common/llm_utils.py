"""Helpers for turning loosely formatted model output into data."""

from __future__ import annotations

import json
import re

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def parse_llm_json(raw: str) -> dict:
    """Parse a JSON object out of a model response.

    Tries in order:
    1. The body of the first markdown code fence
    2. The whole response
    3. The substring between the first '{' and the last '}'

    Anything that is not a JSON object (lists, scalars, garbage) yields ``{}``.
    """
    if not raw:
        return {}

    candidates = []
    fenced = _FENCE_RE.search(raw)
    if fenced:
        candidates.append(fenced.group(1).strip())
    candidates.append(raw.strip())

    start = raw.find("{")
    end = raw.rfind("}") + 1
    if start >= 0 and end > start:
        candidates.append(raw[start:end])

    for text in candidates:
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    return {}
