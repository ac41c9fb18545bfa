"""Recover a JSON object from free-form model output.

Models wrap JSON in code fences, pad it with commentary, or return plain
JSON. Attempts run in a fixed order and the first JSON *object* wins:

1. each fenced block, in order of appearance;
2. the span from the first ``{`` to the last ``}``;
3. the raw text as-is.

Arrays and scalars do not count. When nothing parses, ``MalformedResponse``
is raised with the raw text so the caller can log it.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, Optional

from ..models.exceptions import MalformedResponse

_FENCE_RE = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(candidate)
    except (ValueError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def _fenced_bodies(raw: str) -> Iterator[str]:
    for m in _FENCE_RE.finditer(raw):
        # Non-greedy body: never spans past the next fence marker
        body = m.group(1).strip()
        if body:
            yield body


def _brace_span(raw: str) -> Optional[str]:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return raw[start:end + 1]


def extract(raw: str) -> Dict[str, Any]:
    """Return the JSON object embedded in ``raw`` or raise MalformedResponse."""
    if not isinstance(raw, str) or not raw.strip():
        raise MalformedResponse(raw if isinstance(raw, str) else "", reason="Empty model response")

    for body in _fenced_bodies(raw):
        record = _loads_object(body)
        if record is None:
            span = _brace_span(body)
            record = _loads_object(span) if span else None
        if record is not None:
            return record

    span = _brace_span(raw)
    if span is not None:
        record = _loads_object(span)
        if record is not None:
            return record

    record = _loads_object(raw.strip())
    if record is not None:
        return record

    raise MalformedResponse(raw)
