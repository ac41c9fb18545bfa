"""JSON schema contracts for configuration files (see ``guardrails/``)."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from jsonschema import Draft7Validator

from ..models.exceptions import GuardrailsValidationException


_SCHEMA_CACHE: Dict[str, Draft7Validator] = {}


@lru_cache(maxsize=1)
def _guardrails_dir() -> Path:
    # Nearest ancestor holding a guardrails/ directory (the repo root in a checkout)
    here = Path(__file__).resolve()
    for parent in here.parents:
        candidate = parent / "guardrails"
        if candidate.is_dir():
            return candidate
    return here.parents[3] / "guardrails"


def _load_schema(name: str) -> Draft7Validator:
    if name not in _SCHEMA_CACHE:
        with open(_guardrails_dir() / name, "r", encoding="utf-8") as f:
            _SCHEMA_CACHE[name] = Draft7Validator(json.load(f))
    return _SCHEMA_CACHE[name]


def _location(error) -> str:
    return "/".join(str(p) for p in error.path) or "<root>"


def contract_errors(name: str, payload: Any) -> List[str]:
    """Messages for every violation of contract ``name``, ordered by location."""
    errors = sorted(_load_schema(name).iter_errors(payload), key=_location)
    return [f"{_location(e)}: {e.message}" for e in errors]


def validate_contract(name: str, payload: Any) -> None:
    errors = contract_errors(name, payload)
    if errors:
        raise GuardrailsValidationException(name, errors)
