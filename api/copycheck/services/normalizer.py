"""Map an extracted model record onto ``NormalizedContentResult``.

This is the single place where "whatever the model sent" becomes the agreed
shape. ``normalize`` is total: any input, including ``{}`` and non-dict
values, yields a fully populated result. Scalars are never wrapped into
lists and list elements of the wrong shape are dropped.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..models.schemas import CheckMode, Finding, NormalizedContentResult, SpellingIssue

_FINDING_FIELDS = ("forbidden_findings", "company_findings", "dynamic_findings")


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _spelling_issues(value: Any) -> List[SpellingIssue]:
    if not isinstance(value, list):
        return []

    issues: List[SpellingIssue] = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        corrected = item.get("corrected", item.get("correct", ""))
        issues.append(SpellingIssue(
            original=item.get("original") if isinstance(item.get("original"), str) else "",
            corrected=corrected if isinstance(corrected, str) else "",
            reason=item.get("reason") if isinstance(item.get("reason"), str) else "",
        ))
    return issues


def _findings(value: Any) -> List[Finding]:
    if not isinstance(value, list):
        return []

    findings: List[Finding] = []
    for item in value:
        if isinstance(item, Finding):
            findings.append(item)
            continue
        if not isinstance(item, Mapping):
            continue
        try:
            findings.append(Finding.model_validate(item))
        except ValidationError:
            continue
    return findings


def _mode(value: Any) -> CheckMode:
    try:
        return CheckMode(value)
    except ValueError:
        return CheckMode.TEXT


def normalize(
    record: Any,
    fallback_text: str,
    mode: Union[CheckMode, str, None] = None,
) -> NormalizedContentResult:
    """Build a complete result from ``record``.

    Args:
        record: Extracted model output; anything that is not a mapping is
            treated as ``{}``.
        fallback_text: The caller's original text, used when the model did
            not return a usable ``corrected_text``.
        mode: Input mode. When omitted the record's own ``mode`` is used if
            valid, otherwise text mode.

    Returns:
        NormalizedContentResult with every field populated.
    """
    data: Mapping[str, Any] = record if isinstance(record, Mapping) else {}
    fallback = fallback_text if isinstance(fallback_text, str) else ""

    corrected_text = _non_empty_str(data.get("corrected_text")) or fallback
    # The rewrite falls back to the corrected text, never straight to the original
    rewrite_text = _non_empty_str(data.get("rewrite_text")) or corrected_text

    suggestions = data.get("general_suggestions")
    if suggestions is None:
        suggestions = data.get("suggestions")

    plain_text = data.get("plain_text")

    fields: Dict[str, Any] = {
        "mode": _mode(mode if mode is not None else data.get("mode")),
        "corrected_text": corrected_text,
        "rewrite_text": rewrite_text,
        "spelling_issues": _spelling_issues(data.get("spelling_issues")),
        "general_suggestions": _str_list(suggestions),
        "hashtags": _str_list(data.get("hashtags")),
        "design_feedback": _str_list(data.get("design_feedback")),
        "plain_text": plain_text if isinstance(plain_text, str) else "",
    }
    for name in _FINDING_FIELDS:
        fields[name] = _findings(data.get(name))

    return NormalizedContentResult(**fields)


def to_record(result: NormalizedContentResult) -> Dict[str, Any]:
    """Plain JSON-compatible record for a normalized result."""
    return result.model_dump(mode="json")
