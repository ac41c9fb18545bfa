"""Rule registry and matcher for marketing copy compliance.

Rules are data: the registry is built from a rulebook mapping (see
``rulebook.py``) and every evaluation is a pure function of the text and the
registry. Nothing here calls the model or raises for bad configuration; a
rule that cannot be compiled is skipped when the registry is built.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Pattern, Union

from ..core.config import settings
from ..models.schemas import Finding, FindingCategory
from .rulebook import load_rulebook

logger = logging.getLogger(__name__)

# Upper bound on findings a single rule may produce in one text
MAX_MATCHES_PER_RULE = 200

# A marker counts only when followed by whitespace, so "500.000đ" and "20.10" keep their digits
_BULLET_RE = re.compile(r"^(?:[-*+•●▪–]|\d+[.)])(?:\s+|$)")


class RuleKind(str, Enum):
    FORBIDDEN = "forbidden"
    REQUIRED = "required"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class ComplianceRule:
    """A named, case-insensitive check over a block of text."""

    rule_id: str
    kind: RuleKind
    pattern: Pattern[str]
    label: str = ""
    reason: str = ""
    suggestion: Optional[str] = None
    severity: int = 1

    @classmethod
    def from_config(cls, kind: RuleKind, rule_id: str, cfg: Mapping[str, Any]) -> Optional["ComplianceRule"]:
        """Build a rule from a rulebook entry, or None if the entry is unusable."""
        if not isinstance(cfg, Mapping):
            logger.warning(f"Skipping rule {rule_id}: entry is not an object")
            return None
        raw_pattern = cfg.get("pattern")
        if not isinstance(raw_pattern, str) or not raw_pattern.strip():
            logger.warning(f"Skipping rule {rule_id}: missing pattern")
            return None
        try:
            compiled = re.compile(raw_pattern, re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Skipping rule {rule_id}: invalid pattern ({e})")
            return None

        severity = cfg.get("severity", 1)
        if not isinstance(severity, int) or isinstance(severity, bool) or severity < 0:
            severity = 1
        suggestion = cfg.get("suggestion")
        return cls(
            rule_id=str(cfg.get("id") or rule_id),
            kind=kind,
            pattern=compiled,
            label=str(cfg.get("label") or rule_id),
            reason=str(cfg.get("reason") or ""),
            suggestion=suggestion if isinstance(suggestion, str) and suggestion else None,
            severity=severity,
        )

    @classmethod
    def adhoc(cls, line: str, index: int) -> "ComplianceRule":
        """Literal containment rule for one caller-supplied requirement line."""
        return cls(
            rule_id=f"adhoc_{index}",
            kind=RuleKind.DYNAMIC,
            pattern=re.compile(re.escape(line), re.IGNORECASE),
            label=line,
        )

    def is_present(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def iter_matches(self, text: str) -> Iterator[str]:
        """Yield every non-overlapping, non-empty match."""
        produced = 0
        for m in self.pattern.finditer(text):
            if m.end() == m.start():
                continue
            yield m.group(0)
            produced += 1
            if produced >= MAX_MATCHES_PER_RULE:
                logger.warning(f"Rule {self.rule_id} hit the match limit ({MAX_MATCHES_PER_RULE})")
                return


def parse_requirement_lines(requirements: Union[str, Iterable[str], None]) -> List[str]:
    """Split a free-form requirement block into clean, non-empty lines."""
    if not requirements:
        return []
    if isinstance(requirements, str):
        raw_lines: Iterable[Any] = requirements.splitlines()
    else:
        raw_lines = requirements

    lines: List[str] = []
    for raw in raw_lines:
        if not isinstance(raw, str):
            continue
        line = _BULLET_RE.sub("", raw.strip()).strip()
        if line:
            lines.append(line)
    return lines


@dataclass
class RuleRegistry:
    """Compiled rule sets keyed by channel and by toggle name."""

    forbidden: Dict[str, List[ComplianceRule]] = field(default_factory=dict)
    required: Dict[str, ComplianceRule] = field(default_factory=dict)
    brand: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rulebook(cls, rulebook: Mapping[str, Any]) -> "RuleRegistry":
        forbidden: Dict[str, List[ComplianceRule]] = {}
        required: Dict[str, ComplianceRule] = {}

        channels = rulebook.get("channels") if isinstance(rulebook, Mapping) else None
        if isinstance(channels, Mapping):
            for channel, entries in channels.items():
                if not isinstance(entries, list):
                    continue
                rules = []
                for i, entry in enumerate(entries):
                    rule = ComplianceRule.from_config(RuleKind.FORBIDDEN, f"{channel}_{i}", entry)
                    if rule is not None:
                        rules.append(rule)
                forbidden[str(channel).lower()] = rules

        toggles = rulebook.get("required") if isinstance(rulebook, Mapping) else None
        if isinstance(toggles, Mapping):
            for toggle, entry in toggles.items():
                rule = ComplianceRule.from_config(RuleKind.REQUIRED, str(toggle), entry)
                if rule is not None:
                    required[str(toggle)] = rule

        brand = rulebook.get("brand") if isinstance(rulebook, Mapping) else None
        return cls(
            forbidden=forbidden,
            required=required,
            brand=dict(brand) if isinstance(brand, Mapping) else {},
        )

    def channels(self) -> List[str]:
        return sorted(self.forbidden.keys())

    def evaluate_forbidden(self, text: str, channel: Optional[str]) -> List[Finding]:
        if not text or not channel:
            return []

        findings: List[Finding] = []
        for rule in self.forbidden.get(channel.lower(), []):
            for matched in rule.iter_matches(text):
                findings.append(Finding(
                    category=FindingCategory.FORBIDDEN,
                    rule_id=rule.rule_id,
                    matched=matched,
                    message=f"Cụm từ không nên dùng trên {channel}: \"{matched}\"",
                    reason=rule.reason or None,
                    suggestion=rule.suggestion,
                    severity=rule.severity,
                ))
        return findings

    def evaluate_required_facts(self, text: str, enabled_toggles: Optional[Mapping[str, Any]]) -> List[Finding]:
        if not text or not isinstance(enabled_toggles, Mapping):
            return []

        findings: List[Finding] = []
        for toggle, enabled in enabled_toggles.items():
            if not enabled:
                continue
            rule = self.required.get(toggle)
            if rule is None or rule.is_present(text):
                continue
            findings.append(Finding(
                category=FindingCategory.COMPANY,
                rule_id=rule.rule_id,
                message=f"Thiếu {rule.label}",
                reason=rule.reason or None,
                suggestion=rule.suggestion,
                severity=rule.severity,
            ))
        return findings

    def evaluate_adhoc(self, text: str, requirement_lines: Union[str, Iterable[str], None]) -> List[Finding]:
        if not text:
            return []

        findings: List[Finding] = []
        for i, line in enumerate(parse_requirement_lines(requirement_lines)):
            rule = ComplianceRule.adhoc(line, i)
            if rule.is_present(text):
                continue
            findings.append(Finding(
                category=FindingCategory.DYNAMIC,
                rule_id=rule.rule_id,
                message=f"Chưa đáp ứng yêu cầu: \"{line}\"",
                severity=rule.severity,
            ))
        return findings


@lru_cache(maxsize=1)
def get_registry() -> RuleRegistry:
    """Process-wide registry built from the configured rulebook."""
    registry = RuleRegistry.from_rulebook(load_rulebook(settings.rulebook_path))
    logger.info(
        f"Rule registry ready: {len(registry.forbidden)} channels, "
        f"{len(registry.required)} required facts"
    )
    return registry


def evaluate_forbidden(text: str, channel: Optional[str], registry: Optional[RuleRegistry] = None) -> List[Finding]:
    return (registry or get_registry()).evaluate_forbidden(text, channel)


def evaluate_required_facts(
    text: str,
    enabled_toggles: Optional[Mapping[str, Any]],
    registry: Optional[RuleRegistry] = None,
) -> List[Finding]:
    return (registry or get_registry()).evaluate_required_facts(text, enabled_toggles)


def evaluate_adhoc(
    text: str,
    requirement_lines: Union[str, Iterable[str], None],
    registry: Optional[RuleRegistry] = None,
) -> List[Finding]:
    return (registry or get_registry()).evaluate_adhoc(text, requirement_lines)
