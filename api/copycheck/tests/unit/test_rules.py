"""Unit tests for the rule registry and matcher."""

import pytest

from copycheck.models.schemas import FindingCategory
from copycheck.services.rules import (
    MAX_MATCHES_PER_RULE,
    ComplianceRule,
    RuleKind,
    RuleRegistry,
    evaluate_adhoc,
    evaluate_forbidden,
    evaluate_required_facts,
    parse_requirement_lines,
)


class TestEvaluateForbidden:
    """Forbidden-phrase rules keyed by channel."""

    def test_each_occurrence_is_a_finding(self, registry):
        text = "Best in town! Really, best in town. Truly BEST IN TOWN."

        findings = registry.evaluate_forbidden(text, "facebook")

        assert len(findings) == 3
        assert all(f.rule_id == "best_claim" for f in findings)
        assert [f.matched for f in findings] == ["Best in town", "best in town", "BEST IN TOWN"]

    def test_finding_carries_reason_and_suggestion(self, registry):
        findings = registry.evaluate_forbidden("We are best in town", "facebook")

        assert len(findings) == 1
        finding = findings[0]
        assert finding.category == FindingCategory.FORBIDDEN
        assert finding.reason == "Unprovable superlative"
        assert finding.suggestion == "Name a concrete strength"
        assert finding.severity == 2
        assert "best in town" in finding.message

    def test_multiple_rules_accumulate(self, registry):
        text = "Best in town and 100% guaranteed"

        findings = registry.evaluate_forbidden(text, "facebook")

        assert sorted(f.rule_id for f in findings) == ["best_claim", "guarantee"]

    def test_channel_selects_rule_set(self, registry):
        text = "Best in town and the cheapest"

        assert [f.rule_id for f in registry.evaluate_forbidden(text, "zalo")] == ["cheapest"]
        assert [f.rule_id for f in registry.evaluate_forbidden(text, "ZALO")] == ["cheapest"]

    def test_unknown_channel_yields_nothing(self, registry):
        assert registry.evaluate_forbidden("best in town", "myspace") == []

    def test_empty_text(self, registry):
        assert registry.evaluate_forbidden("", "facebook") == []

    def test_zero_width_matches_are_skipped(self):
        registry = RuleRegistry.from_rulebook({
            "channels": {"facebook": [{"id": "x_run", "pattern": "x*"}]},
            "required": {},
        })

        findings = registry.evaluate_forbidden("axxbx", "facebook")

        assert [f.matched for f in findings] == ["xx", "x"]

    def test_match_count_is_bounded(self):
        registry = RuleRegistry.from_rulebook({
            "channels": {"facebook": [{"id": "letter_a", "pattern": "a"}]},
            "required": {},
        })

        findings = registry.evaluate_forbidden("a" * (MAX_MATCHES_PER_RULE + 50), "facebook")

        assert len(findings) == MAX_MATCHES_PER_RULE

    def test_default_rulebook_vietnamese_phrases(self, default_registry):
        text = "Cam kết 100% bé tiến bộ, lớp học tốt nhất quận!"

        findings = default_registry.evaluate_forbidden(text, "facebook")

        assert {f.rule_id for f in findings} == {"absolute_promise", "superlative_claim"}
        assert "cam kết 100%" in [f.matched.lower() for f in findings]


class TestRegistryConstruction:
    """Building a registry from rulebook data never raises."""

    def test_invalid_pattern_is_skipped(self):
        registry = RuleRegistry.from_rulebook({
            "channels": {"facebook": [{"id": "broken", "pattern": "("}, {"id": "ok", "pattern": "fine"}]},
            "required": {"brand": {"id": "brand", "pattern": "["}},
        })

        assert [r.rule_id for r in registry.forbidden["facebook"]] == ["ok"]
        assert registry.required == {}

    @pytest.mark.parametrize("rulebook", [{}, {"channels": "nope", "required": []}, {"channels": {"facebook": None}}])
    def test_malformed_configuration_yields_no_rules(self, rulebook):
        registry = RuleRegistry.from_rulebook(rulebook)

        assert registry.evaluate_forbidden("anything at all", "facebook") == []
        assert registry.evaluate_required_facts("anything", {"brand": True}) == []

    def test_bad_severity_defaults_to_one(self):
        rule = ComplianceRule.from_config(RuleKind.FORBIDDEN, "r", {"pattern": "x", "severity": "high"})

        assert rule is not None
        assert rule.severity == 1
        assert rule.rule_id == "r"

    def test_channels_sorted(self, registry):
        assert registry.channels() == ["facebook", "zalo"]


class TestEvaluateRequiredFacts:
    """Required brand facts behind caller toggles."""

    def test_missing_fact_fires_once(self, registry):
        findings = registry.evaluate_required_facts("Chess lessons for kids", {"brand": True})

        assert len(findings) == 1
        assert findings[0].category == FindingCategory.COMPANY
        assert findings[0].rule_id == "brand_mention"
        assert findings[0].message == "Thiếu brand name"
        assert findings[0].matched is None

    def test_present_fact_does_not_fire(self, registry):
        text = "Kiddo Chess opens a new class. Hotline: 0900 000 111"

        assert registry.evaluate_required_facts(text, {"brand": True, "contact": True}) == []

    def test_disabled_toggle_is_not_evaluated(self, registry):
        assert registry.evaluate_required_facts("no brand here", {"brand": False, "contact": 0}) == []

    def test_unknown_toggle_is_ignored(self, registry):
        assert registry.evaluate_required_facts("no brand here", {"mascot": True}) == []

    def test_each_enabled_toggle_checked(self, registry):
        findings = registry.evaluate_required_facts("nothing useful", {"brand": True, "contact": True})

        assert sorted(f.rule_id for f in findings) == ["brand_mention", "contact_line"]

    def test_empty_text_and_toggles(self, registry):
        assert registry.evaluate_required_facts("", {"brand": True}) == []
        assert registry.evaluate_required_facts("text", None) == []


class TestEvaluateAdhoc:
    """Caller-supplied requirement lines."""

    def test_parse_requirement_lines(self):
        block = "  - Free trial class \n\n* Opening day\n• Ages 4+\n1. Small groups\n2) Parking\n   \n"

        assert parse_requirement_lines(block) == [
            "Free trial class", "Opening day", "Ages 4+", "Small groups", "Parking"
        ]

    def test_parse_accepts_iterables(self):
        assert parse_requirement_lines(["- a", "", None, 3, "b"]) == ["a", "b"]
        assert parse_requirement_lines(None) == []

    def test_unmet_lines_fire(self, registry):
        text = "Join our FREE TRIAL CLASS this Sunday"

        findings = registry.evaluate_adhoc(text, "- free trial class\n- Opening day")

        assert len(findings) == 1
        assert findings[0].category == FindingCategory.DYNAMIC
        assert findings[0].message == 'Chưa đáp ứng yêu cầu: "Opening day"'

    @pytest.mark.parametrize("line", ["500.000đ/tháng", "20.10 khai giảng", "-5% học phí"])
    def test_leading_digits_and_signs_are_kept(self, line):
        assert parse_requirement_lines(line) == [line]
        assert parse_requirement_lines(f"- {line}") == [line]

    def test_parsing_parsed_lines_changes_nothing(self):
        lines = parse_requirement_lines("1. 20.10 khai giảng\n- 500.000đ/tháng")

        assert parse_requirement_lines(lines) == lines == ["20.10 khai giảng", "500.000đ/tháng"]

    def test_different_price_is_unmet(self, registry):
        findings = registry.evaluate_adhoc("Học phí chỉ 700.000đ/tháng", "500.000đ/tháng")

        assert len(findings) == 1
        assert findings[0].message == 'Chưa đáp ứng yêu cầu: "500.000đ/tháng"'

    def test_different_date_is_unmet(self, registry):
        findings = registry.evaluate_adhoc("Ngày 21.10 khai giảng lớp mới", "- 20.10 khai giảng")

        assert len(findings) == 1

    def test_regex_characters_are_literal(self, registry):
        assert registry.evaluate_adhoc("Price: 100$ (per month)", "100$ (per month)") == []
        assert len(registry.evaluate_adhoc("Price: 1000 per month", "1.0")) == 1

    def test_empty_inputs(self, registry):
        assert registry.evaluate_adhoc("", "something") == []
        assert registry.evaluate_adhoc("text", "") == []
        assert registry.evaluate_adhoc("text", "\n  \n- \n") == []


class TestModuleFunctions:
    """Module-level wrappers delegate to the injected registry."""

    def test_wrappers_use_given_registry(self, registry):
        text = "best in town"

        assert len(evaluate_forbidden(text, "facebook", registry=registry)) == 1
        assert len(evaluate_required_facts(text, {"brand": True}, registry=registry)) == 1
        assert len(evaluate_adhoc(text, "kids", registry=registry)) == 1

    def test_evaluation_is_repeatable(self, registry):
        text = "best in town, 100% guaranteed"

        first = registry.evaluate_forbidden(text, "facebook")
        second = registry.evaluate_forbidden(text, "facebook")

        assert first == second
        assert text == "best in town, 100% guaranteed"
