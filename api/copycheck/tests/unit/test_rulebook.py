"""Unit tests for rulebook loading and the process-wide registry."""

import json

import pytest

from copycheck.models.exceptions import GuardrailsValidationException
from copycheck.services import rules
from copycheck.services.rulebook import DEFAULT_RULEBOOK, load_rulebook


def test_default_rulebook_is_a_copy():
    rulebook = load_rulebook()
    rulebook["channels"]["facebook"].clear()

    assert rulebook is not DEFAULT_RULEBOOK
    assert DEFAULT_RULEBOOK["channels"]["facebook"]
    assert load_rulebook()["channels"]["facebook"]


def test_default_rulebook_compiles_completely():
    registry = rules.RuleRegistry.from_rulebook(DEFAULT_RULEBOOK)

    assert registry.channels() == ["facebook", "tiktok", "zalo"]
    for channel, entries in DEFAULT_RULEBOOK["channels"].items():
        assert len(registry.forbidden[channel]) == len(entries)
    assert set(registry.required) == {"brand", "branch", "contact", "slogan", "service"}


def test_load_from_file(tmp_path, test_rulebook):
    path = tmp_path / "rulebook.json"
    path.write_text(json.dumps(test_rulebook), encoding="utf-8")

    assert load_rulebook(str(path)) == test_rulebook


def test_invalid_file_rejected(tmp_path, test_rulebook):
    test_rulebook["channels"]["facebook"][0]["id"] = "Not Valid"
    path = tmp_path / "rulebook.json"
    path.write_text(json.dumps(test_rulebook), encoding="utf-8")

    with pytest.raises(GuardrailsValidationException) as exc_info:
        load_rulebook(str(path))

    assert exc_info.value.contract_name == "rulebook.json"
    assert exc_info.value.validation_errors


def test_get_registry_reads_configured_path(tmp_path, monkeypatch, test_rulebook):
    path = tmp_path / "rulebook.json"
    path.write_text(json.dumps(test_rulebook), encoding="utf-8")
    monkeypatch.setattr(rules.settings, "rulebook_path", str(path))
    rules.get_registry.cache_clear()
    try:
        registry = rules.get_registry()

        assert registry.channels() == ["facebook", "zalo"]
        assert registry.brand["name"] == "Kiddo Chess"
        assert rules.get_registry() is registry
    finally:
        rules.get_registry.cache_clear()
