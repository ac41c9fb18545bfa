"""Pytest configuration and fixtures for the copycheck API."""

import json
import sys
from pathlib import Path
from typing import Generator
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

# Add the api directory to Python path
api_dir = Path(__file__).parent
sys.path.insert(0, str(api_dir))

from copycheck.core.config import settings
from copycheck.main import app
from copycheck.services.rulebook import DEFAULT_RULEBOOK
from copycheck.services.rules import RuleRegistry


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Pin test settings; ``settings`` is built at import, so env vars alone would be too late."""
    test_settings = {
        "openrouter_api_key": "test-key",
        "service_env": "test",
        "log_level": "DEBUG",
        "rulebook_path": None,
        "default_channel": "facebook",
    }
    for name, value in test_settings.items():
        monkeypatch.setattr(settings, name, value)
    yield settings


@pytest.fixture
def test_rulebook():
    """Small ASCII rulebook so matcher tests do not depend on the brand copy."""
    return {
        "brand": {
            "name": "Kiddo Chess",
            "branches": ["Branch 1: 1 Main St"],
            "hotline": "0900 000 111",
            "slogan": "Play to learn",
            "hashtags": ["#KiddoChess"],
        },
        "channels": {
            "facebook": [
                {"id": "best_claim", "pattern": r"best\s+in\s+town", "label": "Best claim",
                 "reason": "Unprovable superlative", "suggestion": "Name a concrete strength", "severity": 2},
                {"id": "guarantee", "pattern": r"100\s*%\s+guaranteed", "label": "Guarantee",
                 "reason": "No guaranteed results", "severity": 3},
            ],
            "zalo": [
                {"id": "cheapest", "pattern": r"cheapest", "label": "Cheapest"},
            ],
        },
        "required": {
            "brand": {"id": "brand_mention", "pattern": r"kiddo\s+chess", "label": "brand name",
                      "reason": "Every post names the brand"},
            "contact": {"id": "contact_line", "pattern": r"hotline\s*:?\s*\d[\d ]{6,}", "label": "hotline"},
        },
    }


@pytest.fixture
def registry(test_rulebook) -> RuleRegistry:
    return RuleRegistry.from_rulebook(test_rulebook)


@pytest.fixture
def default_registry() -> RuleRegistry:
    return RuleRegistry.from_rulebook(DEFAULT_RULEBOOK)


@pytest.fixture
def model_record():
    """A well-formed model answer for a text check."""
    return {
        "corrected_text": "Lớp cờ vua cho bé, cam kết 100% bé tiến bộ. Hotline: 0909 123 456",
        "spelling_issues": [
            {"original": "co vua", "corrected": "cờ vua", "reason": "thiếu dấu"},
            {"original": "tien bo", "corrected": "tiến bộ", "reason": "thiếu dấu"},
        ],
        "general_suggestions": ["Thêm ngày khai giảng"],
        "hashtags": ["#CoVuaChoBe"],
        "rewrite_text": "Ba mẹ ơi, lớp cờ vua cho bé đã mở! Hotline: 0909 123 456",
    }


@pytest.fixture
def mock_generate(model_record):
    """Patch the OpenRouter call with a fenced JSON answer."""
    raw = "Kết quả đây:\n```json\n" + json.dumps(model_record, ensure_ascii=False) + "\n```"
    with patch("copycheck.services.openrouter.generate", new=AsyncMock(return_value=raw)) as mock:
        yield mock
