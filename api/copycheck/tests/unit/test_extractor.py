"""Unit tests for JSON recovery from model output."""

import pytest

from copycheck.models.exceptions import MalformedResponse
from copycheck.services.extractor import extract


class TestExtract:

    def test_plain_json(self):
        assert extract('{"corrected_text": "ok"}') == {"corrected_text": "ok"}

    def test_fenced_json(self):
        raw = 'Sure, here is the result:\n```json\n{"corrected_text": "Xin chào", "hashtags": ["#a"]}\n```\nAnything else?'

        assert extract(raw) == {"corrected_text": "Xin chào", "hashtags": ["#a"]}

    def test_fence_without_language_tag(self):
        raw = '```\n{"score": 90}\n```'

        assert extract(raw) == {"score": 90}

    def test_first_parsable_fence_wins(self):
        raw = "```json\nnot json at all\n```\nthen\n```json\n{\"second\": true}\n```"

        assert extract(raw) == {"second": True}

    def test_fence_with_commentary_inside(self):
        raw = '```json\n// model notes\n{"a": 1}\n```'

        assert extract(raw) == {"a": 1}

    def test_prose_padding(self):
        raw = 'Here you go {"corrected_text": "x", "nested": {"k": [1, 2]}} hope this helps'

        assert extract(raw) == {"corrected_text": "x", "nested": {"k": [1, 2]}}

    def test_unicode_preserved(self):
        raw = '{"corrected_text": "Lớp cờ vua – vẽ cho bé 🎨"}'

        assert extract(raw)["corrected_text"] == "Lớp cờ vua – vẽ cho bé 🎨"

    def test_no_json_raises_with_raw(self):
        with pytest.raises(MalformedResponse) as exc_info:
            extract("no json here")

        assert exc_info.value.raw == "no json here"
        assert exc_info.value.details["raw_length"] == len("no json here")

    @pytest.mark.parametrize("raw", ["", "   \n", None])
    def test_empty_input_raises(self, raw):
        with pytest.raises(MalformedResponse):
            extract(raw)

    @pytest.mark.parametrize("raw", ["[1, 2, 3]", "42", '"just a string"'])
    def test_non_object_json_is_rejected(self, raw):
        with pytest.raises(MalformedResponse):
            extract(raw)

    def test_unbalanced_braces_raise(self):
        with pytest.raises(MalformedResponse):
            extract('{"corrected_text": "cut off')
