"""Tests for text cleaning and JSON extraction from model replies."""
import pytest

from roleplay_tutor.utils.text import extract_json_object, sanitize_text, string_field


class TestSanitizeText:
    """Test sanitize_text."""

    def test_collapses_spaces_and_keeps_ipa(self):
        """Runs of spaces collapse; phonetic symbols survive."""
        assert sanitize_text("  Try /θɪŋk/   with the 'th' sound ") == "Try /θɪŋk/ with the 'th' sound"

    def test_removes_control_characters(self):
        """Control characters are stripped, newlines kept."""
        assert sanitize_text("Hello\x00 there\nGiulia") == "Hello there\nGiulia"

    def test_none(self):
        assert sanitize_text(None) == ""


class TestExtractJsonObject:
    """Test extract_json_object."""

    def test_plain_json(self):
        assert extract_json_object('{"feedback": "Great!"}') == {"feedback": "Great!"}

    def test_json_in_code_fence(self):
        """JSON wrapped in prose or fences is found."""
        reply = 'Here you go:\n```json\n{"question": "Why?", "shouldEnd": false}\n```'
        assert extract_json_object(reply) == {"question": "Why?", "shouldEnd": False}

    @pytest.mark.parametrize("reply", ["", "   ", "no json here", "[1, 2]", "{broken"])
    def test_invalid_replies(self, reply):
        """Empty, missing, malformed and non-object replies raise ValueError."""
        with pytest.raises(ValueError):
            extract_json_object(reply)

    def test_string_field(self):
        """Only non-blank strings are returned."""
        data = {"a": "  hi ", "b": "   ", "c": 3}
        assert string_field(data, "a") == "hi"
        assert string_field(data, "b") is None
        assert string_field(data, "c") is None
        assert string_field(data, "missing") is None
