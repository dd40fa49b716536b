"""
Response Parser Tests
=====================
Covers JSON recovery from raw model replies and the two failure policies.

Covers:
    - Markdown fence stripping
    - JSON embedded in prose
    - Object vs array selection
    - No JSON / invalid JSON → ParseError with a preview
    - RAISE vs DEGRADE on schema mismatch
"""
import pytest

from vidro_ai.core.errors import ParseError
from vidro_ai.llm.parser import (
    ParseFailurePolicy,
    extract_json,
    parse_structured,
    strip_fences,
)
from vidro_ai.models.insights import SeverityResult, VideoAnalysisResult


# ---------------------------------------------------------------------------
# 1. Fences
# ---------------------------------------------------------------------------
class TestFenceStripping:

    def test_json_fence_decodes_like_plain_json(self):
        plain = '{"severity": "high", "priority": "p1", "reasoning": "Checkout is broken"}'
        fenced = f"```json\n{plain}\n```"
        assert extract_json(fenced) == extract_json(plain)

    def test_bare_fence(self):
        assert extract_json('```\n{"tags": ["ui"]}\n```') == {"tags": ["ui"]}

    def test_fence_tag_is_case_insensitive(self):
        assert strip_fences('```JSON\n{"a": 1}\n```') == '{"a": 1}'

    def test_unfenced_text_unchanged(self):
        assert strip_fences('  {"a": 1}  ') == '{"a": 1}'


# ---------------------------------------------------------------------------
# 2. Prose recovery
# ---------------------------------------------------------------------------
class TestProseRecovery:

    def test_object_inside_prose(self):
        text = 'Sure! Here is the classification: {"severity": "low", "priority": "p3"} Let me know.'
        assert extract_json(text) == {"severity": "low", "priority": "p3"}

    def test_nested_object_recovered_whole(self):
        text = 'Result: {"filters": {"severity": "high"}, "keywords": ["login"]} done'
        assert extract_json(text) == {"filters": {"severity": "high"}, "keywords": ["login"]}

    def test_array_chosen_when_it_starts_first(self):
        assert extract_json('Tags: ["auth", "ui"] are relevant') == ["auth", "ui"]

    def test_object_chosen_when_it_starts_first(self):
        assert extract_json('Answer {"tags": ["auth"]}') == {"tags": ["auth"]}


# ---------------------------------------------------------------------------
# 3. Failures
# ---------------------------------------------------------------------------
class TestParseFailures:

    def test_no_json_raises(self):
        with pytest.raises(ParseError):
            extract_json("The bug looks serious but I cannot classify it.")

    def test_empty_reply_raises(self):
        with pytest.raises(ParseError):
            extract_json("")

    def test_invalid_json_raises(self):
        with pytest.raises(ParseError, match="invalid JSON"):
            extract_json("{severity: high}")

    def test_preview_is_bounded(self):
        text = "x" * 500
        with pytest.raises(ParseError) as exc_info:
            extract_json(text)
        assert exc_info.value.preview == "x" * 200


# ---------------------------------------------------------------------------
# 4. Policies
# ---------------------------------------------------------------------------
class TestParseStructured:

    def test_valid_reply_decodes(self):
        result = parse_structured(
            '{"severity": "Critical", "priority": "P0", "reasoning": "Data loss"}', SeverityResult
        )
        assert result.severity == "critical"
        assert result.priority == "p0"

    def test_schema_mismatch_raises_under_raise(self):
        with pytest.raises(ParseError, match="SeverityResult"):
            parse_structured('{"severity": "catastrophic", "priority": "p0"}', SeverityResult)

    def test_top_level_array_is_a_mismatch(self):
        with pytest.raises(ParseError):
            parse_structured('["high"]', SeverityResult)

    def test_degrade_uses_fallback(self):
        result = parse_structured(
            "I watched the video and the user clicks save.",
            VideoAnalysisResult,
            policy=ParseFailurePolicy.DEGRADE,
            fallback=lambda text: VideoAnalysisResult(transcript=text),
        )
        assert result.title == "Untitled Recording"
        assert result.transcript == "I watched the video and the user clicks save."

    def test_degrade_requires_fallback(self):
        with pytest.raises(ValueError):
            parse_structured("{}", VideoAnalysisResult, policy=ParseFailurePolicy.DEGRADE)
