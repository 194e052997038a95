"""Tests for LLM completion parsing."""

import pytest

from src.matching.parsing import (
    LLMIdeaSuggestionResponse,
    LLMMatch,
    LLMMatchResponse,
    ParseFallback,
    ParseSuccess,
    extract_json_object,
    parse_llm_json,
)


class TestExtractJsonObject:
    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == '{"a": 1}'

    def test_surrounding_prose_and_fence(self):
        text = 'Sure!\n```json\n{"matches": []}\n```\nHope that helps {not json'
        assert extract_json_object(text) == '{"matches": []}'

    def test_nested_objects(self):
        text = 'x {"a": {"b": {"c": 1}}, "d": 2} y'
        assert extract_json_object(text) == '{"a": {"b": {"c": 1}}, "d": 2}'

    def test_braces_inside_strings(self):
        text = '{"reason": "uses {curly} braces }", "id": "1"} trailing }'
        assert extract_json_object(text) == '{"reason": "uses {curly} braces }", "id": "1"}'

    def test_escaped_quotes_inside_strings(self):
        text = r'{"reason": "said \"}\" loudly"} extra'
        assert extract_json_object(text) == r'{"reason": "said \"}\" loudly"}'

    @pytest.mark.parametrize("text", [None, "", "no json here", '{"unclosed": 1'])
    def test_nothing_to_extract(self, text):
        assert extract_json_object(text) is None


class TestParseLlmJson:
    def test_success(self):
        result = parse_llm_json(
            'Result: {"matches": [{"id": "fb_1", "confidence": 0.8, "reason": "direct ask"}]}',
            LLMMatchResponse,
        )

        assert isinstance(result, ParseSuccess)
        assert result.value.matches == [LLMMatch(id="fb_1", confidence=0.8, reason="direct ask")]

    def test_non_json_falls_back(self):
        result = parse_llm_json("I'm sorry, I cannot help with that.", LLMMatchResponse)

        assert isinstance(result, ParseFallback)
        assert "no JSON" in result.reason

    def test_invalid_json_falls_back(self):
        result = parse_llm_json("{'single': 'quotes'}", LLMMatchResponse)

        assert isinstance(result, ParseFallback)
        assert result.reason.startswith("invalid JSON")

    def test_schema_mismatch_falls_back(self):
        result = parse_llm_json('{"matches": "none"}', LLMMatchResponse)

        assert isinstance(result, ParseFallback)
        assert "schema mismatch" in result.reason

    def test_missing_matches_key_is_empty(self):
        result = parse_llm_json("{}", LLMMatchResponse)

        assert isinstance(result, ParseSuccess)
        assert result.value.matches == []

    def test_idea_response_with_proposal(self):
        result = parse_llm_json(
            '{"matches": [], "suggested_new_idea": '
            '{"should_create": true, "title": "Bulk export", "description": "CSV"}}',
            LLMIdeaSuggestionResponse,
        )

        assert isinstance(result, ParseSuccess)
        assert result.value.suggested_new_idea.should_create is True
        assert result.value.suggested_new_idea.title == "Bulk export"


class TestLLMMatch:
    @pytest.mark.parametrize(
        "raw, expected",
        [(1.7, 1.0), (-0.2, 0.0), ("0.75", 0.75), (None, 0.0), (float("nan"), 0.0)],
    )
    def test_confidence_clamped(self, raw, expected):
        assert LLMMatch(id="x", confidence=raw).confidence == expected

    def test_numeric_id_coerced(self):
        assert LLMMatch(id=42, confidence=0.9).id == "42"

    def test_non_numeric_confidence_rejected(self):
        with pytest.raises(ValueError):
            LLMMatch(id="x", confidence=["high"])

    def test_reason_defaults(self):
        assert LLMMatch(id="x", confidence=0.7, reason=None).reason == ""
