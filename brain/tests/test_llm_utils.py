"""Tests for parse_llm_json."""

from brain.common.llm_utils import parse_llm_json


class TestParseLLMJson:
    def test_plain_object(self):
        assert parse_llm_json('{"intent": "note"}') == {"intent": "note"}

    def test_fenced_json(self):
        raw = 'Here you go:\n```json\n{"intent": "noise"}\n```'
        assert parse_llm_json(raw) == {"intent": "noise"}

    def test_fence_without_language(self):
        assert parse_llm_json('```\n{"a": 1}\n```') == {"a": 1}

    def test_object_embedded_in_prose(self):
        raw = 'Sure! {"intent": "question", "isMeaningful": true} Hope that helps.'
        assert parse_llm_json(raw) == {"intent": "question", "isMeaningful": True}

    def test_garbage_returns_empty(self):
        assert parse_llm_json("not json at all") == {}

    def test_empty_returns_empty(self):
        assert parse_llm_json("") == {}

    def test_non_object_json_returns_empty(self):
        assert parse_llm_json("[1, 2, 3]") == {}
        assert parse_llm_json("42") == {}
