#!/usr/bin/env python3
"""
Tests for the AI safety scorer, the Gemini client and JSON extraction.
"""

import asyncio
import json
import os
import sys

import httpx
import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from safejobs.config import LLMConfig
from safejobs.llm_utils import LLMClient, LLMResponse, parse_json_payload
from safejobs.scorer import (
    DEFAULT_SAFETY_NOTE,
    DEFAULT_SAFETY_SCORE,
    SafetyAnalysis,
    SafetyScorer,
    clamp_score,
)


class FakeLLM:
    """Returns canned responses and records prompts."""

    def __init__(self, text: str = "", success: bool = True):
        self.text = text
        self.success = success
        self.prompts = []

    async def generate(self, prompt, temperature=None, max_tokens=None):
        self.prompts.append(prompt)
        if not self.success:
            return LLMResponse(success=False, response_text="", raw_response={}, error="boom")
        return LLMResponse(success=True, response_text=self.text, raw_response={})


def analyze(text: str, description: str = "Pick apples in the orchard", success: bool = True):
    scorer = SafetyScorer(FakeLLM(text, success))
    return asyncio.run(scorer.analyze_job_safety(description))


def is_default(analysis: SafetyAnalysis) -> bool:
    return (
        analysis.safety_score == DEFAULT_SAFETY_SCORE
        and analysis.safety_notes == [DEFAULT_SAFETY_NOTE]
    )


# (model output, expected payload)
payload_cases = [
    ('{"a": 1}', {"a": 1}),
    ('Sure! Here it is:\n```json\n{"a": 1}\n```', {"a": 1}),
    ('prefix {"a": "has } brace"} suffix', {"a": "has } brace"}),
    ('{not json} then {"b": 2}', {"b": 2}),
    ('{"outer": {"inner": [1, 2]}}', {"outer": {"inner": [1, 2]}}),
    ("no json here", None),
    ("", None),
    ("[1, 2, 3]", None),
]


@pytest.mark.parametrize("text,expected", payload_cases)
def test_parse_json_payload_object(text, expected):
    assert parse_json_payload(text) == expected


def test_parse_json_payload_array():
    assert parse_json_payload('IDs: ["a", "b"]', expected=list) == ["a", "b"]
    assert parse_json_payload('{"ids": ["a"]}', expected=list) == ["a"]
    assert parse_json_payload("none", expected=list) is None


@pytest.mark.parametrize("value,expected", [
    (7, 7),
    (7.6, 8),
    ("8", 8),
    (0, 1),
    (-3, 1),
    (15, 10),
    ("high", None),
    (None, None),
    (True, None),
    (float("nan"), None),
])
def test_clamp_score(value, expected):
    assert clamp_score(value) == expected


def test_well_formed_response():
    text = json.dumps({"safetyScore": 8, "safetyNotes": ["Outdoor work", "Heavy lifting", "Paid weekly"]})
    analysis = analyze(text)
    assert analysis.safety_score == 8
    assert analysis.safety_notes == ["Outdoor work", "Heavy lifting", "Paid weekly"]


def test_response_wrapped_in_prose():
    analysis = analyze('Here you go: {"safetyScore": 3, "safetyNotes": ["Cash only"]} Hope it helps.')
    assert analysis.safety_score == 3
    assert analysis.safety_notes == ["Cash only"]


def test_score_is_clamped():
    assert analyze('{"safetyScore": 42, "safetyNotes": []}').safety_score == 10
    assert analyze('{"safetyScore": -1, "safetyNotes": []}').safety_score == 1


def test_notes_truncated_to_three():
    text = json.dumps({"safetyScore": 6, "safetyNotes": ["a", "b", "c", "d", "e"]})
    assert analyze(text).safety_notes == ["a", "b", "c"]


@pytest.mark.parametrize("text", [
    "I cannot help with that.",
    '{"safetyNotes": ["no score"]}',
    '{"safetyScore": "very safe", "safetyNotes": []}',
    "",
])
def test_unusable_responses_give_default(text):
    assert is_default(analyze(text))


def test_failed_call_gives_default():
    assert is_default(analyze("", success=False))


def test_blank_description_skips_model():
    llm = FakeLLM('{"safetyScore": 9, "safetyNotes": []}')
    analysis = asyncio.run(SafetyScorer(llm).analyze_job_safety("   "))
    assert is_default(analysis)
    assert llm.prompts == []


def test_prompt_contains_description():
    llm = FakeLLM('{"safetyScore": 9, "safetyNotes": []}')
    asyncio.run(SafetyScorer(llm).analyze_job_safety("Night shift warehouse packing"))
    assert "Night shift warehouse packing" in llm.prompts[0]


def test_analysis_to_dict():
    assert SafetyAnalysis(7, ["x"]).to_dict() == {"safetyScore": 7, "safetyNotes": ["x"]}


def make_client(handler, api_key="test-key") -> LLMClient:
    config = LLMConfig(api_key=api_key, base_url="https://gemini.test/")
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LLMClient(config, client=http)


def test_llm_client_generate():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "world"}]}}]
        })

    client = make_client(handler)
    response = asyncio.run(client.generate("Say hi", temperature=0.1))

    assert response.success
    assert response.response_text == "Hello world"
    assert seen["url"] == "https://gemini.test/v1beta/models/gemini-1.5-flash:generateContent"
    assert seen["key"] == "test-key"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "Say hi"
    assert seen["body"]["generationConfig"]["temperature"] == 0.1
    assert seen["body"]["generationConfig"]["maxOutputTokens"] == 1024


def test_llm_client_http_error():
    client = make_client(lambda request: httpx.Response(500, json={}))
    response = asyncio.run(client.generate("x"))
    assert not response.success
    assert response.error == "Gemini API error: 500"


def test_llm_client_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    response = asyncio.run(make_client(handler).generate("x"))
    assert not response.success
    assert response.error == "Gemini request timed out"


def test_llm_client_without_key_makes_no_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    response = asyncio.run(make_client(handler, api_key=None).generate("x"))
    assert not response.success
    assert response.error == "Gemini API key not configured"
    assert calls == []


def test_llm_client_empty_candidates():
    client = make_client(lambda request: httpx.Response(200, json={"candidates": []}))
    response = asyncio.run(client.generate("x"))
    assert response.success
    assert response.response_text == ""


@pytest.mark.parametrize("body", [
    {"candidates": ["oops"]},
    {"candidates": [{"content": {"parts": [{"text": None}]}}]},
    {"candidates": [{"content": "text"}]},
    {"candidates": [{"content": {"parts": "text"}}]},
    {"candidates": {"content": {}}},
    ["not", "an", "object"],
])
def test_unexpected_response_shapes_give_default_analysis(body):
    client = make_client(lambda request: httpx.Response(200, json=body))
    analysis = asyncio.run(SafetyScorer(client).analyze_job_safety("Warehouse job"))
    assert is_default(analysis)


def test_non_text_parts_are_skipped():
    body = {"candidates": [{"content": {"parts": [
        {"text": None},
        {"inlineData": {}},
        {"text": '{"safetyScore": 7, "safetyNotes": ["ok"]}'},
    ]}}]}
    client = make_client(lambda request: httpx.Response(200, json=body))
    analysis = asyncio.run(SafetyScorer(client).analyze_job_safety("Warehouse job"))

    assert analysis.safety_score == 7
    assert analysis.safety_notes == ["ok"]


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
