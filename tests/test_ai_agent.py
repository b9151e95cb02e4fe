import asyncio
import json

import pytest
import requests

from adventure_story.core.errors import AIAgentError, ConfigError
from adventure_story.services.ai_agent import (
    FALLBACK_CONFIDENCE,
    AIAgentService,
    accuracy_label,
    parse_response,
)
from conftest import FakeSource

SOURCES = [{"name": "Jikan", "data": {}, "confidence": 0.8}]


def reply(**body):
    return "Here you go:\n" + json.dumps(body) + "\nHope that helps."


def test_parse_response_reads_embedded_json():
    parsed = parse_response(reply(result={"a": 1}, confidence=0.9, reasoning="ok", sources_used=["Jikan"]), SOURCES)
    assert parsed == {"result": {"a": 1}, "confidence": 0.9, "reasoning": "ok", "sources_used": ["Jikan"],
                      "suggestions": []}


@pytest.mark.parametrize("raw,expected", [(1.7, 1.0), (-2, 0.0), ("high", 0.5)])
def test_parse_response_clamps_confidence(raw, expected):
    assert parse_response(reply(confidence=raw), SOURCES)["confidence"] == expected


@pytest.mark.parametrize("text", ["no json here", "{not: valid}", ""])
def test_parse_response_falls_back(text):
    parsed = parse_response(text, SOURCES)
    assert parsed["confidence"] == FALLBACK_CONFIDENCE
    assert parsed["result"]["error"] == "Failed to parse AI response"
    assert parsed["sources_used"] == ["Jikan"]


def test_accuracy_label():
    assert [accuracy_label(c) for c in (0.9, 0.7, 0.6)] == ["high", "medium", "low"]


def test_process_wraps_transport_errors():
    client = FakeSource("openrouter", chat=requests.ConnectionError("boom"))
    with pytest.raises(AIAgentError, match="AI agent processing failed"):
        asyncio.run(AIAgentService(client).process("t", {}, "story", SOURCES))


def test_process_keeps_config_errors():
    client = FakeSource("openrouter", chat=ConfigError("OPENROUTER_API_KEY is not set"))
    with pytest.raises(ConfigError):
        asyncio.run(AIAgentService(client).process("t", {}, "story", SOURCES))


def test_process_sends_focused_prompts():
    client = FakeSource("openrouter", chat=reply(result="x", confidence=0.5))
    asyncio.run(AIAgentService(client).process("Find Luffy", {"q": 1}, "character", SOURCES))

    messages = client.calls[0][1][0]
    assert messages[0]["role"] == "system"
    assert "character traits" in messages[0]["content"]
    assert messages[1]["content"].startswith("Task: Find Luffy")
    assert "Source 1 (Jikan) [Confidence: 0.8]" in messages[1]["content"]


def test_validate_canonical_threshold():
    client = FakeSource("openrouter", chat=reply(result={}, confidence=0.75, suggestions=["Sharingan"]))
    out = asyncio.run(AIAgentService(client).validate_canonical_accuracy("Mangekyo", "Naruto", []))
    assert out["is_canonical"] is True
    assert out["alternative_suggestions"] == ["Sharingan"]


def test_enhance_falls_back_to_raw_results():
    raw = [{"name": "Zoro", "relevanceScore": 0.9}]
    client = FakeSource("openrouter", chat="not json")
    assert asyncio.run(AIAgentService(client).enhance_search_results("zoro", "One Piece", raw)) == raw


def test_enhance_uses_enhanced_results():
    client = FakeSource("openrouter", chat=reply(result={"enhanced_results": [{"name": "Zoro!"}]}))
    out = asyncio.run(AIAgentService(client).enhance_search_results("zoro", "One Piece", [{"name": "Zoro"}]))
    assert out == [{"name": "Zoro!"}]


def test_adventure_context_uses_last_five_choices():
    client = FakeSource("openrouter", chat=reply(result={"scene": "dock"}, confidence=0.6, suggestions=["sail"]))
    choices = [f"c{i}" for i in range(8)]
    out = asyncio.run(AIAgentService(client).generate_adventure_context({"source": "One Piece"}, choices))

    assert out == {"enhanced_context": {"scene": "dock"}, "narrative_suggestions": ["sail"],
                   "context_confidence": 0.6}
    user = client.calls[0][1][0][1]["content"]
    assert '"userChoices": ["c3", "c4", "c5", "c6", "c7"]' in user
