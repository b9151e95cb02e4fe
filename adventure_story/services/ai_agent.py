# SPDX-License-Identifier: MIT
"""LLM-backed analysis over data already gathered from the sources."""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from ..core.errors import AIAgentError, ConfigError
from ..sources import OpenRouterClient

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.3
_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")

BASE_PROMPT = """You are an AI agent specialized in analyzing and synthesizing canonical story information from multiple sources. Your role is to:

1. Analyze data from multiple APIs (AniList, Jikan, MangaDex, Wikis)
2. Identify canonical accuracy and resolve conflicts
3. Provide confidence scores and reasoning
4. Suggest improvements and alternatives

Always respond in valid JSON format with the following structure:
{
  "result": <your_analysis_result>,
  "confidence": <0.0_to_1.0_score>,
  "reasoning": "<your_detailed_reasoning>",
  "sources_used": ["<source_names>"],
  "suggestions": ["<optional_suggestions>"]
}"""

FOCUS = {
    "story": "Focus on: plot consistency, world-building accuracy, character relationships, timeline coherence, and cross-source validation.",
    "character": "Focus on: character traits, abilities, relationships, development arcs, appearance, and canonical accuracy across adaptations.",
    "location": "Focus on: geographical details, historical accuracy, connections to other locations, and consistency across sources.",
    "timeline": "Focus on: chronological accuracy, event sequencing, and consistency between anime, manga, and other adaptations.",
    "search": "Focus on: relevance ranking, duplicate removal, accuracy scoring, and result enhancement.",
    "validation": "Focus on: canonical accuracy assessment, evidence evaluation, and alternative suggestions.",
}


def system_prompt(data_type: str) -> str:
    return f"{BASE_PROMPT}\n\n{FOCUS.get(data_type, FOCUS['story'])}"


def user_prompt(task: str, context: Dict[str, Any], sources: List[Dict[str, Any]]) -> str:
    blocks = "\n\n".join(
        f"Source {i} ({s['name']}) [Confidence: {s['confidence']}]:\n{json.dumps(s['data'], indent=2, ensure_ascii=False)}"
        for i, s in enumerate(sources, 1)
    )
    return (
        f"Task: {task}\n\n"
        f"Context: {json.dumps(context, ensure_ascii=False)}\n\n"
        f"Sources to analyze:\n{blocks}\n\n"
        "Please analyze these sources and provide a comprehensive response following the JSON format "
        "specified in the system prompt."
    )


def as_sources(items: List[Any], label: str, default_confidence: float, score_key: str = "confidence") -> List[Dict[str, Any]]:
    out = []
    for i, item in enumerate(items or [], 1):
        item_dict = item if isinstance(item, dict) else {"value": item}
        out.append({
            "name": item_dict.get("source") or f"{label} {i}",
            "data": item,
            "confidence": item_dict.get(score_key) or default_confidence,
        })
    return out


def parse_response(text: str, sources: List[Dict[str, Any]]) -> Dict[str, Any]:
    """First {...} block of the reply; a fallback answer when it will not parse."""
    m = _JSON_BLOCK_RE.search(text or "")
    try:
        if not m:
            raise ValueError("No JSON found in AI response")
        parsed = json.loads(m.group(0))
        if not isinstance(parsed, dict):
            raise ValueError("AI response is not a JSON object")
    except ValueError as e:
        logger.warning("Failed to parse AI response: %s", e)
        return {
            "result": {"error": "Failed to parse AI response", "raw_response": text},
            "confidence": FALLBACK_CONFIDENCE,
            "reasoning": "AI response could not be parsed properly",
            "sources_used": [s["name"] for s in sources],
            "suggestions": [],
        }

    try:
        confidence = float(parsed.get("confidence", 0.5))
    except (TypeError, ValueError):
        confidence = 0.5
    return {
        "result": parsed.get("result") or {},
        "confidence": min(max(confidence, 0.0), 1.0),
        "reasoning": parsed.get("reasoning") or "No reasoning provided",
        "sources_used": parsed.get("sources_used") or [],
        "suggestions": parsed.get("suggestions") or [],
    }


def accuracy_label(confidence: float) -> str:
    if confidence > 0.8:
        return "high"
    if confidence > 0.6:
        return "medium"
    return "low"


class AIAgentService:
    def __init__(self, client: OpenRouterClient):
        self.client = client

    async def process(self, task: str, context: Dict[str, Any], data_type: str,
                      sources: List[Dict[str, Any]]) -> Dict[str, Any]:
        messages = [
            {"role": "system", "content": system_prompt(data_type)},
            {"role": "user", "content": user_prompt(task, context, sources)},
        ]
        try:
            text = await self.client.chat(messages)
        except (AIAgentError, ConfigError):
            raise
        except Exception as e:
            raise AIAgentError(f"AI agent processing failed: {e}") from e
        return parse_response(text, sources)

    async def analyze_story_data(self, source_name: str, source_data: List[Any],
                                 analysis_type: str = "comprehensive") -> Dict[str, Any]:
        r = await self.process(
            f'Analyze and synthesize story information for "{source_name}" from multiple sources',
            {"sourceName": source_name, "requestType": "comprehensive_analysis", "analysisType": analysis_type},
            "story",
            as_sources(source_data, "Source", 0.8),
        )
        return {
            "synthesized_info": r["result"],
            "ai_confidence": r["confidence"],
            "ai_reasoning": r["reasoning"],
            "sources_analyzed": r["sources_used"],
        }

    async def analyze_character_data(self, character_name: str, source_name: str, source_data: List[Any],
                                     analysis_focus: str = "comprehensive") -> Dict[str, Any]:
        r = await self.process(
            f'Analyze character "{character_name}" from "{source_name}" using multiple data sources',
            {"characterName": character_name, "sourceName": source_name,
             "requestType": "character_analysis", "analysisFocus": analysis_focus},
            "character",
            as_sources(source_data, "Source", 0.8),
        )
        return {
            "character_profile": r["result"],
            "ai_confidence": r["confidence"],
            "ai_reasoning": r["reasoning"],
            "canonical_accuracy": accuracy_label(r["confidence"]),
        }

    async def validate_canonical_accuracy(self, element_description: str, source_name: str,
                                          search_results: List[Any],
                                          validation_level: str = "moderate") -> Dict[str, Any]:
        r = await self.process(
            f'Validate if "{element_description}" is canonically accurate in "{source_name}"',
            {"elementDescription": element_description, "sourceName": source_name,
             "requestType": "canonical_validation", "validationLevel": validation_level},
            "validation",
            as_sources(search_results, "Result", 0.5, score_key="relevanceScore"),
        )
        return {
            "is_canonical": r["confidence"] > 0.7,
            "confidence_score": r["confidence"],
            "explanation": r["reasoning"],
            "alternative_suggestions": r["suggestions"],
            "evidence_sources": r["sources_used"],
        }

    async def enhance_search_results(self, query: str, source_name: str, raw_results: List[Any],
                                     enhancement_type: str = "comprehensive") -> List[Any]:
        sources = [{"name": f"Result {i}", "data": res,
                    "confidence": (res.get("relevanceScore") if isinstance(res, dict) else None) or 0.5}
                   for i, res in enumerate(raw_results or [], 1)]
        r = await self.process(
            f'Enhance and rank search results for "{query}" in "{source_name}"',
            {"query": query, "sourceName": source_name,
             "requestType": "search_enhancement", "enhancementType": enhancement_type},
            "search",
            sources,
        )
        result = r["result"]
        enhanced = result.get("enhanced_results") if isinstance(result, dict) else None
        return enhanced or list(raw_results or [])

    async def generate_adventure_context(self, adventure_data: Dict[str, Any],
                                         user_choices: Optional[List[Any]] = None,
                                         context_depth: str = "detailed") -> Dict[str, Any]:
        choices = list(user_choices or [])
        r = await self.process(
            "Generate rich context for adventure roleplay based on story data and user choices",
            {"adventureData": adventure_data, "userChoices": choices[-5:],
             "requestType": "context_generation", "contextDepth": context_depth},
            "story",
            [
                {"name": "Adventure Data", "data": adventure_data, "confidence": 0.9},
                {"name": "User Choices", "data": choices, "confidence": 1.0},
            ],
        )
        return {
            "enhanced_context": r["result"],
            "narrative_suggestions": r["suggestions"],
            "context_confidence": r["confidence"],
        }
