"""Turn raw model text into an ``AIAnalysisResult``.

Two fallbacks exist and must stay distinct:

* the model answered but the text is unusable (no JSON object, or it does not
  decode): ``unusable_output_result`` echoes the raw text back so the dialogue
  can continue;
* the model call itself failed or timed out: ``model_failure_result`` asks the
  user to rephrase. Only the caller of the provider can know this happened, so
  ``parse_analysis_response`` never produces it.
"""

from __future__ import annotations

import json
import math
from typing import Any

from loguru import logger

from fiat_chat_agent.json_extraction import extract_json_candidate
from fiat_chat_agent.models import INTENTS, AIAnalysisResult

DEFAULT_CONFIDENCE = 0.5
DEFAULT_SUGGESTED_RESPONSE = "How can I help you today?"
EMPTY_RESPONSE_FALLBACK = "How can I help you with your crypto-to-fiat conversion today?"
MODEL_FAILURE_RESPONSE = "I'm having trouble understanding your request. Could you please rephrase it?"


def unusable_output_result(raw: str) -> AIAnalysisResult:
    return AIAnalysisResult(
        intent="unknown",
        confidence=0.0,
        extracted_data={},
        required_questions=(),
        suggested_response=raw if raw and raw.strip() else EMPTY_RESPONSE_FALLBACK,
    )


def model_failure_result() -> AIAnalysisResult:
    return AIAnalysisResult(
        intent="unknown",
        confidence=0.0,
        extracted_data={},
        required_questions=(),
        suggested_response=MODEL_FAILURE_RESPONSE,
    )


def _read_intent(parsed: dict[str, Any]) -> str:
    value = parsed.get("intent")
    if isinstance(value, str) and value in INTENTS:
        return value
    return "unknown"


def _read_confidence(parsed: dict[str, Any]) -> float:
    value = parsed.get("confidence")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except OverflowError:
        return 1.0 if value > 0 else 0.0
    if math.isnan(number):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, number))


def _read_extracted_data(parsed: dict[str, Any]) -> dict[str, Any]:
    value = parsed.get("extractedData")
    if isinstance(value, dict):
        return value
    return {}


def _read_required_questions(parsed: dict[str, Any]) -> tuple[str, ...]:
    value = parsed.get("requiredQuestions")
    if not isinstance(value, list):
        return ()
    return tuple(q for q in value if isinstance(q, str) and q.strip())


def _read_suggested_response(parsed: dict[str, Any]) -> str:
    value = parsed.get("suggestedResponse")
    if isinstance(value, str) and value.strip():
        return value
    return DEFAULT_SUGGESTED_RESPONSE


def parse_analysis_response(raw: str) -> AIAnalysisResult:
    """Interpret model output. Never raises; always returns a well-formed result."""
    raw = raw if isinstance(raw, str) else ""

    candidate = extract_json_candidate(raw)
    if candidate is None:
        logger.warning(f"Model response contained no JSON object ({len(raw)} chars)")
        return unusable_output_result(raw)

    try:
        parsed = json.loads(candidate)
    except (ValueError, RecursionError) as ex:
        logger.warning(f"Failed to parse model response: {ex}; text={candidate[:200]!r}")
        return unusable_output_result(raw)

    if not isinstance(parsed, dict):
        logger.warning(f"Model response JSON is not an object: {type(parsed).__name__}")
        return unusable_output_result(raw)

    result = AIAnalysisResult(
        intent=_read_intent(parsed),
        confidence=_read_confidence(parsed),
        extracted_data=_read_extracted_data(parsed),
        required_questions=_read_required_questions(parsed),
        suggested_response=_read_suggested_response(parsed),
    )
    logger.debug(
        f"Parsed analysis: intent={result.intent}, confidence={result.confidence}, "
        f"fields={sorted(result.extracted_data)}, questions={len(result.required_questions)}"
    )
    return result
