from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from fiat_chat_agent.models import AIAnalysisResult, TransactionData, ValidationResult
from fiat_chat_agent.prompt_builder import build_analysis_prompt, build_follow_up_prompt
from fiat_chat_agent.providers import ModelProvider
from fiat_chat_agent.response_interpreter import model_failure_result, parse_analysis_response
from fiat_chat_agent.transaction_validator import validate_transaction

FOLLOW_UP_FALLBACK = "Could you provide more details about your request?"


class FiatAssistant:
    def __init__(self, provider: ModelProvider, *, timeout_seconds: float = 30.0):
        self._provider = provider
        self._timeout_seconds = timeout_seconds

    async def _generate(self, prompt: str) -> str:
        return await asyncio.wait_for(self._provider.generate(prompt), timeout=self._timeout_seconds)

    async def analyze_user_message(self, message: str, context: dict[str, Any] | None = None) -> AIAnalysisResult:
        """Classify one user turn. Provider failures and timeouts become the rephrase fallback."""
        prompt = build_analysis_prompt(message, context)
        try:
            raw = await self._generate(prompt)
        except TimeoutError:
            logger.error(f"Model call timed out after {self._timeout_seconds}s")
            return model_failure_result()
        except Exception as ex:
            logger.error(f"AI analysis error: {type(ex).__name__}: {ex}")
            return model_failure_result()
        return parse_analysis_response(raw)

    async def generate_follow_up_question(self, intent: str, missing_data: list[str]) -> str:
        prompt = build_follow_up_prompt(intent, missing_data)
        try:
            text = await self._generate(prompt)
        except Exception as ex:
            logger.error(f"Failed to generate follow-up question: {type(ex).__name__}: {ex}")
            return FOLLOW_UP_FALLBACK
        return text.strip() or FOLLOW_UP_FALLBACK

    def validate_transaction_data(self, data: TransactionData | dict[str, Any]) -> ValidationResult:
        return validate_transaction(data)
