from __future__ import annotations

import json
from typing import Any

from fiat_chat_agent.models import SUPPORTED_TOKEN

# One worked example per intent. The interpreter must reproduce these exactly
# when a model echoes one back, so they are kept as data rather than prose.
WORKED_EXAMPLES: dict[str, dict[str, Any]] = {
    "fiat_conversion": {
        "intent": "fiat_conversion",
        "confidence": 0.9,
        "extractedData": {
            "type": "fiat_conversion",
            "tokenIn": "USDT",
            "amountIn": "500",
            "fiatCurrency": "NGN",
        },
        "requiredQuestions": [],
        "suggestedResponse": (
            "Perfect! I can help you convert 500 USDT to Nigerian Naira. "
            "Let me prepare the conversion details for you to review and sign."
        ),
    },
    "query": {
        "intent": "query",
        "confidence": 0.95,
        "extractedData": {},
        "requiredQuestions": [],
        "suggestedResponse": (
            "Hello! I'm your USDT-to-fiat conversion specialist. I can help you convert "
            "your USDT to local currency (NGN, USD, EUR) through secure bank transfers. "
            "What can I help you with today?"
        ),
    },
    "portfolio": {
        "intent": "portfolio",
        "confidence": 0.9,
        "extractedData": {},
        "requiredQuestions": [],
        "suggestedResponse": (
            "I can help you check your USDT balance and evaluate conversion opportunities. "
            "Let me connect to your wallet to fetch your current balance."
        ),
    },
    "technical_support": {
        "intent": "technical_support",
        "confidence": 0.85,
        "extractedData": {},
        "requiredQuestions": ["Which step of the conversion were you on when the problem started?"],
        "suggestedResponse": (
            "Sorry you're running into trouble. Let's get it sorted out together."
        ),
    },
    "unknown": {
        "intent": "unknown",
        "confidence": 0.2,
        "extractedData": {},
        "requiredQuestions": ["Could you tell me a bit more about what you'd like to do?"],
        "suggestedResponse": (
            "I'm not sure I followed that. I can convert USDT to NGN, USD or EUR, "
            "check your balance, or answer questions about the process."
        ),
    },
}

_RESPONSE_SHAPE = {
    "intent": "fiat_conversion|query|portfolio|technical_support|unknown",
    "confidence": 0.8,
    "extractedData": {
        "type": "fiat_conversion",
        "tokenIn": "USDT",
        "amountIn": "1000",
        "fiatAmount": "1000",
        "fiatCurrency": "NGN",
    },
    "requiredQuestions": ["What amount of USDT would you like to convert?"],
    "suggestedResponse": "I'd be happy to help you convert your USDT to Nigerian Naira! ...",
}


def _render_context(context: dict[str, Any] | None) -> str:
    if not context:
        return "None"
    return json.dumps(context, sort_keys=True, default=str, ensure_ascii=False)


def _render_examples() -> str:
    blocks = []
    for intent, example in WORKED_EXAMPLES.items():
        blocks.append(f"{intent.upper()}:\n{json.dumps(example, indent=2, ensure_ascii=False)}")
    return "\n\n".join(blocks)


def build_analysis_prompt(message: str, context: dict[str, Any] | None = None) -> str:
    # json.dumps quotes and escapes the message, so it cannot close its own delimiters.
    quoted_message = json.dumps(message, ensure_ascii=False)
    return f"""\
You are a professional AI agent specialising in cryptocurrency-to-fiat conversions. \
You help users convert their crypto assets to local currency through secure bank transfers.

PERSONALITY & TONE:
- Professional yet friendly and approachable
- Clear, concise communication
- Proactive in guiding users through the conversion process

User Message: {quoted_message}
Context: {_render_context(context)}

CORE CAPABILITIES:
1. {SUPPORTED_TOKEN} to fiat conversions ({SUPPORTED_TOKEN} -> NGN, USD, EUR)
2. {SUPPORTED_TOKEN} market rate information
3. Transaction tracking and receipts
4. Account setup and verification guidance
5. {SUPPORTED_TOKEN} portfolio balance checks

EXTRACTION GUIDELINES:
- Set intent to "fiat_conversion" only when the user explicitly wants to convert {SUPPORTED_TOKEN} to fiat
- Set intent to "query" for questions, information requests, greetings or casual conversation
- Set intent to "portfolio" for {SUPPORTED_TOKEN} balance checks and asset inquiries
- Set intent to "technical_support" for problems with wallets, transfers or the app
- Set intent to "unknown" only if the request is completely unclear
- Always assume {SUPPORTED_TOKEN} when the user refers to tokens; it is the only supported asset
- Ask targeted follow-up questions in "requiredQuestions" when details are missing

Respond with exactly one JSON object in this format and nothing else:
{json.dumps(_RESPONSE_SHAPE, indent=2, ensure_ascii=False)}

EXAMPLE RESPONSES BY INTENT:

{_render_examples()}

Be conversational and helpful. Always focus on {SUPPORTED_TOKEN} stablecoin conversions."""


def build_follow_up_prompt(intent: str, missing_data: list[str]) -> str:
    missing = ", ".join(missing_data) if missing_data else "None"
    return f"""\
Generate a natural follow-up question for a {SUPPORTED_TOKEN}-to-fiat conversion assistant.

Intent: {intent}
Missing Data: {missing}

Generate a single, conversational question to collect the missing information. \
Be helpful and specific about what you need. Reply with the question only."""
