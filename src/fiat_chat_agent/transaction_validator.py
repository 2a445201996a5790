from __future__ import annotations

from typing import Any

from fiat_chat_agent.models import FIAT_CONVERSION, TransactionData, ValidationResult

TOKEN_REQUIRED = "Token to convert is required"
AMOUNT_REQUIRED = "Either token amount or fiat amount is required"
CURRENCY_SUGGESTION = "Consider specifying the fiat currency (NGN, USD, etc.)"


def _coerce(data: TransactionData | dict[str, Any]) -> TransactionData:
    if isinstance(data, TransactionData):
        return data
    return TransactionData.from_dict(data)


def missing_fields(data: TransactionData | dict[str, Any]) -> list[str]:
    txn = _coerce(data)
    if txn.type != FIAT_CONVERSION:
        return []
    missing: list[str] = []
    if not txn.token_in:
        missing.append("token")
    if not txn.amount_in and not txn.fiat_amount:
        missing.append("amount")
    return missing


def validate_transaction(data: TransactionData | dict[str, Any]) -> ValidationResult:
    txn = _coerce(data)
    errors: list[str] = []
    suggestions: list[str] = []

    if txn.type == FIAT_CONVERSION:
        if not txn.token_in:
            errors.append(TOKEN_REQUIRED)
        if not txn.amount_in and not txn.fiat_amount:
            errors.append(AMOUNT_REQUIRED)
        if not txn.fiat_currency:
            suggestions.append(CURRENCY_SUGGESTION)

    return ValidationResult(is_valid=not errors, errors=tuple(errors), suggestions=tuple(suggestions))
