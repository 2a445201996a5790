from __future__ import annotations

from dataclasses import replace

from loguru import logger

from fiat_chat_agent.assistant import FiatAssistant
from fiat_chat_agent.history import ChatHistoryManager
from fiat_chat_agent.models import (
    FIAT_CONVERSION,
    SUPPORTED_TOKEN,
    AIAnalysisResult,
    BankAccount,
    ChatMessage,
    ChatSession,
    FiatTransactionParams,
    MessageMetadata,
    SuggestedAction,
    TransactionData,
    ValidationResult,
)
from fiat_chat_agent.transaction_validator import missing_fields, validate_transaction


class ConversationService:
    """Runs one dialogue turn: record, analyse, reconcile the transaction, reply."""

    def __init__(self, assistant: FiatAssistant, history: ChatHistoryManager):
        self._assistant = assistant
        self._history = history

    async def handle_user_message(self, text: str, *, wallet_address: str | None = None) -> ChatMessage:
        session = await self._history.ensure_current(wallet_address=wallet_address)
        pending = _open_transaction(session)
        user_message = await self._history.append_message(session.id, ChatMessage.create("user", text))

        context = {
            "walletConnected": bool(session.wallet_address),
            "pendingTransaction": pending.to_dict() if pending is not None else None,
            "conversationCount": user_message.metadata.conversation_count,
        }
        analysis = await self._assistant.analyze_user_message(text, context)
        logger.info(f"Session {session.id}: intent={analysis.intent} confidence={analysis.confidence:.2f}")

        transaction: TransactionData | None = None
        validation: ValidationResult | None = None
        content = analysis.suggested_response
        if analysis.intent == FIAT_CONVERSION:
            transaction = self._merge_transaction(pending, analysis)
            validation = validate_transaction(transaction)
            if not validation.is_valid:
                content = await self._with_questions(analysis, transaction)

        metadata = self._build_metadata(session, analysis, transaction, validation)
        reply = ChatMessage.create("assistant", content, metadata)
        return await self._history.append_message(session.id, reply)

    async def record_transfer_result(self, session_id: str, transaction_id: str, tx_hash: str | None = None) -> ChatMessage:
        """Record the ids returned by the wallet/bank-transfer side against the session's transaction."""
        session = self._history.get_session(session_id)
        pending = session.latest_transaction() if session is not None else None
        updated = (pending or TransactionData()).merged_with({"transactionId": transaction_id, "txHash": tx_hash})
        note = f"Transfer submitted: {transaction_id}"
        if tx_hash:
            note += f" (tx {tx_hash})"
        message = ChatMessage.create("system", note, MessageMetadata(transaction_data=updated))
        return await self._history.append_message(session_id, message)

    def _merge_transaction(self, pending: TransactionData | None, analysis: AIAnalysisResult) -> TransactionData:
        merged = (pending or TransactionData()).merged_with(analysis.extracted_data)
        if merged.token_in is None and (merged.amount_in or merged.fiat_amount):
            merged = replace(merged, token_in=SUPPORTED_TOKEN)
        return merged

    async def _with_questions(self, analysis: AIAnalysisResult, transaction: TransactionData) -> str:
        questions = list(analysis.required_questions)
        if not questions:
            questions.append(
                await self._assistant.generate_follow_up_question(analysis.intent, missing_fields(transaction))
            )
        parts = [analysis.suggested_response, *(q for q in questions if q not in analysis.suggested_response)]
        return "\n\n".join(p for p in parts if p)

    def _build_metadata(
        self,
        session: ChatSession,
        analysis: AIAnalysisResult,
        transaction: TransactionData | None,
        validation: ValidationResult | None,
    ) -> MessageMetadata:
        wallet_connected = bool(session.wallet_address)
        actions: list[SuggestedAction] = []
        confirmation_required = False
        auto_trigger = False

        if analysis.intent == FIAT_CONVERSION and transaction is not None and validation is not None:
            if validation.is_valid:
                if not wallet_connected:
                    actions.append(SuggestedAction.create("connect_wallet", "Connect wallet", priority=True))
                actions.append(
                    SuggestedAction.create(
                        "confirm_fiat",
                        f"Convert {transaction.amount_in or transaction.fiat_amount} {transaction.token_in}",
                        data=transaction.to_dict(),
                        priority=wallet_connected,
                    )
                )
                actions.append(SuggestedAction.create("cancel", "Cancel"))
                confirmation_required = True
                auto_trigger = wallet_connected
            else:
                actions.append(SuggestedAction.create("market_rates", "Check rates"))
                actions.append(SuggestedAction.create("cancel", "Cancel"))
        elif analysis.intent == "portfolio":
            actions.append(SuggestedAction.create("check_portfolio", "Check USDT balance", priority=wallet_connected))
            if not wallet_connected:
                actions.append(SuggestedAction.create("connect_wallet", "Connect wallet", priority=True))
        elif analysis.intent in ("query", "technical_support"):
            actions.append(SuggestedAction.create("market_rates", "Check rates"))
            actions.append(SuggestedAction.create("learn_more", "Learn more"))
        else:
            actions.append(SuggestedAction.create("learn_more", "What can you do?"))

        return MessageMetadata(
            transaction_data=transaction,
            suggested_actions=tuple(actions),
            confirmation_required=confirmation_required,
            auto_trigger_transaction=auto_trigger,
        )


def _open_transaction(session: ChatSession) -> TransactionData | None:
    """Latest snapshot still being filled in; a submitted transfer starts the next one afresh."""
    latest = session.latest_transaction()
    if latest is None or latest.transaction_id or latest.tx_hash:
        return None
    return latest


def prepare_transfer(data: TransactionData, *, bank_account: BankAccount | None = None) -> FiatTransactionParams:
    """Shape a validated conversion for the wallet/bank-transfer side."""
    validation = validate_transaction(data)
    if not validation.is_valid:
        raise ValueError("; ".join(validation.errors))
    return FiatTransactionParams(
        token=data.token_in or SUPPORTED_TOKEN,
        amount=data.amount_in or "",
        fiat_amount=data.fiat_amount or "",
        transaction_id=data.transaction_id or "",
        bank_account=bank_account,
    )
