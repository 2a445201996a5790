from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import uuid4

Role = Literal["user", "assistant", "system"]
Intent = Literal["fiat_conversion", "query", "portfolio", "technical_support", "unknown"]
SuggestedActionType = Literal[
    "confirm_fiat",
    "connect_wallet",
    "approve_token",
    "check_portfolio",
    "market_rates",
    "learn_more",
    "cancel",
]

ROLES: frozenset[str] = frozenset({"user", "assistant", "system"})
INTENTS: frozenset[str] = frozenset({"fiat_conversion", "query", "portfolio", "technical_support", "unknown"})
SUGGESTED_ACTION_TYPES: frozenset[str] = frozenset({
    "confirm_fiat",
    "connect_wallet",
    "approve_token",
    "check_portfolio",
    "market_rates",
    "learn_more",
    "cancel",
})

FIAT_CONVERSION = "fiat_conversion"
SUPPORTED_TOKEN = "USDT"

# Attribute name -> wire key. Order is the rendering order of to_dict().
_TRANSACTION_FIELDS: dict[str, str] = {
    "token_in": "tokenIn",
    "amount_in": "amountIn",
    "fiat_amount": "fiatAmount",
    "fiat_currency": "fiatCurrency",
    "recipient": "recipient",
    "transaction_id": "transactionId",
    "tx_hash": "txHash",
}


def utc_now() -> datetime:
    return datetime.now(UTC)


def _to_iso(value: datetime) -> str:
    return value.isoformat()


def _from_iso(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _clean_text(value: Any) -> str | None:
    """Normalise a transaction field: numbers become strings, blanks become None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


@dataclass(frozen=True)
class TransactionData:
    type: str = FIAT_CONVERSION
    token_in: str | None = None
    amount_in: str | None = None
    fiat_amount: str | None = None
    fiat_currency: str | None = None
    recipient: str | None = None
    transaction_id: str | None = None
    tx_hash: str | None = None

    def merged_with(self, partial: dict[str, Any]) -> TransactionData:
        """Return a copy with every non-empty recognised key of ``partial`` applied.

        Keys outside the transaction vocabulary (``urgency``, ``preferredMethod``...)
        are ignored, and empty values never erase what earlier turns collected.
        """
        updates: dict[str, str] = {}
        for attr, key in _TRANSACTION_FIELDS.items():
            value = _clean_text(partial.get(key))
            if value is not None:
                updates[attr] = value
        if updates.get("token_in"):
            updates["token_in"] = updates["token_in"].upper()
        if updates.get("fiat_currency"):
            updates["fiat_currency"] = updates["fiat_currency"].upper()
        return replace(self, **updates)

    def to_dict(self) -> dict[str, str]:
        out: dict[str, str] = {"type": self.type}
        for attr, key in _TRANSACTION_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransactionData:
        base = cls(type=str(data.get("type") or FIAT_CONVERSION))
        return base.merged_with(data)


@dataclass(frozen=True)
class SuggestedAction:
    id: str
    type: str
    label: str
    data: dict[str, Any] | None = None
    priority: bool = False

    def __post_init__(self) -> None:
        if self.type not in SUGGESTED_ACTION_TYPES:
            raise ValueError(f"Unknown suggested action type: {self.type!r}")

    @classmethod
    def create(
        cls,
        action_type: SuggestedActionType,
        label: str,
        *,
        data: dict[str, Any] | None = None,
        priority: bool = False,
    ) -> SuggestedAction:
        return cls(id=str(uuid4()), type=action_type, label=label, data=data, priority=priority)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "type": self.type, "label": self.label}
        if self.data is not None:
            out["data"] = copy.deepcopy(self.data)
        if self.priority:
            out["priority"] = True
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SuggestedAction:
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            label=str(data.get("label", "")),
            data=data.get("data"),
            priority=bool(data.get("priority", False)),
        )


@dataclass(frozen=True)
class MessageMetadata:
    transaction_data: TransactionData | None = None
    suggested_actions: tuple[SuggestedAction, ...] = ()
    confirmation_required: bool = False
    auto_trigger_transaction: bool = False
    conversation_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.transaction_data is not None:
            out["transactionData"] = self.transaction_data.to_dict()
        if self.suggested_actions:
            out["suggestedActions"] = [a.to_dict() for a in self.suggested_actions]
        if self.confirmation_required:
            out["confirmationRequired"] = True
        if self.auto_trigger_transaction:
            out["autoTriggerTransaction"] = True
        if self.conversation_count is not None:
            out["conversationCount"] = self.conversation_count
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MessageMetadata:
        txn = data.get("transactionData")
        count = data.get("conversationCount")
        return cls(
            transaction_data=TransactionData.from_dict(txn) if isinstance(txn, dict) else None,
            suggested_actions=tuple(SuggestedAction.from_dict(a) for a in data.get("suggestedActions", [])),
            confirmation_required=bool(data.get("confirmationRequired", False)),
            auto_trigger_transaction=bool(data.get("autoTriggerTransaction", False)),
            conversation_count=int(count) if count is not None else None,
        )


@dataclass(frozen=True)
class ChatMessage:
    id: str
    role: str
    content: str
    timestamp: datetime
    metadata: MessageMetadata | None = None

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    @classmethod
    def create(cls, role: Role, content: str, metadata: MessageMetadata | None = None) -> ChatMessage:
        return cls(id=str(uuid4()), role=role, content=content, timestamp=utc_now(), metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": _to_iso(self.timestamp),
        }
        if self.metadata is not None:
            out["metadata"] = self.metadata.to_dict()
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        metadata = data.get("metadata")
        return cls(
            id=str(data["id"]),
            role=str(data["role"]),
            content=str(data.get("content", "")),
            timestamp=_from_iso(data["timestamp"]),
            metadata=MessageMetadata.from_dict(metadata) if isinstance(metadata, dict) else None,
        )


@dataclass
class ChatSession:
    id: str
    title: str
    created_at: datetime
    last_updated: datetime
    messages: list[ChatMessage] = field(default_factory=list)
    wallet_address: str | None = None

    def latest_transaction(self) -> TransactionData | None:
        """Most recent transaction snapshot carried by any message in this session."""
        for message in reversed(self.messages):
            if message.metadata is not None and message.metadata.transaction_data is not None:
                return message.metadata.transaction_data
        return None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "createdAt": _to_iso(self.created_at),
            "lastUpdated": _to_iso(self.last_updated),
        }
        if self.wallet_address:
            out["walletAddress"] = self.wallet_address
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatSession:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            created_at=_from_iso(data["createdAt"]),
            last_updated=_from_iso(data["lastUpdated"]),
            messages=[ChatMessage.from_dict(m) for m in data.get("messages", [])],
            wallet_address=data.get("walletAddress"),
        )


@dataclass
class ChatHistoryState:
    current_session_id: str | None = None
    sessions: dict[str, ChatSession] = field(default_factory=dict)

    def validate(self) -> None:
        if self.current_session_id is not None and self.current_session_id not in self.sessions:
            raise ValueError(f"Current session does not exist: {self.current_session_id}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentSessionId": self.current_session_id,
            "sessions": [s.to_dict() for s in self.sessions.values()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatHistoryState:
        sessions = [ChatSession.from_dict(s) for s in data.get("sessions", [])]
        state = cls(
            current_session_id=data.get("currentSessionId"),
            sessions={s.id: s for s in sessions},
        )
        state.validate()
        return state


@dataclass(frozen=True)
class AIAnalysisResult:
    intent: str
    confidence: float
    extracted_data: dict[str, Any] = field(default_factory=dict)
    required_questions: tuple[str, ...] = ()
    suggested_response: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent,
            "confidence": self.confidence,
            "extractedData": copy.deepcopy(self.extracted_data),
            "requiredQuestions": list(self.required_questions),
            "suggestedResponse": self.suggested_response,
        }


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class BankAccount:
    bank_code: str
    bank_name: str
    account_number: str
    account_name: str
    transfer_code: str | None = None


@dataclass(frozen=True)
class FiatTransactionParams:
    """Input handed to the wallet/bank-transfer collaborator for a validated conversion."""

    token: str
    amount: str
    fiat_amount: str
    transaction_id: str
    bank_account: BankAccount | None = None
