from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from uuid import uuid4

from loguru import logger

from fiat_chat_agent.errors import SessionNotFoundError
from fiat_chat_agent.models import ChatHistoryState, ChatMessage, ChatSession, MessageMetadata, utc_now

DEFAULT_TITLE = "New conversation"
_TITLE_MAX_CHARS = 40


class ChatHistoryManager:
    """Owns the chat sessions of one history state and its current-session pointer.

    Mutations of a single session are serialised with a per-session lock;
    different sessions never wait on each other.
    """

    def __init__(self, state: ChatHistoryState | None = None, *, clock: Callable[[], datetime] | None = None):
        self._state = state if state is not None else ChatHistoryState()
        self._state.validate()
        self._clock = clock or utc_now
        self._locks: dict[str, asyncio.Lock] = {}
        self._current_lock = asyncio.Lock()

    @property
    def current_session_id(self) -> str | None:
        return self._state.current_session_id

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def _require(self, session_id: str) -> ChatSession:
        session = self._state.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def create_session(self, title: str | None = None, *, wallet_address: str | None = None) -> ChatSession:
        now = self._clock()
        session = ChatSession(
            id=str(uuid4()),
            title=(title or "").strip() or DEFAULT_TITLE,
            created_at=now,
            last_updated=now,
            wallet_address=wallet_address,
        )
        self._state.sessions[session.id] = session
        logger.debug(f"Created chat session {session.id}")
        return session

    def get_session(self, session_id: str) -> ChatSession | None:
        return self._state.sessions.get(session_id)

    def get_current(self) -> ChatSession | None:
        if self._state.current_session_id is None:
            return None
        return self._state.sessions.get(self._state.current_session_id)

    def list_sessions(self, *, limit: int = 50) -> list[ChatSession]:
        ordered = sorted(
            self._state.sessions.values(),
            key=lambda s: (s.last_updated, s.created_at),
            reverse=True,
        )
        return ordered[: max(1, limit)]

    async def set_current(self, session_id: str) -> None:
        self._require(session_id)
        async with self._lock_for(session_id):
            self._require(session_id)
            self._state.current_session_id = session_id

    async def ensure_current(self, *, wallet_address: str | None = None) -> ChatSession:
        """Return the current session, creating and selecting one when none is current."""
        async with self._current_lock:
            current = self.get_current()
            if current is not None:
                if wallet_address and current.wallet_address != wallet_address:
                    current.wallet_address = wallet_address
                return current
            session = self.create_session(wallet_address=wallet_address)
            await self.set_current(session.id)
            return session

    async def append_message(self, session_id: str, message: ChatMessage) -> ChatMessage:
        """Append ``message`` and return the stored copy carrying its conversation count."""
        self._require(session_id)
        async with self._lock_for(session_id):
            session = self._require(session_id)
            count = len(session.messages) + 1
            metadata = replace(message.metadata or MessageMetadata(), conversation_count=count)
            stored = replace(message, metadata=metadata)

            session.messages.append(stored)
            session.last_updated = max(self._clock(), session.last_updated)
            if session.title == DEFAULT_TITLE and stored.role == "user" and stored.content.strip():
                session.title = self._title_from(stored.content)
        return stored

    async def delete_session(self, session_id: str) -> None:
        self._require(session_id)
        async with self._lock_for(session_id):
            self._require(session_id)
            del self._state.sessions[session_id]
            if self._state.current_session_id == session_id:
                self._state.current_session_id = None
        self._locks.pop(session_id, None)
        logger.debug(f"Deleted chat session {session_id}")

    def snapshot(self) -> ChatHistoryState:
        return copy.deepcopy(self._state)

    def _title_from(self, content: str) -> str:
        text = " ".join(content.split())
        if len(text) <= _TITLE_MAX_CHARS:
            return text
        return text[: _TITLE_MAX_CHARS - 3] + "..."
