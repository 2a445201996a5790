from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from loguru import logger

from fiat_chat_agent.models import ChatHistoryState, ChatMessage, ChatSession


class HistoryStore:
    """SQLite persistence for a ``ChatHistoryState``.

    ``save`` replaces the stored state wholesale inside one transaction, so a
    failed save leaves the previous state intact.
    """

    def __init__(self, db_path: str):
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self._db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._initialize_schema()

    def close(self) -> None:
        self._conn.close()

    def execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        return self._conn.execute(query, params)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        try:
            yield
        except BaseException:
            self._conn.rollback()
            raise
        else:
            self._conn.commit()

    def load(self) -> ChatHistoryState:
        sessions: dict[str, ChatSession] = {}
        for row in self._conn.execute(
            "SELECT id, title, created_at, last_updated, wallet_address FROM sessions ORDER BY created_at ASC"
        ).fetchall():
            sessions[row["id"]] = ChatSession.from_dict({
                "id": row["id"],
                "title": row["title"],
                "createdAt": row["created_at"],
                "lastUpdated": row["last_updated"],
                "walletAddress": row["wallet_address"],
            })

        for row in self._conn.execute(
            "SELECT id, session_id, role, content, created_at, metadata_json FROM messages ORDER BY session_id, seq ASC"
        ).fetchall():
            session = sessions.get(row["session_id"])
            if session is None:
                continue
            payload = {
                "id": row["id"],
                "role": row["role"],
                "content": row["content"],
                "timestamp": row["created_at"],
            }
            if row["metadata_json"] is not None:
                payload["metadata"] = json.loads(row["metadata_json"])
            session.messages.append(ChatMessage.from_dict(payload))

        current_row = self._conn.execute(
            "SELECT value FROM history_meta WHERE key = 'current_session_id' LIMIT 1"
        ).fetchone()
        current = current_row["value"] if current_row is not None else None
        if current is not None and current not in sessions:
            logger.warning(f"Stored current session {current} no longer exists; clearing pointer")
            current = None

        logger.info(f"Loaded {len(sessions)} chat session(s) from {self._db_path}")
        return ChatHistoryState(current_session_id=current, sessions=sessions)

    def save(self, state: ChatHistoryState) -> None:
        state.validate()
        session_params: list[tuple] = []
        message_params: list[tuple] = []
        for session in state.sessions.values():
            data = session.to_dict()
            session_params.append(
                (data["id"], data["title"], data["createdAt"], data["lastUpdated"], session.wallet_address)
            )
            for seq, message in enumerate(data["messages"], start=1):
                metadata = message.get("metadata")
                message_params.append((
                    message["id"],
                    session.id,
                    seq,
                    message["role"],
                    message["content"],
                    message["timestamp"],
                    json.dumps(metadata, ensure_ascii=True) if metadata is not None else None,
                ))

        with self.transaction():
            self._conn.execute("DELETE FROM messages")
            self._conn.execute("DELETE FROM sessions")
            self._conn.execute("DELETE FROM history_meta")
            self._conn.executemany(
                """
                INSERT INTO sessions (id, title, created_at, last_updated, wallet_address)
                VALUES (?, ?, ?, ?, ?)
                """,
                session_params,
            )
            self._conn.executemany(
                """
                INSERT INTO messages (id, session_id, seq, role, content, created_at, metadata_json)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                message_params,
            )
            if state.current_session_id is not None:
                self._conn.execute(
                    "INSERT INTO history_meta (key, value) VALUES ('current_session_id', ?)",
                    (state.current_session_id,),
                )
        logger.debug(f"Saved {len(session_params)} session(s), {len(message_params)} message(s)")

    def _initialize_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                created_at TEXT NOT NULL,
                last_updated TEXT NOT NULL,
                wallet_address TEXT NULL
            );

            CREATE TABLE IF NOT EXISTS messages (
                id TEXT PRIMARY KEY,
                session_id TEXT NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
                seq INTEGER NOT NULL,
                role TEXT NOT NULL CHECK (role IN ('user', 'assistant', 'system')),
                content TEXT NOT NULL,
                created_at TEXT NOT NULL,
                metadata_json TEXT NULL,
                UNIQUE(session_id, seq)
            );

            CREATE TABLE IF NOT EXISTS history_meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_messages_session_seq
                ON messages(session_id, seq);
            """
        )
        self._conn.commit()
