from __future__ import annotations

import asyncio
import random

from loguru import logger

from fiat_chat_agent.commands.router import CommandRouter
from fiat_chat_agent.console import spinner
from fiat_chat_agent.conversation import ConversationService
from fiat_chat_agent.errors import SessionNotFoundError
from fiat_chat_agent.history import ChatHistoryManager
from fiat_chat_agent.models import ChatMessage, ChatSession
from fiat_chat_agent.presentation import render_market_update, render_receipt


class ChatAgent:
    _LINE_PREFIX = "assistant> "
    _SHORT_ID_LEN = 8

    def __init__(
        self,
        conversation: ConversationService,
        history: ChatHistoryManager,
        *,
        wallet_address: str | None = None,
        show_spinner: bool = True,
        rng: random.Random | None = None,
    ):
        self._conversation = conversation
        self._history = history
        self._wallet_address = wallet_address
        self._show_spinner = show_spinner
        self._rng = rng
        self._run_lock = asyncio.Lock()
        self._command_router = CommandRouter(
            on_help=self._on_help,
            on_new=self._on_new,
            on_sessions=self._on_sessions,
            on_switch=self._on_switch,
            on_receipt=self._on_receipt,
            on_market=self._on_market,
            on_unknown=self._on_unknown_command,
        )

    async def run(self, user_message: str) -> None:
        async with self._run_lock:
            if await self._command_router.try_handle(user_message):
                return
            reply = await self._respond(user_message)
            self._print_reply(reply)

    async def _respond(self, user_message: str) -> ChatMessage:
        if not self._show_spinner:
            return await self._conversation.handle_user_message(user_message, wallet_address=self._wallet_address)
        with spinner(prefix=self._LINE_PREFIX):
            return await self._conversation.handle_user_message(user_message, wallet_address=self._wallet_address)

    def _print_reply(self, reply: ChatMessage) -> None:
        for line in reply.content.splitlines() or [""]:
            print(f"{self._LINE_PREFIX}{line}")
        metadata = reply.metadata
        if metadata is None:
            return
        if metadata.transaction_data is not None:
            fields = ", ".join(f"{k}={v}" for k, v in metadata.transaction_data.to_dict().items() if k != "type")
            print(f"{self._LINE_PREFIX}[transaction: {fields or 'empty'}]")
        if metadata.suggested_actions:
            labels = [f"{a.label}{'*' if a.priority else ''}" for a in metadata.suggested_actions]
            print(f"{self._LINE_PREFIX}[actions: {' | '.join(labels)}]")

    def _short_id(self, value: str) -> str:
        return value[: self._SHORT_ID_LEN]

    def _format_session_entry(self, session: ChatSession) -> str:
        marker = "*" if session.id == self._history.current_session_id else " "
        return (
            f"{self._LINE_PREFIX}{marker} {session.title} [{self._short_id(session.id)}] "
            f"(messages={len(session.messages)}, updated={session.last_updated.isoformat(timespec='seconds')})"
        )

    async def _on_help(self) -> None:
        print(f"{self._LINE_PREFIX}Available commands:")
        print(f"{self._LINE_PREFIX}- /help")
        print(f"{self._LINE_PREFIX}- /new")
        print(f"{self._LINE_PREFIX}- /sessions [limit]")
        print(f"{self._LINE_PREFIX}- /switch <id or id prefix>")
        print(f"{self._LINE_PREFIX}- /receipt")
        print(f"{self._LINE_PREFIX}- /market [symbol]")

    async def _on_new(self) -> None:
        session = self._history.create_session(wallet_address=self._wallet_address)
        await self._history.set_current(session.id)
        print(f"{self._LINE_PREFIX}Started new session [{self._short_id(session.id)}]")

    async def _on_sessions(self, argument: str) -> None:
        limit = int(argument) if argument.isdigit() else 20
        sessions = self._history.list_sessions(limit=limit)
        if not sessions:
            print(f"{self._LINE_PREFIX}No sessions yet.")
            return
        for session in sessions:
            print(self._format_session_entry(session))

    async def _on_switch(self, argument: str) -> None:
        if not argument:
            print(f"{self._LINE_PREFIX}Usage: /switch <id or id prefix>")
            return
        matches = [s for s in self._history.list_sessions(limit=1000) if s.id.startswith(argument)]
        if len(matches) != 1:
            reason = "No session matches" if not matches else "Ambiguous session id"
            print(f"{self._LINE_PREFIX}{reason}: {argument}")
            return
        try:
            await self._history.set_current(matches[0].id)
        except SessionNotFoundError as ex:
            print(f"{self._LINE_PREFIX}{ex}")
            return
        print(f"{self._LINE_PREFIX}Switched to {matches[0].title} [{self._short_id(matches[0].id)}]")

    async def _on_receipt(self) -> None:
        session = self._history.get_current()
        txn = session.latest_transaction() if session is not None else None
        if txn is None:
            print(f"{self._LINE_PREFIX}No conversion in this session yet.")
            return
        print(
            render_receipt({
                "transactionId": txn.transaction_id,
                "txHash": txn.tx_hash,
                "amount": txn.amount_in,
                "token": txn.token_in,
                "fiatCurrency": txn.fiat_currency,
                "estimatedFiat": txn.fiat_amount,
            })
        )

    async def _on_market(self, argument: str) -> None:
        print(render_market_update(argument or "USDT", rng=self._rng))

    def _on_unknown_command(self, trimmed: str) -> None:
        logger.debug(f"Unknown local command: {trimmed}")
        print(f"{self._LINE_PREFIX}Unknown local command: {trimmed}")
