from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_new: Callable[[], Awaitable[None]],
        on_sessions: Callable[[str], Awaitable[None]],
        on_switch: Callable[[str], Awaitable[None]],
        on_receipt: Callable[[], Awaitable[None]],
        on_market: Callable[[str], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_new = on_new
        self._on_sessions = on_sessions
        self._on_switch = on_switch
        self._on_receipt = on_receipt
        self._on_market = on_market
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        command, _, argument = trimmed.partition(" ")
        argument = argument.strip()

        if command == "/help":
            await self._on_help()
            return True
        if command == "/new":
            await self._on_new()
            return True
        if command == "/sessions":
            await self._on_sessions(argument)
            return True
        if command == "/switch":
            await self._on_switch(argument)
            return True
        if command == "/receipt":
            await self._on_receipt()
            return True
        if command == "/market":
            await self._on_market(argument)
            return True

        self._on_unknown(trimmed)
        return True
