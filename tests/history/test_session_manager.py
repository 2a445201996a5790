import asyncio
import unittest
from datetime import UTC, datetime, timedelta

from fiat_chat_agent.errors import SessionNotFoundError
from fiat_chat_agent.history import DEFAULT_TITLE, ChatHistoryManager
from fiat_chat_agent.models import ChatHistoryState, ChatMessage, MessageMetadata, TransactionData
from tests.history.base import SteppingClock


class ChatHistoryManagerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._history = ChatHistoryManager(clock=SteppingClock())

    def test_create_session_starts_empty(self) -> None:
        session = self._history.create_session()
        self.assertTrue(session.id)
        self.assertEqual(DEFAULT_TITLE, session.title)
        self.assertEqual([], session.messages)
        self.assertEqual(session.created_at, session.last_updated)
        self.assertIsNone(self._history.get_current())

    def test_session_ids_are_unique(self) -> None:
        ids = {self._history.create_session().id for _ in range(20)}
        self.assertEqual(20, len(ids))

    def test_append_orders_messages_and_counts_turns(self) -> None:
        session = self._history.create_session()

        async def scenario():
            stored = []
            for i in range(5):
                role = "user" if i % 2 == 0 else "assistant"
                stored.append(await self._history.append_message(session.id, ChatMessage.create(role, f"m{i}")))
            return stored

        stored = asyncio.run(scenario())
        self.assertEqual(5, len(session.messages))
        self.assertEqual([f"m{i}" for i in range(5)], [m.content for m in session.messages])
        self.assertEqual([1, 2, 3, 4, 5], [m.metadata.conversation_count for m in session.messages])
        self.assertEqual(stored, session.messages)
        self.assertGreater(session.last_updated, session.created_at)

    def test_caller_supplied_count_is_overwritten(self) -> None:
        session = self._history.create_session()
        message = ChatMessage.create(
            "assistant",
            "ok",
            MessageMetadata(transaction_data=TransactionData(token_in="USDT"), conversation_count=99),
        )
        stored = asyncio.run(self._history.append_message(session.id, message))
        self.assertEqual(1, stored.metadata.conversation_count)
        self.assertEqual(TransactionData(token_in="USDT"), stored.metadata.transaction_data)
        self.assertEqual(99, message.metadata.conversation_count)

    def test_last_updated_never_moves_backwards(self) -> None:
        start = datetime(2026, 3, 1, tzinfo=UTC)
        history = ChatHistoryManager(clock=SteppingClock(start, step=timedelta(seconds=-1)))
        session = history.create_session()

        async def scenario():
            seen = []
            for i in range(3):
                await history.append_message(session.id, ChatMessage.create("user", str(i)))
                seen.append(session.last_updated)
            return seen

        seen = asyncio.run(scenario())
        self.assertEqual(sorted(seen), seen)
        self.assertGreaterEqual(seen[0], session.created_at)

    def test_append_to_unknown_session_leaves_state_unchanged(self) -> None:
        session = self._history.create_session()
        asyncio.run(self._history.set_current(session.id))
        before = self._history.snapshot()

        with self.assertRaises(SessionNotFoundError) as ctx:
            asyncio.run(self._history.append_message("missing", ChatMessage.create("user", "hi")))

        self.assertEqual("missing", ctx.exception.session_id)
        self.assertEqual(before, self._history.snapshot())

    def test_set_current_requires_existing_session(self) -> None:
        with self.assertRaises(SessionNotFoundError):
            asyncio.run(self._history.set_current("missing"))
        self.assertIsNone(self._history.current_session_id)

    def test_set_current_and_get_current(self) -> None:
        first = self._history.create_session()
        second = self._history.create_session()
        asyncio.run(self._history.set_current(second.id))
        self.assertIs(second, self._history.get_current())
        asyncio.run(self._history.set_current(first.id))
        self.assertIs(first, self._history.get_current())

    def test_ensure_current_creates_once(self) -> None:
        async def scenario():
            a = await self._history.ensure_current(wallet_address="0x1")
            b = await self._history.ensure_current()
            return a, b

        a, b = asyncio.run(scenario())
        self.assertIs(a, b)
        self.assertEqual("0x1", a.wallet_address)
        self.assertEqual(1, len(self._history.list_sessions()))

    def test_concurrent_ensure_current_creates_one_session(self) -> None:
        async def scenario():
            return await asyncio.gather(*(self._history.ensure_current() for _ in range(10)))

        sessions = asyncio.run(scenario())
        self.assertEqual(1, len(self._history.list_sessions()))
        self.assertTrue(all(s is sessions[0] for s in sessions))
        self.assertEqual(sessions[0].id, self._history.current_session_id)

    def test_first_user_message_names_the_session(self) -> None:
        session = self._history.create_session()

        async def scenario():
            await self._history.append_message(session.id, ChatMessage.create("system", "welcome"))
            await self._history.append_message(
                session.id,
                ChatMessage.create("user", "Please convert   two hundred USDT into Nigerian naira today"),
            )
            await self._history.append_message(session.id, ChatMessage.create("user", "second"))

        asyncio.run(scenario())
        self.assertEqual("Please convert two hundred USDT into ...", session.title)
        self.assertEqual(40, len(session.title))

    def test_explicit_title_is_kept(self) -> None:
        session = self._history.create_session("Weekly payout")
        asyncio.run(self._history.append_message(session.id, ChatMessage.create("user", "hello")))
        self.assertEqual("Weekly payout", session.title)

    def test_list_sessions_most_recent_first(self) -> None:
        s1 = self._history.create_session()
        s2 = self._history.create_session()
        s3 = self._history.create_session()
        asyncio.run(self._history.append_message(s1.id, ChatMessage.create("user", "bump")))

        self.assertEqual([s1.id, s3.id, s2.id], [s.id for s in self._history.list_sessions()])
        self.assertEqual([s1.id], [s.id for s in self._history.list_sessions(limit=1)])

    def test_delete_current_session_clears_pointer(self) -> None:
        session = self._history.create_session()

        async def scenario():
            await self._history.set_current(session.id)
            await self._history.delete_session(session.id)

        asyncio.run(scenario())
        self.assertIsNone(self._history.current_session_id)
        self.assertIsNone(self._history.get_session(session.id))
        with self.assertRaises(SessionNotFoundError):
            asyncio.run(self._history.delete_session(session.id))

    def test_rejects_state_with_dangling_pointer(self) -> None:
        with self.assertRaises(ValueError):
            ChatHistoryManager(ChatHistoryState(current_session_id="ghost"))

    def test_snapshot_is_independent(self) -> None:
        session = self._history.create_session()
        snapshot = self._history.snapshot()
        asyncio.run(self._history.append_message(session.id, ChatMessage.create("user", "later")))
        self.assertEqual([], snapshot.sessions[session.id].messages)

    def test_concurrent_appends_to_one_session_are_serialised(self) -> None:
        session = self._history.create_session()

        async def scenario():
            await asyncio.gather(*(
                self._history.append_message(session.id, ChatMessage.create("user", str(i)))
                for i in range(50)
            ))

        asyncio.run(scenario())
        counts = [m.metadata.conversation_count for m in session.messages]
        self.assertEqual(list(range(1, 51)), counts)

    def test_independent_managers_do_not_share_state(self) -> None:
        other = ChatHistoryManager()
        self._history.create_session()
        self.assertEqual([], other.list_sessions())


if __name__ == "__main__":
    unittest.main()
