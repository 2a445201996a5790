import asyncio
import io
import random
import unittest
from contextlib import redirect_stdout

from fiat_chat_agent.assistant import FiatAssistant
from fiat_chat_agent.chat_agent import ChatAgent
from fiat_chat_agent.conversation import ConversationService
from fiat_chat_agent.history import ChatHistoryManager
from tests.fakes import FakeProvider, analysis_json


class ChatAgentTests(unittest.TestCase):
    def _agent(self, *responses: object, wallet_address: str | None = None) -> tuple[ChatAgent, ChatHistoryManager]:
        history = ChatHistoryManager()
        conversation = ConversationService(FiatAssistant(FakeProvider(*responses)), history)
        agent = ChatAgent(
            conversation,
            history,
            wallet_address=wallet_address,
            show_spinner=False,
            rng=random.Random(3),
        )
        return agent, history

    def _run(self, agent: ChatAgent, *inputs: str) -> str:
        buf = io.StringIO()

        async def scenario():
            for text in inputs:
                await agent.run(text)

        with redirect_stdout(buf):
            asyncio.run(scenario())
        return buf.getvalue()

    def test_help_lists_commands(self) -> None:
        agent, _ = self._agent()
        output = self._run(agent, "/help")
        for command in ("/new", "/sessions", "/switch", "/receipt", "/market"):
            self.assertIn(command, output)

    def test_message_prints_reply_transaction_and_actions(self) -> None:
        agent, history = self._agent(analysis_json(
            intent="fiat_conversion",
            extractedData={"tokenIn": "USDT", "amountIn": "40", "fiatCurrency": "EUR"},
            suggestedResponse="Converting 40 USDT to EUR.",
        ), wallet_address="0xabc")
        output = self._run(agent, "sell 40 usdt for euros")

        self.assertIn("assistant> Converting 40 USDT to EUR.", output)
        self.assertIn("[transaction: tokenIn=USDT, amountIn=40, fiatCurrency=EUR]", output)
        self.assertIn("[actions: Convert 40 USDT* | Cancel]", output)
        self.assertEqual(2, len(history.get_current().messages))

    def test_new_and_sessions(self) -> None:
        agent, history = self._agent()
        output = self._run(agent, "/sessions", "/new", "/sessions")
        self.assertIn("No sessions yet.", output)
        self.assertIn("Started new session", output)
        current = history.get_current()
        self.assertIsNotNone(current)
        self.assertIn(f"* New conversation [{current.id[:8]}]", output)

    def test_switch_by_prefix(self) -> None:
        agent, history = self._agent()
        first = history.create_session("First")
        history.create_session("Second")
        output = self._run(agent, f"/switch {first.id[:8]}", "/switch", "/switch zzzz")
        self.assertEqual(first.id, history.current_session_id)
        self.assertIn("Switched to First", output)
        self.assertIn("Usage: /switch", output)
        self.assertIn("No session matches: zzzz", output)

    def test_receipt_uses_latest_transaction(self) -> None:
        agent, _ = self._agent(analysis_json(
            intent="fiat_conversion",
            extractedData={"amountIn": "15", "fiatCurrency": "NGN"},
            suggestedResponse="Ok.",
        ))
        output = self._run(agent, "/receipt", "sell 15", "/receipt")
        self.assertIn("No conversion in this session yet.", output)
        self.assertIn("From: 15 USDT", output)
        self.assertIn("Status: Processing", output)

    def test_market_update(self) -> None:
        agent, _ = self._agent()
        output = self._run(agent, "/market eth")
        self.assertIn("LIVE MARKET UPDATE - ETH", output)

    def test_unknown_command(self) -> None:
        agent, _ = self._agent()
        output = self._run(agent, "/bogus")
        self.assertIn("Unknown local command: /bogus", output)


if __name__ == "__main__":
    unittest.main()
