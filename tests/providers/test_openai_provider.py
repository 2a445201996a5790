import asyncio
import unittest
from types import SimpleNamespace

from fiat_chat_agent.errors import ModelInvocationError
from fiat_chat_agent.providers.openai_provider import OpenAIProvider


class _FakeCompletions:
    def __init__(self, response: object):
        self._response = response
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return self._response


class _FakeClient:
    def __init__(self, response: object):
        self.chat = SimpleNamespace(completions=_FakeCompletions(response))


class OpenAIProviderTests(unittest.TestCase):
    def _make_provider(self, response: object) -> OpenAIProvider:
        provider = OpenAIProvider.__new__(OpenAIProvider)
        provider._client = _FakeClient(response)
        provider._model = "gpt-test"
        provider._max_tokens = 512
        provider._temperature = 0.1
        return provider

    def test_generate_returns_message_content(self) -> None:
        response = SimpleNamespace(choices=[
            SimpleNamespace(finish_reason="stop", message=SimpleNamespace(content='{"intent": "portfolio"}')),
        ])
        provider = self._make_provider(response)

        self.assertEqual('{"intent": "portfolio"}', asyncio.run(provider.generate("check my balance")))
        call = provider._client.chat.completions.calls[0]
        self.assertEqual("gpt-test", call["model"])
        self.assertEqual(512, call["max_tokens"])
        self.assertEqual([{"role": "user", "content": "check my balance"}], call["messages"])

    def test_null_content_becomes_empty_text(self) -> None:
        response = SimpleNamespace(choices=[
            SimpleNamespace(finish_reason="length", message=SimpleNamespace(content=None)),
        ])
        self.assertEqual("", asyncio.run(self._make_provider(response).generate("p")))

    def test_no_choices_raises(self) -> None:
        with self.assertRaises(ModelInvocationError):
            asyncio.run(self._make_provider(SimpleNamespace(choices=[])).generate("p"))


if __name__ == "__main__":
    unittest.main()
