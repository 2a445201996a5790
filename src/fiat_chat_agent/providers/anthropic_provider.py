import anthropic
from loguru import logger
from tenacity import retry

from fiat_chat_agent.errors import ModelInvocationError
from fiat_chat_agent.providers.common import default_retry_kwargs


class AnthropicProvider:
    def __init__(self, api_key: str, model: str, *, max_tokens: int = 1024, temperature: float = 0.3):
        self._client = anthropic.AsyncAnthropic(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    @retry(**default_retry_kwargs((
        anthropic.RateLimitError,
        anthropic.APIConnectionError,
        anthropic.APITimeoutError,
    )))
    async def generate(self, prompt: str) -> str:
        logger.debug(f"API request: model={self._model}, max_tokens={self._max_tokens}, prompt_chars={len(prompt)}")
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )

        text_parts = [block.text for block in response.content if block.type == "text"]
        if not text_parts:
            raise ModelInvocationError("Anthropic response contained no text blocks")
        return "".join(text_parts)
