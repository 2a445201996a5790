import openai
from loguru import logger
from tenacity import retry

from fiat_chat_agent.errors import ModelInvocationError
from fiat_chat_agent.providers.common import default_retry_kwargs


class OpenAIProvider:
    def __init__(self, api_key: str, model: str, *, max_tokens: int = 1024, temperature: float = 0.3):
        self._client = openai.AsyncOpenAI(api_key=api_key)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    @retry(**default_retry_kwargs((
        openai.RateLimitError,
        openai.APIConnectionError,
        openai.APITimeoutError,
    )))
    async def generate(self, prompt: str) -> str:
        logger.debug(f"API request: model={self._model}, max_tokens={self._max_tokens}, prompt_chars={len(prompt)}")
        response = await self._client.chat.completions.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.choices:
            raise ModelInvocationError("OpenAI response contained no choices")
        choice = response.choices[0]
        text = choice.message.content or ""
        logger.debug(f"API response: finish_reason={choice.finish_reason}, len={len(text)}")
        return text
