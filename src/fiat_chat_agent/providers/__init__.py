from typing import Protocol, runtime_checkable


@runtime_checkable
class ModelProvider(Protocol):
    async def generate(self, prompt: str) -> str:
        """Send a single-prompt request and return the model's raw text."""
        ...


def create_provider(
    provider_name: str,
    api_key: str,
    model: str,
    *,
    max_tokens: int = 1024,
    temperature: float = 0.3,
) -> ModelProvider:
    """Factory: create a ModelProvider by name."""
    name = provider_name.strip().lower()
    if name == "anthropic":
        from fiat_chat_agent.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(api_key, model, max_tokens=max_tokens, temperature=temperature)
    if name == "openai":
        from fiat_chat_agent.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(api_key, model, max_tokens=max_tokens, temperature=temperature)
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'anthropic', 'openai'")
