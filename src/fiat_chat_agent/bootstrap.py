from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from fiat_chat_agent.app_config import AppConfig, RuntimeEnv
from fiat_chat_agent.assistant import FiatAssistant
from fiat_chat_agent.conversation import ConversationService
from fiat_chat_agent.history import ChatHistoryManager, HistoryStore
from fiat_chat_agent.logging_config import setup_logging
from fiat_chat_agent.models import ChatHistoryState
from fiat_chat_agent.providers import ModelProvider, create_provider


@dataclass
class AppRuntime:
    conversation: ConversationService
    history: ChatHistoryManager
    history_store: HistoryStore | None
    wallet_address: str | None
    log_descriptions: list[str]

    def save_history(self) -> None:
        if self.history_store is not None:
            self.history_store.save(self.history.snapshot())

    def close(self) -> None:
        if self.history_store is not None:
            self.save_history()
            self.history_store.close()
            self.history_store = None


def bootstrap_runtime(app: AppConfig, env: RuntimeEnv, *, provider: ModelProvider | None = None) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    if provider is None:
        provider = create_provider(
            app.provider_name,
            env.provider_api_key,
            app.model,
            max_tokens=app.max_tokens,
            temperature=app.temperature,
        )

    history_store: HistoryStore | None = None
    state = ChatHistoryState()
    if app.history_enabled:
        db_path = Path(app.history_db_path)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path
        history_store = HistoryStore(str(db_path))
        state = history_store.load()

    history = ChatHistoryManager(state)
    assistant = FiatAssistant(provider, timeout_seconds=app.model_timeout_seconds)
    logger.info(f"Runtime ready: provider={app.provider_name}, model={app.model}, history={app.history_enabled}")

    return AppRuntime(
        conversation=ConversationService(assistant, history),
        history=history,
        history_store=history_store,
        wallet_address=app.wallet_address,
        log_descriptions=log_descriptions,
    )
