from fiat_chat_agent.history.session_manager import DEFAULT_TITLE, ChatHistoryManager
from fiat_chat_agent.history.store import HistoryStore

__all__ = [
    "DEFAULT_TITLE",
    "ChatHistoryManager",
    "HistoryStore",
]
