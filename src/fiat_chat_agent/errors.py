from __future__ import annotations


class SessionNotFoundError(LookupError):
    def __init__(self, session_id: str):
        super().__init__(f"Session does not exist: {session_id}")
        self.session_id = session_id


class ModelInvocationError(RuntimeError):
    """The model provider answered with nothing usable (empty body, no text block)."""
