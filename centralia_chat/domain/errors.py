"""Error taxonomy of the conversation layer."""

from __future__ import annotations


class ChatError(Exception):
    """Base class for conversation errors."""


class SessionNotFoundError(ChatError):
    def __init__(self, session_id: str):
        super().__init__(f"Sessão não encontrada: {session_id}")
        self.session_id = session_id


class PersistenceError(ChatError):
    """A session store operation failed."""


class GateError(ChatError):
    """A gate operation was attempted without the matching open gate."""


class ConversationBusyError(ChatError):
    """A turn is in flight or a gate is open."""
