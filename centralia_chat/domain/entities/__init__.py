from centralia_chat.domain.entities.message import PERSISTED_ROLES, Message, MessageRole
from centralia_chat.domain.entities.session import Session

__all__ = ["Message", "MessageRole", "PERSISTED_ROLES", "Session"]
