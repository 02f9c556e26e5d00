"""Application services for the conversation layer."""

from centralia_chat.services.continuity import SessionContinuityManager
from centralia_chat.services.conversation_engine import ConversationEngine
from centralia_chat.services.gates import DataCollectionGate, GateSlot, PendingActionGate
from centralia_chat.services.session_service import SessionService
from centralia_chat.services.session_store import SessionStore
from centralia_chat.services.titles import generate_title

__all__ = [
    "ConversationEngine",
    "DataCollectionGate",
    "GateSlot",
    "PendingActionGate",
    "SessionContinuityManager",
    "SessionService",
    "SessionStore",
    "generate_title",
]
