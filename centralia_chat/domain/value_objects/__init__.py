from centralia_chat.domain.value_objects.conversation_status import ConversationStatus, GateKind

__all__ = ["ConversationStatus", "GateKind"]
