from enum import Enum


class ConversationStatus(str, Enum):
    """Lifecycle status of the conversation engine."""

    IDLE = "idle"
    LOADING = "loading"
    STREAMING = "streaming"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    AWAITING_DATA = "awaiting_data"
    ERROR = "error"

    @property
    def in_flight(self) -> bool:
        return self in (ConversationStatus.LOADING, ConversationStatus.STREAMING)


class GateKind(str, Enum):
    """Which interrupt, if any, currently holds the conversation."""

    NONE = "none"
    CONFIRMATION = "confirmation"
    DATA = "data"
