"""Message entity: one immutable entry of a conversation."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from centralia.protocol.elements import InteractiveElement


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    # In-memory only, never persisted.
    TOOL = "tool"


PERSISTED_ROLES = frozenset({MessageRole.USER, MessageRole.ASSISTANT, MessageRole.SYSTEM})


@dataclass(frozen=True)
class Message:
    role: MessageRole
    content: str = ""
    tool_calls: list[dict[str, Any]] | None = None
    interactive: list[InteractiveElement] = field(default_factory=list)
    message_id: str | None = None
    session_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not isinstance(self.role, MessageRole):
            object.__setattr__(self, "role", MessageRole(self.role))

    @property
    def persistable(self) -> bool:
        return self.role in PERSISTED_ROLES

    def with_interactive(self, elements: list[InteractiveElement]) -> Message:
        return replace(self, interactive=list(elements))
