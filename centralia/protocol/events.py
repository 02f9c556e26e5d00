"""
Stream events emitted by the agent during one transport call.

``needs_confirmation``, ``needs_data``, ``done`` and ``error`` are terminal:
nothing after them belongs to the same call.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Literal, Union

from pydantic import Field, ValidationError, field_validator

from centralia.protocol.elements import (
    ButtonOption,
    ButtonsElement,
    InteractiveElement,
    WireModel,
    parse_elements,
)
from centralia.utils.logger import get_logger

logger = get_logger(__name__)


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CURRENCY = "currency"
    DATE = "date"
    SELECT = "select"


class SelectOption(WireModel):
    value: str
    label: str


class FieldDefinition(WireModel):
    name: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    default_value: str | float | None = None
    options: list[SelectOption] = Field(default_factory=list)
    placeholder: str | None = None

    def allows(self, value: Any) -> bool:
        if self.type is not FieldType.SELECT or not self.options:
            return True
        return str(value) in {option.value for option in self.options}


class DataRequest(WireModel):
    """A form the user must fill before the agent can proceed."""

    context: str = ""
    fields: list[FieldDefinition] = Field(default_factory=list)

    def initial_values(self) -> dict[str, Any]:
        return {f.name: f.default_value for f in self.fields if f.default_value is not None}


class PendingAction(WireModel):
    """A proposed mutating operation awaiting user consent.

    ``id`` is the single-use confirmation token sent back on resume.
    """

    id: str
    action_type: str = Field(alias="action_type")
    action_data: dict[str, Any] = Field(default_factory=dict, alias="action_data")
    preview_message: str | None = Field(default=None, alias="preview_message")


class ConfirmationPayload(WireModel):
    confirmation_token: str
    confirmed: bool


class TokenEvent(WireModel):
    type: Literal["token"] = "token"
    text: str = Field(default="", alias="content")


class ToolStartEvent(WireModel):
    type: Literal["tool_start"] = "tool_start"
    name: str = Field(default="", alias="tool")


class InteractiveEvent(WireModel):
    type: Literal["interactive"] = "interactive"
    elements: list[InteractiveElement] = Field(default_factory=list)

    @field_validator("elements", mode="before")
    @classmethod
    def _drop_unknown(cls, v: Any) -> list[InteractiveElement]:
        return parse_elements(v)


class NeedsConfirmationEvent(WireModel):
    type: Literal["needs_confirmation"] = "needs_confirmation"
    message: str = ""
    pending_action: PendingAction


class NeedsDataEvent(WireModel):
    type: Literal["needs_data"] = "needs_data"
    message: str = ""
    data_request: DataRequest


class DoneEvent(WireModel):
    type: Literal["done"] = "done"
    session_id: str | None = None


class ErrorEvent(WireModel):
    type: Literal["error"] = "error"
    message: str = Field(default="Erro desconhecido", alias="error")


StreamEvent = Union[
    TokenEvent,
    ToolStartEvent,
    InteractiveEvent,
    NeedsConfirmationEvent,
    NeedsDataEvent,
    DoneEvent,
    ErrorEvent,
]

TERMINAL_EVENTS = (NeedsConfirmationEvent, NeedsDataEvent, DoneEvent, ErrorEvent)

_EVENT_MODELS: dict[str, type[WireModel]] = {
    "token": TokenEvent,
    "tool_start": ToolStartEvent,
    "interactive": InteractiveEvent,
    "needs_confirmation": NeedsConfirmationEvent,
    "needs_data": NeedsDataEvent,
    "done": DoneEvent,
    "error": ErrorEvent,
}


def is_terminal(event: StreamEvent) -> bool:
    return isinstance(event, TERMINAL_EVENTS)


def _legacy_buttons(payload: dict[str, Any]) -> InteractiveEvent:
    buttons = [ButtonOption.model_validate(b) for b in payload.get("buttons") or []]
    return InteractiveEvent(elements=[ButtonsElement(buttons=buttons)])


def parse_event(payload: Any) -> StreamEvent | None:
    """Build a typed event from a decoded payload; unknown types yield None."""
    if not isinstance(payload, dict):
        return None
    event_type = payload.get("type")
    try:
        if event_type == "interactive_buttons":
            return _legacy_buttons(payload)
        model = _EVENT_MODELS.get(event_type)  # type: ignore[arg-type]
        if model is None:
            logger.debug(f"Ignoring unknown stream event type: {event_type!r}")
            return None
        return model.model_validate(payload)  # type: ignore[return-value]
    except ValidationError as e:
        logger.warning(f"Ignoring malformed {event_type} event: {e.error_count()} error(s)")
        return None


def parse_sse_line(line: str) -> StreamEvent | None:
    """Decode one ``data: {...}`` line of a server-sent event stream."""
    trimmed = line.strip()
    if not trimmed.startswith("data:"):
        return None
    data = trimmed[len("data:") :].strip()
    if not data or data == "[DONE]":
        return None
    try:
        payload = json.loads(data)
    except json.JSONDecodeError:
        logger.debug(f"Skipping malformed SSE payload: {data[:80]!r}")
        return None
    return parse_event(payload)
