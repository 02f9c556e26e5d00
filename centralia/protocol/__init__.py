"""Wire vocabulary shared by the agent endpoint and the conversation engine."""

from centralia.protocol.elements import (
    ELEMENT_TYPES,
    ButtonOption,
    ButtonsElement,
    ColumnMappingElement,
    ConfirmationElement,
    FileAnalysisElement,
    ImportResultElement,
    InteractiveElement,
    PreviewTableElement,
    dump_elements,
    parse_elements,
)
from centralia.protocol.events import (
    ConfirmationPayload,
    DataRequest,
    DoneEvent,
    ErrorEvent,
    FieldDefinition,
    FieldType,
    InteractiveEvent,
    NeedsConfirmationEvent,
    NeedsDataEvent,
    PendingAction,
    SelectOption,
    StreamEvent,
    TokenEvent,
    ToolStartEvent,
    is_terminal,
    parse_event,
    parse_sse_line,
)

__all__ = [
    "ELEMENT_TYPES",
    "ButtonOption",
    "ButtonsElement",
    "ColumnMappingElement",
    "ConfirmationElement",
    "FileAnalysisElement",
    "ImportResultElement",
    "InteractiveElement",
    "PreviewTableElement",
    "dump_elements",
    "parse_elements",
    "ConfirmationPayload",
    "DataRequest",
    "DoneEvent",
    "ErrorEvent",
    "FieldDefinition",
    "FieldType",
    "InteractiveEvent",
    "NeedsConfirmationEvent",
    "NeedsDataEvent",
    "PendingAction",
    "SelectOption",
    "StreamEvent",
    "TokenEvent",
    "ToolStartEvent",
    "is_terminal",
    "parse_event",
    "parse_sse_line",
]
