"""
Test stream event decoding.
"""

from centralia.protocol.elements import ButtonsElement
from centralia.protocol.events import (
    DoneEvent,
    ErrorEvent,
    FieldType,
    InteractiveEvent,
    NeedsConfirmationEvent,
    NeedsDataEvent,
    TokenEvent,
    ToolStartEvent,
    is_terminal,
    parse_event,
    parse_sse_line,
)


class TestParseSseLine:
    def test_token(self):
        event = parse_sse_line('data: {"type":"token","content":"Olá"}')
        assert isinstance(event, TokenEvent)
        assert event.text == "Olá"

    def test_tool_start(self):
        event = parse_sse_line('data: {"type":"tool_start","tool":"create_transaction"}')
        assert isinstance(event, ToolStartEvent)
        assert event.name == "create_transaction"

    def test_needs_confirmation(self):
        event = parse_sse_line(
            'data: {"type":"needs_confirmation","message":"Confirma?","pendingAction":'
            '{"id":"tok","action_type":"create_transaction","action_data":{"valor":50},'
            '"preview_message":"Criar despesa"}}'
        )
        assert isinstance(event, NeedsConfirmationEvent)
        assert event.pending_action.id == "tok"
        assert event.pending_action.action_type == "create_transaction"
        assert event.pending_action.action_data == {"valor": 50}
        assert event.pending_action.preview_message == "Criar despesa"

    def test_needs_data(self):
        event = parse_sse_line(
            'data: {"type":"needs_data","message":"Faltam dados","dataRequest":{"context":"c","fields":'
            '[{"name":"valor","label":"Valor","type":"currency","required":true,"defaultValue":10},'
            '{"name":"cat","label":"Categoria","type":"select","options":[{"value":"a","label":"A"}]}]}}'
        )
        assert isinstance(event, NeedsDataEvent)
        fields = event.data_request.fields
        assert fields[0].type is FieldType.CURRENCY
        assert fields[0].required
        assert fields[1].allows("a")
        assert not fields[1].allows("b")
        assert event.data_request.initial_values() == {"valor": 10}

    def test_done_with_session(self):
        event = parse_sse_line('data: {"type":"done","sessionId":"abc"}')
        assert isinstance(event, DoneEvent)
        assert event.session_id == "abc"

    def test_error_default_message(self):
        event = parse_sse_line('data: {"type":"error"}')
        assert isinstance(event, ErrorEvent)
        assert event.message == "Erro desconhecido"

    def test_legacy_interactive_buttons(self):
        event = parse_sse_line(
            'data: {"type":"interactive_buttons","buttons":[{"value":"sim","label":"Sim"}]}'
        )
        assert isinstance(event, InteractiveEvent)
        assert isinstance(event.elements[0], ButtonsElement)
        assert event.elements[0].buttons[0].label == "Sim"

    def test_interactive_drops_unknown_elements(self):
        event = parse_sse_line(
            'data: {"type":"interactive","elements":[{"type":"hologram"},{"type":"buttons","buttons":[]}]}'
        )
        assert [e.type for e in event.elements] == ["buttons"]

    def test_non_data_lines_are_skipped(self):
        assert parse_sse_line("") is None
        assert parse_sse_line(": keep-alive") is None
        assert parse_sse_line("event: message") is None
        assert parse_sse_line("data: [DONE]") is None
        assert parse_sse_line("data: {not json") is None

    def test_unknown_event_type(self):
        assert parse_sse_line('data: {"type":"heartbeat"}') is None

    def test_malformed_event(self):
        assert parse_event({"type": "needs_confirmation", "message": "sem ação"}) is None

    def test_non_object_payload(self):
        assert parse_event(["token"]) is None


class TestEventHelpers:
    def test_terminal_events(self):
        assert not is_terminal(TokenEvent(text="a"))
        assert not is_terminal(ToolStartEvent(name="x"))
        assert not is_terminal(InteractiveEvent())
        assert is_terminal(DoneEvent())
        assert is_terminal(ErrorEvent(message="x"))

