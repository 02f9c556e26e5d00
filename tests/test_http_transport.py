import asyncio
import json

import httpx
import pytest

from centralia.protocol.events import ConfirmationPayload, DoneEvent, NeedsConfirmationEvent, TokenEvent
from centralia.transport.base import OutgoingMessage, TransportError, TransportRequest
from centralia.transport.http import HttpStreamingTransport

URL = "https://agent.test/functions/v1/central-ia"


def _sse(*payloads: dict) -> bytes:
    return "".join(f"data: {json.dumps(p)}\n\n" for p in payloads).encode()


def _transport(handler, **kwargs) -> HttpStreamingTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpStreamingTransport(URL, client=client, **kwargs)


async def _collect(transport: HttpStreamingTransport, request: TransportRequest) -> list:
    return [event async for event in transport.stream(request)]


class TestHttpStreamingTransport:
    def test_streams_events_and_sends_body(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=_sse(
                    {"type": "token", "content": "Olá"},
                    {"type": "tool_start", "tool": "get_balance"},
                    {"type": "done", "sessionId": "s-1"},
                ),
            )

        transport = _transport(handler, auth_token="secret")
        request = TransportRequest(messages=[OutgoingMessage("user", "oi")], session_id="s-1")
        events = asyncio.run(_collect(transport, request))

        assert seen["body"] == {"messages": [{"role": "user", "content": "oi"}], "sessionId": "s-1"}
        assert seen["auth"] == "Bearer secret"
        assert [e.type for e in events] == ["token", "tool_start", "done"]
        assert isinstance(events[-1], DoneEvent)
        assert events[-1].session_id == "s-1"

    def test_confirmation_body(self):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=_sse({"type": "done"}),
            )

        request = TransportRequest(
            session_id="s-1",
            confirmation=ConfirmationPayload(confirmation_token="tok", confirmed=False),
        )
        asyncio.run(_collect(_transport(handler), request))

        assert seen["body"] == {"confirmationToken": "tok", "confirmed": False, "sessionId": "s-1"}

    def test_stops_at_terminal_event(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"content-type": "text/event-stream"},
                content=_sse(
                    {
                        "type": "needs_confirmation",
                        "message": "Confirma?",
                        "pendingAction": {"id": "t", "action_type": "create_transaction", "action_data": {}},
                    },
                    {"type": "token", "content": "depois"},
                ),
            )

        events = asyncio.run(_collect(_transport(handler), TransportRequest()))

        assert len(events) == 1
        assert isinstance(events[0], NeedsConfirmationEvent)

    def test_non_stream_response_is_parsed_whole(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"content-type": "text/plain"},
                content=_sse({"type": "token", "content": "a"}, {"type": "done"}),
            )

        events = asyncio.run(_collect(_transport(handler), TransportRequest()))

        assert isinstance(events[0], TokenEvent)
        assert isinstance(events[1], DoneEvent)

    def test_error_status_uses_body_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "Não autorizado"})

        with pytest.raises(TransportError, match="Não autorizado"):
            asyncio.run(_collect(_transport(handler), TransportRequest()))

    def test_error_status_without_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, content=b"Bad gateway")

        with pytest.raises(TransportError, match="Erro 502"):
            asyncio.run(_collect(_transport(handler), TransportRequest()))

    def test_network_failure_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError, match="Falha de comunicação"):
            asyncio.run(_collect(_transport(handler), TransportRequest()))
