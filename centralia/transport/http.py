"""
HTTP streaming transport for the agent endpoint.

The endpoint answers a POST with a server-sent event stream:
- Request: {"messages": [...], "sessionId": "..."} or
  {"confirmationToken": "...", "confirmed": true, "sessionId": "..."}
- Response: ``data: {"type": "token", "content": "..."}`` lines, ending with
  a terminal event (needs_confirmation, needs_data, done or error)

Responses that are not ``text/event-stream`` are parsed as SSE text in one go.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

import httpx

from centralia.protocol.events import StreamEvent, is_terminal, parse_sse_line
from centralia.transport.base import TransportError, TransportRequest
from centralia.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 120.0
DEFAULT_CONNECT_TIMEOUT = 10.0


def _error_message(status_code: int, body: bytes) -> str:
    try:
        parsed = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return f"Erro {status_code}"
    if isinstance(parsed, dict) and parsed.get("error"):
        return str(parsed["error"])
    return f"Erro {status_code}"


class HttpStreamingTransport:
    """Streaming transport over ``httpx.AsyncClient``.

    No retries: a call may carry a confirmation that mutates data.
    """

    def __init__(
        self,
        url: str,
        auth_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self._url = url
        self._auth_token = auth_token
        self._timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={"Content-Type": "application/json"},
                timeout=self._timeout,
            )
        return self._client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "text/event-stream"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return headers

    async def stream(self, request: TransportRequest) -> AsyncIterator[StreamEvent]:
        client = self._get_client()
        body = request.to_body()
        logger.debug(
            f"Opening stream session_id={request.session_id} "
            f"confirmation={request.confirmation is not None} messages={len(request.messages)}"
        )

        try:
            async with client.stream("POST", self._url, json=body, headers=self._headers()) as response:
                if response.status_code >= 400:
                    raw = await response.aread()
                    raise TransportError(_error_message(response.status_code, raw))

                content_type = response.headers.get("content-type", "")
                if "text/event-stream" not in content_type:
                    raw = await response.aread()
                    for line in raw.decode("utf-8", errors="replace").splitlines():
                        event = parse_sse_line(line)
                        if event is None:
                            continue
                        yield event
                        if is_terminal(event):
                            return
                    return

                async for line in response.aiter_lines():
                    event = parse_sse_line(line)
                    if event is None:
                        continue
                    yield event
                    if is_terminal(event):
                        return
        except httpx.HTTPError as e:
            logger.warning(f"Agent stream failed: {type(e).__name__}: {e}")
            raise TransportError(f"Falha de comunicação com o assistente: {e}") from e

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
