"""MCP transports — stdio, websocket and streamable-HTTP communication layers.

Each transport satisfies the :class:`MCPTransport` protocol, providing
``connect``, ``send``, ``receive``, and ``close`` methods.  ``send`` is also
used for notifications, so a transport must never block in ``send`` waiting
for a reply.
"""

from __future__ import annotations

import asyncio
import json
import os
import shlex
from collections import deque
from typing import Any, Protocol, runtime_checkable

import httpx


@runtime_checkable
class MCPTransport(Protocol):
    """Abstract transport for MCP JSON-RPC communication."""

    async def connect(self) -> None: ...
    async def send(self, data: dict[str, Any]) -> None: ...
    async def receive(self) -> dict[str, Any]: ...
    async def close(self) -> None: ...


class StdioTransport:
    """Talks to an MCP server spawned as a subprocess, one JSON object per line.

    Extra ``env`` entries are layered over the parent environment so the
    server still sees ``PATH`` and friends.
    """

    def __init__(self, command: str, env: dict[str, str] | None = None) -> None:
        self._command = command
        self._env = env
        self._process: asyncio.subprocess.Process | None = None

    async def connect(self) -> None:
        """Launch the subprocess."""
        argv = shlex.split(self._command)
        env = {**os.environ, **self._env} if self._env else None
        self._process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
            env=env,
        )

    async def send(self, data: dict[str, Any]) -> None:
        if self._process is None or self._process.stdin is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        self._process.stdin.write((json.dumps(data) + "\n").encode())
        await self._process.stdin.drain()

    async def receive(self) -> dict[str, Any]:
        if self._process is None or self._process.stdout is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        line = await self._process.stdout.readline()
        if not line:
            msg = f"Transport closed by server process: {self._command}"
            raise RuntimeError(msg)
        return json.loads(line)  # type: ignore[no-any-return]

    async def close(self) -> None:
        """Terminate the subprocess."""
        if self._process is None:
            return
        if self._process.stdin:
            self._process.stdin.close()
        if self._process.returncode is None:
            self._process.terminate()
        await self._process.wait()
        self._process = None


class WebSocketTransport:
    """Talks to an MCP server over a WebSocket.

    Requires the ``websockets`` package (optional dependency ``mcp-ws``).
    """

    def __init__(self, url: str, headers: dict[str, str] | None = None) -> None:
        self._url = url
        self._headers = headers or {}
        self._ws: Any = None  # websockets.ClientConnection

    async def connect(self) -> None:
        try:
            import websockets  # type: ignore[import-untyped]
        except ImportError as exc:
            msg = "websockets package required; install with: pip install agent-gateway[mcp-ws]"
            raise ImportError(msg) from exc
        kwargs: dict[str, Any] = {"subprotocols": ["mcp"]}
        if self._headers:
            kwargs["additional_headers"] = self._headers
        self._ws = await websockets.connect(self._url, **kwargs)  # type: ignore[no-untyped-call]

    async def send(self, data: dict[str, Any]) -> None:
        if self._ws is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        await self._ws.send(json.dumps(data))

    async def receive(self) -> dict[str, Any]:
        if self._ws is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        return json.loads(await self._ws.recv())  # type: ignore[no-any-return]

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None


class HttpTransport:
    """Streamable-HTTP transport: every message is POSTed to a single endpoint.

    The server answers either with a JSON body or with a short
    ``text/event-stream``; both are queued and handed out by ``receive``.
    Notifications are acknowledged with ``202 Accepted`` and an empty body.
    The ``Mcp-Session-Id`` header returned during ``initialize`` is echoed on
    every later request.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._session_id: str | None = None
        self._pending: deque[dict[str, Any]] = deque()

    @property
    def session_id(self) -> str | None:
        return self._session_id

    async def connect(self) -> None:
        headers = {
            "Accept": "application/json, text/event-stream",
            **self._headers,
        }
        self._client = httpx.AsyncClient(headers=headers, timeout=self._timeout)

    async def send(self, data: dict[str, Any]) -> None:
        if self._client is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        headers = {"Mcp-Session-Id": self._session_id} if self._session_id else {}
        response = await self._client.post(self._url, json=data, headers=headers)
        response.raise_for_status()

        self._session_id = response.headers.get("mcp-session-id", self._session_id)
        if response.status_code == 202 or not response.content:
            return

        content_type = response.headers.get("content-type", "")
        if "text/event-stream" in content_type:
            self._pending.extend(parse_event_stream(response.text))
            return
        payload = response.json()
        if isinstance(payload, list):
            self._pending.extend(payload)
        else:
            self._pending.append(payload)

    async def receive(self) -> dict[str, Any]:
        if self._client is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        if not self._pending:
            msg = "No response pending from HTTP transport"
            raise RuntimeError(msg)
        return self._pending.popleft()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._session_id = None
        self._pending.clear()


def parse_event_stream(text: str) -> list[dict[str, Any]]:
    """Extract the JSON payloads of every ``data:`` event in an SSE body."""
    messages: list[dict[str, Any]] = []
    for block in text.replace("\r\n", "\n").split("\n\n"):
        data_lines = [
            line[5:].lstrip() for line in block.split("\n") if line.startswith("data:")
        ]
        if not data_lines:
            continue
        try:
            payload = json.loads("\n".join(data_lines))
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            messages.append(payload)
    return messages
