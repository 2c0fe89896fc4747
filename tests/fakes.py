"""In-memory stand-ins for WebSocket peers used across the test suite."""

from __future__ import annotations

import asyncio
import json
from typing import Any

from starlette.datastructures import URL

_END = object()


class FakeWebSocket:
    def __init__(self, path: str = "/call", *, fail_close: bool = False) -> None:
        self.url = URL(path)
        self.accepted = False
        self.close_calls = 0
        self.sent: list[Any] = []
        self._fail_close = fail_close
        self._incoming: asyncio.Queue | None = None

    @property
    def incoming(self) -> asyncio.Queue:
        if self._incoming is None:
            self._incoming = asyncio.Queue()
        return self._incoming

    async def accept(self) -> None:
        self.accepted = True

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.close_calls += 1
        # Let other tasks run so concurrent installs actually interleave.
        await asyncio.sleep(0)
        if self._fail_close:
            raise RuntimeError("already closed")

    async def send_json(self, data: Any) -> None:
        self.sent.append(data)

    def feed(self, message: Any) -> None:
        if isinstance(message, (str, bytes)):
            self.incoming.put_nowait(message)
        else:
            self.incoming.put_nowait(json.dumps(message))

    def disconnect(self) -> None:
        self.incoming.put_nowait(_END)

    async def receive(self) -> dict[str, Any]:
        item = await self.incoming.get()
        if item is _END:
            return {"type": "websocket.disconnect", "code": 1000}
        if isinstance(item, bytes):
            return {"type": "websocket.receive", "bytes": item}
        return {"type": "websocket.receive", "text": item}


class FakeModel:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        self.sent.append(json.loads(message))

    async def close(self) -> None:
        self.closed = True
        self._incoming.put_nowait(_END)

    def push(self, event: dict[str, Any]) -> None:
        self._incoming.put_nowait(json.dumps(event))

    async def __aiter__(self):
        while True:
            item = await self._incoming.get()
            if item is _END:
                return
            yield item


async def drain(rounds: int = 20) -> None:
    """Give queued relay work a chance to run."""

    for _ in range(rounds):
        await asyncio.sleep(0)
