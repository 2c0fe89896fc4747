"""OpenAI Realtime connection helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import websockets
from websockets.exceptions import WebSocketException

from sessions.errors import ModelConnectionError

LOGGER = logging.getLogger(__name__)


class ModelConnection(Protocol):
    """The subset of a websockets client connection the relay relies on."""

    async def send(self, message: str) -> None:  # pragma: no cover - protocol stub
        ...

    async def close(self) -> None:  # pragma: no cover - protocol stub
        ...

    def __aiter__(self) -> AsyncIterator[str | bytes]:  # pragma: no cover - protocol stub
        ...


async def connect_realtime(url: str, api_key: str) -> ModelConnection:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "OpenAI-Beta": "realtime=v1",
    }
    try:
        connection = await websockets.connect(url, additional_headers=headers, ping_interval=20, ping_timeout=20)
    except (OSError, WebSocketException) as exc:
        raise ModelConnectionError(f"Realtime connection failed: {exc}") from exc

    LOGGER.info("Connected to realtime model at %s", url.split("?", 1)[0])
    return connection


def build_session_update(
    *,
    voice: str,
    tools: list[dict[str, Any]],
    overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Session config sent when the model connection opens.

    ``overrides`` (the last ``session.update`` received from the observer)
    wins over the defaults.
    """

    session: dict[str, Any] = {
        "modalities": ["text", "audio"],
        "turn_detection": {"type": "server_vad"},
        "voice": voice,
        "input_audio_transcription": {"model": "whisper-1"},
        "input_audio_format": "g711_ulaw",
        "output_audio_format": "g711_ulaw",
        "tools": tools,
    }
    session.update(overrides or {})
    return {"type": "session.update", "session": session}
