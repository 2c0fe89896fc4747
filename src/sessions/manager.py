"""Relay between the Twilio media stream, the realtime model and the observer.

A single session is shared by the process: at most one call connection and
one observer connection exist at a time (the gateway router enforces that).
Audio payloads are forwarded as opaque base64 strings in both directions.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from websockets.exceptions import ConnectionClosed

from config.settings import get_settings
from gateway.registry import close_quietly
from sessions.errors import ModelConnectionError, UnknownFunctionError
from sessions.realtime import ModelConnection, build_session_update, connect_realtime
from tools.functions import find_function, list_schemas

LOGGER = logging.getLogger(__name__)

ModelConnector = Callable[[str, str], Awaitable[ModelConnection]]


@dataclass
class CallState:
    stream_sid: str | None = None
    latest_media_timestamp: int = 0
    last_assistant_item: str | None = None
    response_start_timestamp: int | None = None


def _parse_json(raw: str | bytes | None, source: str) -> dict[str, Any] | None:
    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError):
        LOGGER.warning("Skipping invalid %s message", source)
        return None
    if not isinstance(message, dict):
        LOGGER.warning("Skipping non-object %s message", source)
        return None
    return message


def _field(message: dict[str, Any], key: str) -> dict[str, Any]:
    value = message.get(key)
    return value if isinstance(value, dict) else {}


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


async def _iter_frames(websocket: WebSocket) -> AsyncIterator[str | bytes | None]:
    """Yield text and binary frames alike until the peer disconnects."""

    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
        yield message.get("text") or message.get("bytes")


async def _send_json(websocket: WebSocket | None, payload: dict[str, Any]) -> None:
    if websocket is None:
        return
    try:
        await websocket.send_json(payload)
    except (RuntimeError, OSError, WebSocketDisconnect) as exc:
        LOGGER.debug("Dropping message to closed peer: %s", exc)


class SessionManager:
    def __init__(
        self,
        *,
        connect_model: ModelConnector = connect_realtime,
        realtime_url: str | None = None,
        voice: str | None = None,
    ) -> None:
        settings = get_settings()
        self._connect_model = connect_model
        self._realtime_url = realtime_url or settings.openai_realtime_url
        self._voice = voice or settings.openai_realtime_voice

        self._twilio: WebSocket | None = None
        self._frontend: WebSocket | None = None
        self._model: ModelConnection | None = None
        self._model_task: asyncio.Task | None = None
        self._function_tasks: set[asyncio.Task] = set()
        self._api_key: str | None = None
        self._call = CallState()
        self.saved_config: dict[str, Any] = {}

    @property
    def call_state(self) -> CallState:
        return self._call

    @property
    def model(self) -> ModelConnection | None:
        return self._model

    @property
    def twilio(self) -> WebSocket | None:
        return self._twilio

    @property
    def frontend(self) -> WebSocket | None:
        return self._frontend

    # ---- Twilio side -------------------------------------------------------

    async def handle_call_connection(self, websocket: WebSocket, api_key: str) -> None:
        await self._close_model()
        self._twilio = websocket
        self._api_key = api_key
        self._call = CallState()

        try:
            async for frame in _iter_frames(websocket):
                await self._on_twilio_message(frame)
                if self._twilio is not websocket:
                    break
        finally:
            if self._twilio is websocket:
                await self._end_call()

    async def _on_twilio_message(self, frame: str | bytes | None) -> None:
        message = _parse_json(frame, "Twilio")
        if message is None:
            return

        event = message.get("event")
        if event == "start":
            start = _field(message, "start")
            self._call = CallState(stream_sid=start.get("streamSid"))
            LOGGER.info("Twilio stream started: %s", self._call.stream_sid)
            await self._open_model()
        elif event == "media":
            media = _field(message, "media")
            self._call.latest_media_timestamp = _as_int(media.get("timestamp"))
            if self._model is not None:
                await self._send_model({"type": "input_audio_buffer.append", "audio": media.get("payload")})
        elif event in ("stop", "close"):
            LOGGER.info("Twilio stream ended: %s", self._call.stream_sid)
            await self._end_call()

    async def _end_call(self) -> None:
        twilio = self._twilio
        self._twilio = None
        self._call = CallState()
        await self._close_model()
        if twilio is not None:
            await close_quietly(twilio)
        if self._frontend is None:
            self.saved_config = {}

    # ---- Observer side -----------------------------------------------------

    async def handle_frontend_connection(self, websocket: WebSocket) -> None:
        self._frontend = websocket
        try:
            async for frame in _iter_frames(websocket):
                await self._on_frontend_message(frame)
        finally:
            if self._frontend is websocket:
                self._frontend = None
            # A replacement observer may already hold the config.
            if self._frontend is None and self._twilio is None and self._model is None:
                self.saved_config = {}

    async def _on_frontend_message(self, frame: str | bytes | None) -> None:
        message = _parse_json(frame, "frontend")
        if message is None:
            return

        if self._model is not None:
            await self._send_model(message)
        if message.get("type") == "session.update":
            self.saved_config = _field(message, "session")

    # ---- Model side --------------------------------------------------------

    async def _open_model(self) -> None:
        twilio = self._twilio
        if self._model is not None or not self._api_key or twilio is None:
            return

        try:
            model = await self._connect_model(self._realtime_url, self._api_key)
        except ModelConnectionError:
            LOGGER.exception("Realtime model unavailable; call continues without it")
            return

        if self._twilio is not twilio or self._model is not None:
            # The call was replaced or ended while connecting.
            LOGGER.info("Discarding model connection opened for a displaced call")
            await close_quietly(model)
            return

        self._model = model
        await self._send_model(
            build_session_update(voice=self._voice, tools=list_schemas(), overrides=self.saved_config)
        )
        self._model_task = asyncio.create_task(self._pump_model(model))

    async def _close_model(self) -> None:
        model, task = self._model, self._model_task
        self._model = None
        self._model_task = None
        if model is not None:
            await close_quietly(model)
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _send_model(self, payload: dict[str, Any]) -> None:
        if self._model is None:
            return
        try:
            await self._model.send(json.dumps(payload))
        except ConnectionClosed as exc:
            LOGGER.debug("Dropping message to closed model connection: %s", exc)

    async def _pump_model(self, model: ModelConnection) -> None:
        try:
            async for raw in model:
                await self._on_model_message(model, raw)
        except ConnectionClosed:
            pass
        except Exception:
            LOGGER.exception("Realtime model relay failed")
        finally:
            if self._model is model:
                self._model = None
                self._model_task = None
                await close_quietly(model)
                if self._twilio is None and self._frontend is None:
                    self.saved_config = {}

    async def _on_model_message(self, model: ModelConnection, raw: str | bytes) -> None:
        event = _parse_json(raw, "model")
        if event is None:
            return

        await _send_json(self._frontend, event)

        kind = event.get("type")
        if kind == "input_audio_buffer.speech_started":
            await self._truncate()
        elif kind == "response.audio.delta":
            await self._forward_audio(event)
        elif kind == "response.output_item.done":
            item = _field(event, "item")
            if item.get("type") == "function_call":
                task = asyncio.create_task(self._run_function_call(model, item))
                self._function_tasks.add(task)
                task.add_done_callback(self._function_tasks.discard)

    async def _forward_audio(self, event: dict[str, Any]) -> None:
        call = self._call
        if self._twilio is None or not call.stream_sid:
            return

        if call.response_start_timestamp is None:
            call.response_start_timestamp = call.latest_media_timestamp
        if event.get("item_id"):
            call.last_assistant_item = event["item_id"]

        await _send_json(
            self._twilio,
            {"event": "media", "streamSid": call.stream_sid, "media": {"payload": event.get("delta")}},
        )
        await _send_json(self._twilio, {"event": "mark", "streamSid": call.stream_sid})

    async def _truncate(self) -> None:
        call = self._call
        if not call.last_assistant_item or call.response_start_timestamp is None:
            return

        elapsed_ms = call.latest_media_timestamp - call.response_start_timestamp
        await self._send_model(
            {
                "type": "conversation.item.truncate",
                "item_id": call.last_assistant_item,
                "content_index": 0,
                "audio_end_ms": max(elapsed_ms, 0),
            }
        )
        if call.stream_sid:
            await _send_json(self._twilio, {"event": "clear", "streamSid": call.stream_sid})

        call.last_assistant_item = None
        call.response_start_timestamp = None

    async def _run_function_call(self, model: ModelConnection, item: dict[str, Any]) -> None:
        name = str(item.get("name") or "")
        LOGGER.info("Model requested function %s", name)
        try:
            function = find_function(name)
            args = json.loads(item.get("arguments") or "{}")
            output = await function.handler(args)
        except UnknownFunctionError as exc:
            output = json.dumps({"error": exc.detail})
        except Exception as exc:
            LOGGER.exception("Function %s failed", name)
            output = json.dumps({"error": f"Error running function {name}: {exc}"})

        if self._model is not model:
            LOGGER.info("Dropping output of %s; model connection is gone", name)
            return

        await self._send_model(
            {
                "type": "conversation.item.create",
                "item": {"type": "function_call_output", "call_id": item.get("call_id"), "output": output},
            }
        )
        await self._send_model({"type": "response.create"})
