"""Role handlers the router hands accepted connections to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from fastapi import WebSocket

if TYPE_CHECKING:  # pragma: no cover
    from sessions.manager import SessionManager


class RoleHandler(ABC):
    """Takes ownership of an accepted connection for its whole lifetime."""

    @abstractmethod
    async def handle(self, websocket: WebSocket) -> None:
        """Serve the connection until it closes."""


class CallHandler(RoleHandler):
    def __init__(self, session_manager: SessionManager, credential: str) -> None:
        self._sessions = session_manager
        self._credential = credential

    async def handle(self, websocket: WebSocket) -> None:
        await self._sessions.handle_call_connection(websocket, self._credential)


class FrontendHandler(RoleHandler):
    def __init__(self, session_manager: SessionManager) -> None:
        self._sessions = session_manager

    async def handle(self, websocket: WebSocket) -> None:
        await self._sessions.handle_frontend_connection(websocket)
