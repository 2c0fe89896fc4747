from __future__ import annotations

import logging
from collections.abc import Mapping

from fastapi import WebSocket

from gateway.handlers import RoleHandler
from gateway.registry import RoleSlotRegistry, close_quietly
from gateway.roles import Role, classify

LOGGER = logging.getLogger(__name__)


class ConnectionRouter:
    """Admits inbound WebSocket connections and dispatches them by role.

    Unrecognized paths are closed before the handshake completes. Recognized
    connections are accepted, installed into their role slot (closing the
    previous occupant), then served by the role's handler. A failing handler
    only costs its own connection.
    """

    def __init__(
        self,
        handlers: Mapping[Role, RoleHandler],
        registry: RoleSlotRegistry | None = None,
    ) -> None:
        missing = [role.value for role in Role if role not in handlers]
        if missing:
            raise ValueError(f"No handler registered for role(s): {', '.join(missing)}")
        self._handlers = dict(handlers)
        self._registry = registry or RoleSlotRegistry()

    @property
    def registry(self) -> RoleSlotRegistry:
        return self._registry

    async def route(self, websocket: WebSocket) -> None:
        path = websocket.url.path
        role = classify(path)
        if role is None:
            LOGGER.debug("Rejecting WebSocket for unrecognized path %r", path)
            await close_quietly(websocket)
            return

        try:
            await websocket.accept()
            await self._registry.install(role, websocket)
            LOGGER.info("Accepted %s connection", role.value)
            await self._handlers[role].handle(websocket)
        except Exception:
            LOGGER.exception("WebSocket dispatch failed for %s connection", role.value)
            await close_quietly(websocket)
