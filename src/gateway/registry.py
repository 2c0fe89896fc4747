from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from gateway.roles import Role

LOGGER = logging.getLogger(__name__)


class Closable(Protocol):
    async def close(self, code: int = 1000, reason: str | None = None) -> Any:  # pragma: no cover - protocol stub
        ...


async def close_quietly(handle: Closable) -> None:
    """Close a connection, ignoring failures (the peer may already be gone)."""

    try:
        await handle.close()
    except Exception as exc:
        LOGGER.debug("Ignoring close failure on %r: %s", handle, exc)


class RoleSlotRegistry:
    """One connection slot per role.

    Installing into an occupied slot closes the previous occupant first.
    The registry is never told about closes initiated elsewhere, so a slot
    may hold an already-closed handle; closing it again is harmless.
    """

    def __init__(self) -> None:
        self._slots: dict[Role, Closable | None] = {role: None for role in Role}
        self._locks: dict[Role, asyncio.Lock] = {role: asyncio.Lock() for role in Role}

    def occupant(self, role: Role) -> Closable | None:
        return self._slots[role]

    async def install(self, role: Role, handle: Closable) -> None:
        async with self._locks[role]:
            previous = self._slots[role]
            self._slots[role] = None
            if previous is not None and previous is not handle:
                LOGGER.info("Evicting previous %s connection", role.value)
                await close_quietly(previous)
            self._slots[role] = handle
