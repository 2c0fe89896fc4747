"""WebSocket entry point: every upgrade goes through the connection router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, WebSocket

from api.dependencies import get_connection_router
from gateway.router import ConnectionRouter

router = APIRouter()


@router.websocket("/{path:path}")
async def gateway_websocket(
    websocket: WebSocket,
    connection_router: ConnectionRouter = Depends(get_connection_router),
) -> None:
    await connection_router.route(websocket)
