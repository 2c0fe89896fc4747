"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules. Each factory is
cached so the process owns exactly one session manager and one connection
router; tests swap them through ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from config.settings import get_settings
from gateway.handlers import CallHandler, FrontendHandler
from gateway.roles import Role
from gateway.router import ConnectionRouter
from sessions.manager import SessionManager


@lru_cache(maxsize=1)
def _session_manager_factory() -> SessionManager:
    return SessionManager()


def get_session_manager() -> SessionManager:
    return _session_manager_factory()


@lru_cache(maxsize=1)
def _connection_router_factory() -> ConnectionRouter:
    settings = get_settings()
    sessions = get_session_manager()
    return ConnectionRouter(
        {
            Role.CALL: CallHandler(sessions, settings.openai_api_key),
            Role.LOGS: FrontendHandler(sessions),
        }
    )


def get_connection_router() -> ConnectionRouter:
    return _connection_router_factory()
