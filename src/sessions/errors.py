"""Relay-specific exceptions."""

from __future__ import annotations


class RelayError(Exception):
    default_detail: str = "Relay error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class ModelConnectionError(RelayError):
    default_detail = "Could not connect to the realtime model."


class UnknownFunctionError(RelayError):
    default_detail = "Unknown function."
