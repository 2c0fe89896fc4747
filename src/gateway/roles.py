from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    CALL = "call"
    LOGS = "logs"


def classify(path: str | None) -> Role | None:
    """Map a request path to its role, or ``None`` when it is unrecognized.

    Only the first non-empty segment counts, so ``/call``, ``/call/`` and
    ``//call/extra`` all classify as ``Role.CALL``. Never raises.
    """

    if not isinstance(path, str):
        return None

    path = path.split("?", 1)[0].split("#", 1)[0]
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return None

    try:
        return Role(segments[0])
    except ValueError:
        return None
