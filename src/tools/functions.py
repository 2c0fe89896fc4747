"""Functions the realtime model may call during a call."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field

from config.settings import get_settings
from sessions.errors import UnknownFunctionError

LOGGER = logging.getLogger(__name__)


class FunctionSchema(BaseModel):
    name: str
    type: Literal["function"] = "function"
    description: str
    parameters: dict[str, Any] = Field(description="JSON schema of the call arguments.")


@dataclass(frozen=True)
class FunctionHandler:
    schema: FunctionSchema
    handler: Callable[[dict[str, Any]], Awaitable[str]]


async def get_weather_from_coords(
    args: dict[str, Any],
    *,
    client: httpx.AsyncClient | None = None,
) -> str:
    params = {
        "latitude": args["latitude"],
        "longitude": args["longitude"],
        "current": "temperature_2m,wind_speed_10m",
        "hourly": "temperature_2m,relative_humidity_2m,wind_speed_10m",
    }
    url = get_settings().weather_api_url

    if client is None:
        async with httpx.AsyncClient(timeout=10) as owned:
            response = await owned.get(url, params=params)
    else:
        response = await client.get(url, params=params)

    try:
        response.raise_for_status()
    except httpx.HTTPError as exc:
        LOGGER.error("Weather lookup failed: %s", exc)
        raise

    current = response.json().get("current") or {}
    return json.dumps({"temp": current.get("temperature_2m")})


FUNCTIONS: list[FunctionHandler] = [
    FunctionHandler(
        schema=FunctionSchema(
            name="get_weather_from_coords",
            description="Get the current weather",
            parameters={
                "type": "object",
                "properties": {
                    "latitude": {"type": "number"},
                    "longitude": {"type": "number"},
                },
                "required": ["latitude", "longitude"],
            },
        ),
        handler=get_weather_from_coords,
    ),
]


def list_schemas() -> list[dict[str, Any]]:
    return [function.schema.model_dump() for function in FUNCTIONS]


def find_function(name: str) -> FunctionHandler:
    for function in FUNCTIONS:
        if function.schema.name == name:
            return function
    raise UnknownFunctionError(f"No handler for function: {name}")
