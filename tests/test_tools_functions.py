from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from sessions.errors import UnknownFunctionError
from tools.functions import find_function, get_weather_from_coords, list_schemas


def test_list_schemas_returns_plain_dicts():
    schemas = list_schemas()
    assert schemas == [
        {
            "name": "get_weather_from_coords",
            "type": "function",
            "description": "Get the current weather",
            "parameters": {
                "type": "object",
                "properties": {
                    "latitude": {"type": "number"},
                    "longitude": {"type": "number"},
                },
                "required": ["latitude", "longitude"],
            },
        }
    ]


def test_find_function_unknown_name_raises():
    with pytest.raises(UnknownFunctionError):
        find_function("does_not_exist")


def test_weather_lookup_returns_current_temperature():
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"current": {"temperature_2m": 21.5, "wind_speed_10m": 3.1}})

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await get_weather_from_coords({"latitude": 47.37, "longitude": 8.54}, client=client)

    result = asyncio.run(scenario())

    assert json.loads(result) == {"temp": 21.5}
    assert requests[0].url.host == "api.open-meteo.com"
    assert requests[0].url.params["latitude"] == "47.37"
    assert requests[0].url.params["longitude"] == "8.54"


def test_weather_lookup_propagates_http_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"reason": "down"})

    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await get_weather_from_coords({"latitude": 0, "longitude": 0}, client=client)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(scenario())
