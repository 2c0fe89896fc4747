"""HTTP routes: public URL discovery, TwiML and tool listing."""

from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit
from xml.sax.saxutils import quoteattr

from fastapi import APIRouter, Response

from api.schemas import PublicUrlResponse
from config.settings import get_settings
from tools.functions import list_schemas

router = APIRouter()


def _stream_url(public_url: str) -> str:
    parts = urlsplit(public_url)
    if not parts.netloc:
        # Bare host such as "example.ngrok.app".
        parts = urlsplit(f"//{public_url}")
    return urlunsplit(("wss", parts.netloc, "/call", "", ""))


def _twiml_stream(*, stream_url: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<Response>\n"
        "  <Say>Connected</Say>\n"
        "  <Connect>\n"
        f"    <Stream url={quoteattr(stream_url)} />\n"
        "  </Connect>\n"
        "  <Say>Disconnected</Say>\n"
        "</Response>"
    )


@router.get("/public-url", response_model=PublicUrlResponse)
async def public_url() -> PublicUrlResponse:
    return PublicUrlResponse(publicUrl=get_settings().public_url)


@router.api_route("/twiml", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"])
async def twiml() -> Response:
    # Twilio fetches this with POST by default; any method gets the same document.
    xml = _twiml_stream(stream_url=_stream_url(get_settings().public_url))
    return Response(content=xml, media_type="text/xml")


@router.get("/tools")
async def tools() -> list[dict]:
    return list_schemas()
