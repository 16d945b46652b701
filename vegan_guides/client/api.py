"""
Async client for the vegan guides HTTP API.
"""
import asyncio
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Dict, Iterable, List, Optional, Union
from urllib.parse import urlencode

import aiohttp

from vegan_guides.models import RestaurantRecord
from vegan_guides.providers.utils import get_session
from vegan_guides.services.stream_relay import DATA_PREFIX, DONE_MARKER

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"


class ApiError(Exception):
    """Non-success answer (or transport failure) from the API. ``status`` is 0
    when no HTTP response was received."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class ConfigurationError(ApiError):
    """The server has no Places credential configured."""
    pass


class StreamError(Exception):
    pass


class ChatStreamError(StreamError):
    """The chat stream reported a failure (HTTP error, model error event or
    a transport error while reading)."""
    pass


class StreamInterruptedError(StreamError):
    """The chat stream ended without the terminal ``[DONE]`` marker."""
    pass


async def parse_event_stream(lines: AsyncIterable[Union[bytes, str]]) -> AsyncIterator[str]:
    """Yield text fragments from ``data:`` lines.

    ``[DONE]`` ends the stream normally, an ``error`` payload raises
    ``ChatStreamError`` and running out of lines before ``[DONE]`` raises
    ``StreamInterruptedError``. Lines that are not valid events are skipped.
    """
    async for raw in lines:
        line = raw.decode("utf-8", errors="replace") if isinstance(raw, (bytes, bytearray)) else raw
        line = line.strip("\r\n")
        if not line.startswith(DATA_PREFIX):
            continue
        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_MARKER:
            return
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed event line: %r", data[:200])
            continue
        if not isinstance(parsed, dict):
            continue
        if parsed.get("error"):
            raise ChatStreamError(str(parsed["error"]))
        text = parsed.get("text")
        if text:
            yield text
    raise StreamInterruptedError("Chat stream closed before completion marker")


def _wire(restaurants: Iterable[Union[RestaurantRecord, Dict[str, Any]]]) -> List[Dict[str, Any]]:
    return [r.to_dict() if isinstance(r, RestaurantRecord) else r for r in restaurants]


class DiscoveryApiClient:

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        try:
            async with get_session(self.session) as session:
                async with session.get(self._url(path), params=params, timeout=aiohttp.ClientTimeout(total=self.timeout)) as resp:
                    try:
                        data = await resp.json(content_type=None)
                    except (json.JSONDecodeError, aiohttp.ContentTypeError):
                        data = None
                    if resp.status == 200 and data is not None:
                        return data
                    error = data.get("error") if isinstance(data, dict) else None
                    if isinstance(data, dict) and data.get("code") == "not_configured":
                        raise ConfigurationError(resp.status, error or "Places API not configured")
                    raise ApiError(resp.status, error or f"Request to {path} failed")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ApiError(0, f"Request to {path} failed: {e}") from e

    async def fetch_restaurants(self, city: str) -> List[RestaurantRecord]:
        data = await self._get_json("/api/restaurants", {"city": city})
        return [RestaurantRecord.from_dict(d) for d in data]

    async def fetch_nearby(self, lat: float, lng: float, radius: int) -> List[RestaurantRecord]:
        data = await self._get_json("/api/restaurants/nearby", {"lat": lat, "lng": lng, "radius": int(radius)})
        return [RestaurantRecord.from_dict(d) for d in data]

    def photo_url(self, ref: str) -> str:
        return self._url("/api/restaurants/photo?" + urlencode({"ref": ref}))

    async def stream_chat(
        self,
        messages: List[Dict[str, str]],
        restaurants: Iterable[Union[RestaurantRecord, Dict[str, Any]]],
    ) -> AsyncIterator[str]:
        """Yield assistant text fragments as the server streams them."""
        payload = {"messages": messages, "restaurants": _wire(restaurants)}
        try:
            async with get_session(self.session) as session:
                async with session.post(self._url("/api/chat"), json=payload, timeout=aiohttp.ClientTimeout(total=None, sock_read=self.timeout)) as resp:
                    if resp.status != 200:
                        raise ChatStreamError(f"Chat request failed: {resp.status}")
                    async for text in parse_event_stream(resp.content):
                        yield text
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ChatStreamError(f"Chat stream failed: {e}") from e
