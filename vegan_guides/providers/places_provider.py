"""
Google Places API provider for discovering vegan restaurants.

Uses the Places web service (text search, nearby search and the photo
endpoint) over a shared aiohttp session.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from vegan_guides.config import get_config
from .base import (
    PlacesProvider,
    ProviderError,
    ProviderNotConfiguredError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from .utils import get_session

logger = logging.getLogger(__name__)

PLACES_TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
PLACES_NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
PLACES_PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"

# Statuses that carry a (possibly empty) result list
OK_STATUSES = ("OK", "ZERO_RESULTS")


class GooglePlacesProvider(PlacesProvider):
    name = "google_places"

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: Optional[float] = None,
        language: str = "en",
    ):
        super().__init__()
        config = get_config()
        self.api_key = api_key if api_key is not None else config.google_api_key
        self.session = session
        self.timeout = timeout or config.get_timeout('places')
        self.photo_timeout = config.get_timeout('photo')
        self.language = language

    def _require_key(self) -> str:
        if not self.api_key:
            raise ProviderNotConfiguredError("GOOGLE_API_KEY not configured", provider_name=self.name)
        return self.api_key

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET a Places JSON endpoint and return the decoded body."""
        try:
            async with get_session(self.session) as session:
                async with session.get(url, params=params, timeout=aiohttp.ClientTimeout(total=self.timeout)) as resp:
                    if resp.status != 200:
                        raise ProviderResponseError(
                            f"Places HTTP error: {resp.status}",
                            provider_name=self.name,
                            details={"http_status": resp.status},
                        )
                    return await resp.json()
        except asyncio.TimeoutError:
            raise ProviderTimeoutError(f"Places request timed out after {self.timeout}s", provider_name=self.name)
        except aiohttp.ClientError as e:
            raise ProviderError(f"Places request failed: {e}", provider_name=self.name)

    async def _search(self, url: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        params = dict(params, key=self._require_key(), language=self.language)
        data = await self._get_json(url, params)
        status = data.get("status")
        if status not in OK_STATUSES:
            raise ProviderResponseError(
                f"Places API error: {status}",
                provider_name=self.name,
                details={"status": status, "error_message": data.get("error_message")},
            )
        return data.get("results") or []

    async def text_search(self, query: str) -> List[Dict[str, Any]]:
        logger.debug("Places text search: %s", query)
        return await self._search(PLACES_TEXT_SEARCH_URL, {"query": query, "type": "restaurant"})

    async def nearby_search(self, lat: float, lng: float, radius: int, keyword: str) -> List[Dict[str, Any]]:
        logger.debug("Places nearby search: %s @ %.5f,%.5f r=%s", keyword, lat, lng, radius)
        return await self._search(PLACES_NEARBY_SEARCH_URL, {
            "location": f"{lat},{lng}",
            "radius": int(radius),
            "keyword": keyword,
            "type": "restaurant",
        })

    async def fetch_photo(self, ref: str, max_width: int) -> Tuple[bytes, Optional[str]]:
        """Proxy a Places photo so the key never reaches the browser."""
        params = {"photoreference": ref, "maxwidth": int(max_width), "key": self._require_key()}
        try:
            async with get_session(self.session) as session:
                async with session.get(PLACES_PHOTO_URL, params=params, timeout=aiohttp.ClientTimeout(total=self.photo_timeout)) as resp:
                    if resp.status != 200:
                        raise ProviderResponseError(
                            f"Places photo HTTP error: {resp.status}",
                            provider_name=self.name,
                            details={"http_status": resp.status},
                        )
                    body = await resp.read()
                    return body, resp.headers.get("Content-Type")
        except asyncio.TimeoutError:
            raise ProviderTimeoutError("Places photo request timed out", provider_name=self.name)
        except aiohttp.ClientError as e:
            raise ProviderError(f"Places photo request failed: {e}", provider_name=self.name)
