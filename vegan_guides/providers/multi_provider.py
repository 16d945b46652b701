"""
Dual-query aggregation over a places provider.

Every search runs two provider queries concurrently: one biased toward
100% vegan places and one toward restaurants with vegan options. Results
are merged by place id with the fully-vegan classification taking priority
and returned sorted by rating. Either sub-query failing fails the call.
"""
import asyncio
import hashlib
import json
import logging
from typing import Any, Dict, List, Optional

from vegan_guides.models import RestaurantRecord
from vegan_guides.services.reconciler import merge_records, sort_by_rating
from .base import PlacesProvider
from .utils import normalize_place

logger = logging.getLogger(__name__)

COUNTRY = "Spain"
VEGAN_KEYWORD = "vegan restaurant"
VEGAN_OPTIONS_KEYWORD = "vegan options"


def _region(city: str) -> str:
    city = (city or "").strip() or COUNTRY
    if city.lower() == COUNTRY.lower():
        return COUNTRY
    return f"{city} {COUNTRY}"


def build_city_queries(city: str) -> Dict[str, str]:
    """Text queries for a whole-region search, keyed by bias."""
    region = _region(city)
    return {
        "vegan": f"vegan restaurant in {region}",
        "options": f"vegan options restaurant in {region}",
    }


def build_search_cache_key(city: str) -> str:
    normalized = _region(city).lower()
    return "restaurants:" + hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def combine_results(
    vegan_places: List[Dict[str, Any]],
    option_places: List[Dict[str, Any]],
) -> List[RestaurantRecord]:
    """Merge both result lists: options first, then fully vegan over them."""
    merged = merge_records({}, (normalize_place(p, False) for p in option_places))
    merged = merge_records(merged, (normalize_place(p, True) for p in vegan_places))
    return sort_by_rating(merged.values())


async def discover_city(
    provider: PlacesProvider,
    city: str,
    redis_client=None,
    cache_ttl: int = 0,
) -> List[RestaurantRecord]:
    """Whole-region search for ``city``.

    When a redis client and a positive ``cache_ttl`` are given, the merged
    list is reused for that many seconds. Cache failures never fail the
    search.
    """
    cache_key = build_search_cache_key(city)
    if redis_client is not None and cache_ttl > 0:
        try:
            cached = await redis_client.get(cache_key)
            if cached:
                logger.info("Search cache hit for %s", city)
                return [RestaurantRecord.from_dict(d) for d in json.loads(cached)]
        except Exception:
            logger.exception("Search cache lookup failed for %s", city)

    queries = build_city_queries(city)
    vegan_places, option_places = await asyncio.gather(
        provider.text_search(queries["vegan"]),
        provider.text_search(queries["options"]),
    )
    restaurants = combine_results(vegan_places, option_places)
    logger.info(
        "City search %s: %d vegan, %d options -> %d merged",
        city, len(vegan_places), len(option_places), len(restaurants),
    )

    if redis_client is not None and cache_ttl > 0:
        try:
            payload = json.dumps([r.to_dict() for r in restaurants])
            await redis_client.setex(cache_key, cache_ttl, payload)
        except Exception:
            logger.exception("Failed to cache search results for %s", city)

    return restaurants


async def discover_nearby(
    provider: PlacesProvider,
    lat: float,
    lng: float,
    radius: int,
) -> List[RestaurantRecord]:
    """Proximity search around a point (not cached)."""
    vegan_places, option_places = await asyncio.gather(
        provider.nearby_search(lat, lng, radius, VEGAN_KEYWORD),
        provider.nearby_search(lat, lng, radius, VEGAN_OPTIONS_KEYWORD),
    )
    restaurants = combine_results(vegan_places, option_places)
    logger.debug(
        "Nearby search %.4f,%.4f r=%s: %d merged", lat, lng, radius, len(restaurants)
    )
    return restaurants
