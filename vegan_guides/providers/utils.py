"""
Shared utilities for provider modules.
"""
import aiohttp
from typing import Optional, Dict, Any
from contextlib import asynccontextmanager

from vegan_guides.models import RestaurantRecord


@asynccontextmanager
async def get_session(session: Optional[aiohttp.ClientSession] = None):
    """Context manager for aiohttp session handling.

    If session is provided, yields it.
    If not, creates a new session and closes it after use.
    """
    if session is not None:
        yield session
    else:
        async with aiohttp.ClientSession() as new_session:
            yield new_session


class VenueNormalizer:
    """Maps raw Places records onto ``RestaurantRecord``."""

    @staticmethod
    def normalize_place(place: Dict[str, Any], is_fully_vegan: bool) -> RestaurantRecord:
        """Normalize one raw Places result.

        Optional fields fall back to: rating 0, review count 0, no price
        level, no photo, open state unknown. Text search results carry
        ``formatted_address``; nearby results only carry ``vicinity``.
        """
        location = (place.get("geometry") or {}).get("location") or {}
        photos = place.get("photos") or []
        opening_hours = place.get("opening_hours") or {}
        return RestaurantRecord(
            id=place["place_id"],
            name=place.get("name") or "",
            address=place.get("formatted_address") or place.get("vicinity") or "",
            lat=float(location.get("lat", 0.0)),
            lng=float(location.get("lng", 0.0)),
            rating=float(place.get("rating") or 0.0),
            review_count=int(place.get("user_ratings_total") or 0),
            price_level=place.get("price_level"),
            photo_ref=photos[0].get("photo_reference") if photos else None,
            open_now=opening_hours.get("open_now"),
            is_fully_vegan=is_fully_vegan,
        )


normalize_place = VenueNormalizer.normalize_place
