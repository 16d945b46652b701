"""
Canonical restaurant record shared by the server aggregator and the client
coordinator, plus the small geometry types used by viewport discovery.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, NamedTuple, Optional

MAPS_PLACE_URL = "https://www.google.com/maps/place/?q=place_id:{place_id}"


def maps_url_for(place_id: str) -> str:
    """External map link for a provider id."""
    return MAPS_PLACE_URL.format(place_id=place_id)


class LatLng(NamedTuple):
    lat: float
    lng: float


class ViewportChange(NamedTuple):
    """A pan/zoom event from the map: visible center and zoom level."""
    center: LatLng
    zoom: float


@dataclass
class RestaurantRecord:
    """One place as shown on the map and in the sidebar.

    ``open_now`` is tri-state: True/False when the provider reports it,
    None when unknown. ``maps_url`` is always derived from ``id``.
    """
    id: str
    name: str
    address: str
    lat: float
    lng: float
    rating: float = 0.0
    review_count: int = 0
    price_level: Optional[int] = None
    photo_ref: Optional[str] = None
    open_now: Optional[bool] = None
    is_fully_vegan: bool = False
    maps_url: str = field(default="", compare=False)

    def __post_init__(self):
        self.maps_url = maps_url_for(self.id)

    @property
    def position(self) -> LatLng:
        return LatLng(self.lat, self.lng)

    def to_dict(self) -> Dict[str, Any]:
        """JSON wire form (camelCase keys)."""
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "lat": self.lat,
            "lng": self.lng,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "priceLevel": self.price_level,
            "photoRef": self.photo_ref,
            "openNow": self.open_now,
            "isFullyVegan": self.is_fully_vegan,
            "mapsUrl": self.maps_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RestaurantRecord":
        """Build a record from its wire form.

        Raises:
            KeyError: if ``id`` is missing
        """
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            address=data.get("address") or "",
            lat=float(data.get("lat") or 0.0),
            lng=float(data.get("lng") or 0.0),
            rating=float(data.get("rating") or 0.0),
            review_count=int(data.get("reviewCount") or 0),
            price_level=data.get("priceLevel"),
            photo_ref=data.get("photoRef"),
            open_now=data.get("openNow"),
            is_fully_vegan=bool(data.get("isFullyVegan", False)),
        )
