"""
Provider base interfaces and exceptions.

Place-search backends implement ``PlacesProvider`` so the aggregator can be
exercised against fakes in tests and against Google Places in production.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Tuple
import logging


class PlacesProvider(ABC):
    """Base place-search interface.

    Both query shapes return raw provider records (dicts); normalization
    into ``RestaurantRecord`` happens in the aggregator.
    """

    name = "places"

    def __init__(self):
        """Initialize the provider."""
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def text_search(self, query: str) -> List[Dict[str, Any]]:
        """Search places by free text (e.g. "vegan restaurant in Madrid Spain").

        Raises:
            ProviderError: If the search fails
        """
        pass

    @abstractmethod
    async def nearby_search(
        self,
        lat: float,
        lng: float,
        radius: int,
        keyword: str,
    ) -> List[Dict[str, Any]]:
        """Search places within ``radius`` meters of a point.

        Raises:
            ProviderError: If the search fails
        """
        pass

    @abstractmethod
    async def fetch_photo(self, ref: str, max_width: int) -> Tuple[bytes, Optional[str]]:
        """Fetch photo bytes and the upstream content type (may be None)."""
        pass


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider_name: Optional[str] = None, details: Optional[Dict] = None):
        """Initialize provider error.

        Args:
            message: Error message
            provider_name: Name of the provider that failed
            details: Additional error details
        """
        super().__init__(message)
        self.provider_name = provider_name
        self.details = details or {}


class ProviderNotConfiguredError(ProviderError):
    """Raised when a provider credential is missing."""
    pass


class ProviderResponseError(ProviderError):
    """Raised when the provider answers with an error status."""
    pass


class ProviderTimeoutError(ProviderError):
    """Raised when provider request times out."""
    pass
