"""
Client-side discovery state for one browsing session.

``DiscoveryCoordinator`` owns the result set shown to the user, the grid of
map cells already searched and the debounced nearby-search scheduler.
Choosing a city replaces everything; map movement only adds to it.
"""
import logging
from typing import Callable, List, Optional

from vegan_guides.config import DiscoveryConfig, get_config
from vegan_guides.models import LatLng, RestaurantRecord, ViewportChange
from vegan_guides.services.coverage import CoverageGrid
from vegan_guides.services.reconciler import ResultSet
from vegan_guides.services.scheduler import DebouncedSearchScheduler
from .api import ApiError, ConfigurationError, DiscoveryApiClient

logger = logging.getLogger(__name__)

CITIES = [
    "Spain",
    "Madrid",
    "Barcelona",
    "Valencia",
    "Seville",
    "Bilbao",
    "Málaga",
    "Granada",
    "Palma",
]

FILTERS = ("all", "vegan", "options")

LOAD_ERROR_MESSAGE = "Could not load restaurants. Check that the server is running and API keys are set."

Listener = Callable[[List[RestaurantRecord]], None]


class DiscoveryCoordinator:

    def __init__(self, api: DiscoveryApiClient, discovery_config: Optional[DiscoveryConfig] = None):
        cfg = discovery_config or get_config().discovery_config
        self.api = api
        self.results = ResultSet()
        self.coverage = CoverageGrid(cfg.grid_cells_per_degree)
        self.scheduler = DebouncedSearchScheduler(
            search=api.fetch_nearby,
            on_results=self._merge_nearby,
            coverage=self.coverage,
            debounce_seconds=cfg.debounce_seconds,
            min_zoom=cfg.min_zoom,
            radius_tiers=cfg.radius_tiers,
            default_radius=cfg.default_radius,
        )
        self.city: Optional[str] = None
        self.loading = False
        self.error: Optional[str] = None
        self.fatal_error: Optional[str] = None
        self._load_seq = 0
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        """``listener`` receives the sorted records after every change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        records = self.results.records()
        for listener in list(self._listeners):
            listener(records)

    async def select_city(self, city: str) -> bool:
        """Run a whole-region search and replace the result set with it.

        Returns True when the result set was replaced. On failure the
        previous results stay in place and ``error`` (or ``fatal_error`` for
        a missing server credential) is set. A response that arrives after
        a newer ``select_city`` call was made is discarded.
        """
        self._load_seq += 1
        seq = self._load_seq
        self.city = city
        self.loading = True
        self.error = None
        try:
            records = await self.api.fetch_restaurants(city)
        except ConfigurationError as e:
            logger.error("Restaurant search not configured on server: %s", e)
            if seq == self._load_seq:
                self.fatal_error = e.message
            return False
        except ApiError as e:
            logger.warning("Loading %s failed: %s", city, e)
            if seq == self._load_seq:
                self.error = LOAD_ERROR_MESSAGE
            return False
        finally:
            if seq == self._load_seq:
                self.loading = False

        if seq != self._load_seq:
            logger.debug("Discarding superseded results for %s", city)
            return False

        self.reset()
        self.results.merge(records)
        self._notify()
        return True

    def reset(self) -> None:
        """Empty the result set and the coverage grid together."""
        self.scheduler.reset()
        self.results.reset()
        self.coverage.reset()

    def on_viewport_change(self, lat: float, lng: float, zoom: float) -> bool:
        return self.scheduler.on_viewport_change(ViewportChange(LatLng(lat, lng), zoom))

    def _merge_nearby(self, records: List[RestaurantRecord]) -> None:
        if self.results.merge(records):
            self._notify()

    def restaurants(self, filter: str = "all") -> List[RestaurantRecord]:
        """Current records, optionally only fully vegan or only vegan options."""
        if filter not in FILTERS:
            raise ValueError(f"Unknown filter: {filter}")
        records = self.results.records()
        if filter == "vegan":
            return [r for r in records if r.is_fully_vegan]
        if filter == "options":
            return [r for r in records if not r.is_fully_vegan]
        return records

    async def close(self) -> None:
        self.scheduler.cancel()
        await self.scheduler.drain()
