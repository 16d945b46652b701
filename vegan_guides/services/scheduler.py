"""
Debounced proximity search driven by map viewport changes.

Pan/zoom gestures fire many viewport events per second. The scheduler
turns them into at most one proximity query per settled position:

1. events below ``min_zoom`` are ignored;
2. events whose grid cell is already covered are ignored and leave any
   pending timer alone;
3. any other event cancels the pending timer and arms a new one;
4. when a timer fires, its cell is marked covered and the query is
   dispatched as an independent task whose result is handed to
   ``on_results``.

Dispatched queries are never cancelled. A failed query is logged and
dropped, and its cell stays covered so a failing region is not retried
on every pan. ``reset()`` starts a new epoch: completions belonging to an
earlier epoch are discarded.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Set, Tuple

from vegan_guides.models import LatLng, RestaurantRecord, ViewportChange
from .coverage import CellKey, CoverageGrid

logger = logging.getLogger(__name__)

SearchFn = Callable[[float, float, int], Awaitable[List[RestaurantRecord]]]
ResultsFn = Callable[[List[RestaurantRecord]], None]

DEFAULT_RADIUS_TIERS: Sequence[Tuple[int, int]] = ((15, 1000), (13, 2500))
DEFAULT_RADIUS = 5000


def radius_for_zoom(
    zoom: float,
    tiers: Iterable[Tuple[int, int]] = DEFAULT_RADIUS_TIERS,
    default: int = DEFAULT_RADIUS,
) -> int:
    """Search radius in meters: the closer the zoom, the smaller the radius."""
    for min_zoom, radius in sorted(tiers, reverse=True):
        if zoom >= min_zoom:
            return radius
    return default


class DebouncedSearchScheduler:

    def __init__(
        self,
        search: SearchFn,
        on_results: ResultsFn,
        coverage: CoverageGrid,
        debounce_seconds: float = 0.6,
        min_zoom: float = 11,
        radius_tiers: Iterable[Tuple[int, int]] = DEFAULT_RADIUS_TIERS,
        default_radius: int = DEFAULT_RADIUS,
    ):
        self._search = search
        self._on_results = on_results
        self.coverage = coverage
        self.debounce_seconds = debounce_seconds
        self.min_zoom = min_zoom
        self.radius_tiers = list(radius_tiers)
        self.default_radius = default_radius
        self._timer: Optional[asyncio.TimerHandle] = None
        self._pending_cell: Optional[CellKey] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._epoch = 0

    @property
    def pending(self) -> bool:
        """True while a debounce timer is armed."""
        return self._timer is not None

    @property
    def pending_cell(self) -> Optional[CellKey]:
        return self._pending_cell

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def on_viewport_change(self, event: ViewportChange) -> bool:
        """Handle one viewport event; returns True if a timer was (re)armed.

        Must be called from the event loop thread.
        """
        if event.zoom < self.min_zoom:
            return False
        if self.coverage.is_covered(event.center):
            return False

        self.cancel()
        loop = asyncio.get_running_loop()
        key = self.coverage.key_for(event.center)
        radius = radius_for_zoom(event.zoom, self.radius_tiers, self.default_radius)
        self._pending_cell = key
        self._timer = loop.call_later(
            self.debounce_seconds, self._fire, event.center, radius, self._epoch
        )
        return True

    def cancel(self) -> None:
        """Disarm the pending timer, if any. In-flight queries keep running."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending_cell = None

    def reset(self) -> None:
        """Cancel the pending timer and start a new epoch."""
        self.cancel()
        self._epoch += 1

    def _fire(self, center: LatLng, radius: int, epoch: int) -> None:
        self._timer = None
        self._pending_cell = None
        key = self.coverage.mark_covered(center)
        logger.debug("Dispatching nearby search for cell %s (r=%s)", key, radius)
        task = asyncio.get_running_loop().create_task(self._dispatch(center, radius, epoch))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _dispatch(self, center: LatLng, radius: int, epoch: int) -> None:
        try:
            records = await self._search(center.lat, center.lng, radius)
        except Exception as e:
            logger.debug("Nearby search at %.4f,%.4f failed: %s", center.lat, center.lng, e)
            return
        if epoch != self._epoch:
            logger.debug("Dropping %d nearby results from a previous epoch", len(records))
            return
        try:
            self._on_results(records)
        except Exception:
            logger.exception("Merging %d nearby results failed", len(records))

    async def drain(self) -> None:
        """Wait for every dispatched query to finish."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
