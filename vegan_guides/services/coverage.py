"""
Coverage grid for viewport-driven searches.

Points are bucketed onto a fixed lat/lng grid (1/20 degree by default).
A cell is covered once a proximity query has been dispatched for it and
stays covered until the grid is reset with the result set. Cells are
coarser than the search radius, so places near a cell border may be
missed while panning.
"""
import math
from typing import Set, Tuple

from vegan_guides.models import LatLng

CellKey = Tuple[int, int]

DEFAULT_CELLS_PER_DEGREE = 20


def cell_key(lat: float, lng: float, cells_per_degree: int = DEFAULT_CELLS_PER_DEGREE) -> CellKey:
    """Quantize a point onto the grid. Equal keys mean the same cell."""
    return (math.floor(lat * cells_per_degree), math.floor(lng * cells_per_degree))


class CoverageGrid:

    def __init__(self, cells_per_degree: int = DEFAULT_CELLS_PER_DEGREE):
        if cells_per_degree <= 0:
            raise ValueError("cells_per_degree must be positive")
        self.cells_per_degree = cells_per_degree
        self._cells: Set[CellKey] = set()

    def key_for(self, point: LatLng) -> CellKey:
        return cell_key(point.lat, point.lng, self.cells_per_degree)

    def is_covered(self, point: LatLng) -> bool:
        return self.key_for(point) in self._cells

    def mark_covered(self, point: LatLng) -> CellKey:
        """Record coverage for the cell holding ``point``; repeated calls are no-ops."""
        key = self.key_for(point)
        self._cells.add(key)
        return key

    def reset(self) -> None:
        self._cells.clear()

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, key: object) -> bool:
        return key in self._cells
