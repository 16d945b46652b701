"""
Priority merge of restaurant batches.

A fully-vegan record always replaces whatever is stored under the same id;
a vegan-options record is only ever inserted, never used to overwrite.
Because of that rule, merging overlapping batches in any order ends with
the fully-vegan variant of every place that any batch classified as such.
"""
from typing import Dict, Iterable, List, Optional

from vegan_guides.models import RestaurantRecord


def should_replace(existing: Optional[RestaurantRecord], incoming: RestaurantRecord) -> bool:
    """True when ``incoming`` should be stored over ``existing``."""
    if existing is None:
        return True
    return incoming.is_fully_vegan


def merge_records(
    existing: Dict[str, RestaurantRecord],
    incoming: Iterable[RestaurantRecord],
) -> Dict[str, RestaurantRecord]:
    """Return a new id -> record mapping with ``incoming`` merged in."""
    merged = dict(existing)
    for record in incoming:
        if should_replace(merged.get(record.id), record):
            merged[record.id] = record
    return merged


def sort_by_rating(records: Iterable[RestaurantRecord]) -> List[RestaurantRecord]:
    """Descending by rating; ties keep their current order."""
    return sorted(records, key=lambda r: r.rating, reverse=True)


class ResultSet:
    """The deduplicated, rating-sorted set of records currently shown."""

    def __init__(self, records: Iterable[RestaurantRecord] = ()):
        self._by_id: Dict[str, RestaurantRecord] = {}
        self._ordered: List[RestaurantRecord] = []
        self.merge(records)

    def merge(self, batch: Iterable[RestaurantRecord]) -> List[RestaurantRecord]:
        """Merge a batch under the priority rule and re-sort.

        Returns the records that were inserted or replaced.
        """
        changed = []
        for record in batch:
            if should_replace(self._by_id.get(record.id), record):
                self._by_id[record.id] = record
                changed.append(record)
        self._ordered = sort_by_rating(self._by_id.values())
        return changed

    def reset(self) -> None:
        self._by_id.clear()
        self._ordered = []

    def records(self) -> List[RestaurantRecord]:
        return list(self._ordered)

    def get(self, place_id: str) -> Optional[RestaurantRecord]:
        return self._by_id.get(place_id)

    def ids(self) -> List[str]:
        return [r.id for r in self._ordered]

    def __iter__(self):
        return iter(list(self._ordered))

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, place_id: object) -> bool:
        return place_id in self._by_id
