# mise/application/equipment_ledger.py
from __future__ import annotations

import bisect
import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Tuple

from mise.core.errors import InternalError

log = logging.getLogger("app.equipment_ledger")

Interval = Tuple[datetime, datetime]


class IntervalSet:
    """
    Sorted set of half-open busy intervals ``[start, end)`` for one equipment unit.
    Intervals are kept ordered by start; adjacent bookings are not merged.
    """

    def __init__(self) -> None:
        self._items: List[Interval] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self._items)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        for s, e in self._items:
            if s >= end:
                break
            if start < e:
                return True
        return False

    def add(self, start: datetime, end: datetime) -> None:
        if end <= start:
            raise InternalError(f"Empty or inverted interval: {start.isoformat()} >= {end.isoformat()}")
        bisect.insort(self._items, (start, end))

    def latest_free_end(self, duration: timedelta, preferred_end: datetime) -> datetime:
        """Latest ``end <= preferred_end`` such that ``[end - duration, end)`` is free."""
        end = preferred_end
        # walk bookings from the latest start backwards; each blocker pulls the window
        # to its own start, which never re-opens a conflict with a later booking
        for s, e in reversed(self._items):
            if s >= end:
                continue
            if e > end - duration:
                end = s
        return end


class EquipmentLedger:
    """Per-run record of equipment busy intervals, keyed by equipment id."""

    def __init__(self, equipment_ids: Iterable[str]) -> None:
        self._sets: Dict[str, IntervalSet] = {eq_id: IntervalSet() for eq_id in equipment_ids}

    def __contains__(self, equipment_id: str) -> bool:
        return equipment_id in self._sets

    def _set(self, equipment_id: str) -> IntervalSet:
        try:
            return self._sets[equipment_id]
        except KeyError:
            raise InternalError(f"Equipment '{equipment_id}' is not part of this run's inventory") from None

    def conflict(self, equipment_id: str, start: datetime, end: datetime) -> bool:
        return self._set(equipment_id).overlaps(start, end)

    def reserve(self, equipment_id: str, start: datetime, end: datetime) -> None:
        self._set(equipment_id).add(start, end)

    def find_next_free_slot_backward(self, equipment_id: str, duration: int, preferred_end: datetime) -> datetime:
        slot = self._set(equipment_id).latest_free_end(timedelta(minutes=duration), preferred_end)
        if slot != preferred_end:
            log.debug(
                "%s busy; %d min slot pulled from %s to %s",
                equipment_id, duration, preferred_end.isoformat(), slot.isoformat(),
            )
        return slot

    def bookings(self, equipment_id: str) -> List[Interval]:
        return list(self._set(equipment_id))
