"""
Unit tests for mise.application.equipment_ledger.
"""

from datetime import datetime, timedelta

import pytest

from mise.application.equipment_ledger import EquipmentLedger, IntervalSet
from mise.core.errors import InternalError


def at(hh, mm):
    return datetime(2030, 1, 1, hh, mm)


class TestConflict:
    def test_overlap_is_a_conflict(self):
        ledger = EquipmentLedger(["oven-1"])
        ledger.reserve("oven-1", at(17, 40), at(18, 0))
        assert ledger.conflict("oven-1", at(17, 30), at(17, 50))
        assert ledger.conflict("oven-1", at(17, 45), at(17, 50))
        assert ledger.conflict("oven-1", at(17, 0), at(18, 30))

    def test_touching_endpoints_do_not_conflict(self):
        ledger = EquipmentLedger(["oven-1"])
        ledger.reserve("oven-1", at(17, 40), at(18, 0))
        assert not ledger.conflict("oven-1", at(17, 20), at(17, 40))
        assert not ledger.conflict("oven-1", at(18, 0), at(18, 20))

    def test_units_are_independent(self):
        ledger = EquipmentLedger(["oven-1", "oven-2"])
        ledger.reserve("oven-1", at(17, 40), at(18, 0))
        assert not ledger.conflict("oven-2", at(17, 40), at(18, 0))

    def test_unknown_unit_is_an_internal_error(self):
        ledger = EquipmentLedger(["oven-1"])
        with pytest.raises(InternalError):
            ledger.conflict("mixer-1", at(17, 0), at(17, 10))
        with pytest.raises(InternalError):
            ledger.reserve("mixer-1", at(17, 0), at(17, 10))


class TestReserve:
    def test_bookings_stay_sorted_and_unmerged(self):
        ledger = EquipmentLedger(["oven-1"])
        ledger.reserve("oven-1", at(17, 40), at(18, 0))
        ledger.reserve("oven-1", at(17, 20), at(17, 40))
        ledger.reserve("oven-1", at(16, 0), at(16, 30))
        assert ledger.bookings("oven-1") == [
            (at(16, 0), at(16, 30)),
            (at(17, 20), at(17, 40)),
            (at(17, 40), at(18, 0)),
        ]

    def test_empty_interval_rejected(self):
        s = IntervalSet()
        with pytest.raises(InternalError):
            s.add(at(17, 0), at(17, 0))


class TestFindNextFreeSlotBackward:
    def test_free_unit_returns_preferred_end(self):
        ledger = EquipmentLedger(["oven-1"])
        assert ledger.find_next_free_slot_backward("oven-1", 20, at(18, 0)) == at(18, 0)

    def test_bookings_after_the_window_are_ignored(self):
        ledger = EquipmentLedger(["oven-1"])
        ledger.reserve("oven-1", at(18, 0), at(18, 30))
        assert ledger.find_next_free_slot_backward("oven-1", 20, at(18, 0)) == at(18, 0)

    def test_pulled_to_start_of_blocking_booking(self):
        ledger = EquipmentLedger(["oven-1"])
        ledger.reserve("oven-1", at(17, 40), at(18, 0))
        assert ledger.find_next_free_slot_backward("oven-1", 20, at(18, 0)) == at(17, 40)

    def test_gap_that_fits_exactly_is_used(self):
        ledger = EquipmentLedger(["oven-1"])
        ledger.reserve("oven-1", at(17, 0), at(17, 20))
        ledger.reserve("oven-1", at(17, 40), at(18, 0))
        assert ledger.find_next_free_slot_backward("oven-1", 20, at(18, 0)) == at(17, 40)

    def test_gap_too_small_is_skipped(self):
        ledger = EquipmentLedger(["oven-1"])
        ledger.reserve("oven-1", at(17, 0), at(17, 20))
        ledger.reserve("oven-1", at(17, 40), at(18, 0))
        assert ledger.find_next_free_slot_backward("oven-1", 30, at(18, 0)) == at(17, 0)

    def test_result_never_later_than_preferred_and_never_conflicts(self):
        ledger = EquipmentLedger(["oven-1"])
        for start, end in [((16, 0), (16, 50)), ((17, 5), (17, 25)), ((17, 30), (17, 55))]:
            ledger.reserve("oven-1", at(*start), at(*end))
        for minutes in (5, 10, 15, 45, 90):
            end = ledger.find_next_free_slot_backward("oven-1", minutes, at(18, 0))
            assert end <= at(18, 0)
            start = end - timedelta(minutes=minutes)
            assert not ledger.conflict("oven-1", start, end)
