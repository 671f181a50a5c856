"""Tests for slot occupancy and range validation."""
import itertools

from clinic_api.conflicts import can_extend_range, day_occupancy, find_overlap, occupancy
from clinic_api.schemas import AppointmentStatus, SlotStatus
from factories import at, make_appointment

CONFIRMED = AppointmentStatus.CONFIRMED
COMPLETED = AppointmentStatus.COMPLETED
CANCELED = AppointmentStatus.CANCELED


def test_free_slot(grid, day):
    occ = occupancy(day, "09:00", [], grid)

    assert occ.status is SlotStatus.FREE
    assert occ.owner is None


def test_slot_inherits_owner_status(grid, day):
    apt = make_appointment("a", "09:00", "10:00", CONFIRMED)

    occ = occupancy(day, "09:30", [apt], grid)

    assert occ.status is SlotStatus.CONFIRMED
    assert occ.owner == apt


def test_half_open_boundaries(grid, day):
    apt = make_appointment("a", "09:00", "09:30")

    assert occupancy(day, "08:30", [apt], grid).status is SlotStatus.FREE
    assert occupancy(day, "09:00", [apt], grid).status is SlotStatus.PENDING
    assert occupancy(day, "09:30", [apt], grid).status is SlotStatus.FREE


def test_canceled_and_excluded_appointments_are_ignored(grid, day):
    canceled = make_appointment("c", "09:00", "09:30", CANCELED)
    editing = make_appointment("e", "10:00", "10:30", CONFIRMED)

    assert occupancy(day, "09:00", [canceled], grid).status is SlotStatus.FREE
    assert occupancy(day, "10:00", [editing], grid, exclude_id="e").status is SlotStatus.FREE
    assert occupancy(day, "10:00", [editing], grid).status is SlotStatus.CONFIRMED


def test_other_days_do_not_occupy(grid, day):
    apt = make_appointment("a", "09:00", "09:30", CONFIRMED)

    assert occupancy(day.replace(day=11), "09:00", [apt], grid).status is SlotStatus.FREE


def test_unaligned_appointment_occupies_every_touched_slot(grid, day):
    apt = make_appointment("a", "09:15", "09:45")

    assert occupancy(day, "09:00", [apt], grid).status is SlotStatus.PENDING
    assert occupancy(day, "09:30", [apt], grid).status is SlotStatus.PENDING
    assert occupancy(day, "10:00", [apt], grid).status is SlotStatus.FREE


def test_free_slots_mean_no_overlap(grid, day):
    """If every slot in B's range is free, B does not overlap any live appointment."""
    existing = [
        make_appointment("a", "09:00", "10:00", CONFIRMED),
        make_appointment("b", "11:30", "12:00"),
        make_appointment("c", "14:00", "15:30", COMPLETED),
        make_appointment("d", "16:00", "17:00", CANCELED),
    ]

    for first, last in itertools.combinations_with_replacement(range(len(grid.labels)), 2):
        labels = grid.labels[first:last + 1]
        if all(occupancy(day, s, existing, grid).status is SlotStatus.FREE for s in labels):
            start, _ = grid.slot_window(day, labels[0])
            _, end = grid.slot_window(day, labels[-1])
            assert find_overlap(start, end, existing) is None


def test_day_occupancy(grid, day):
    apt = make_appointment("a", "08:00", "09:00", CONFIRMED, patient_name="John Wick")

    rows = day_occupancy(day, [apt], grid)

    assert len(rows) == 20
    assert [r.status for r in rows[:3]] == [SlotStatus.CONFIRMED, SlotStatus.CONFIRMED, SlotStatus.FREE]
    assert rows[0].owner_id == "a"
    assert rows[0].owner_name == "John Wick"
    assert rows[2].owner_id is None


class TestCanExtendRange:

    def test_rejects_span_over_confirmed_slot(self, grid, day):
        existing = [make_appointment("a", "09:00", "09:30", CONFIRMED)]

        assert not can_extend_range(["08:30", "09:30"], day, existing, grid)

    def test_rejects_span_over_completed_slot(self, grid, day):
        existing = [make_appointment("a", "10:00", "10:30", COMPLETED)]

        assert not can_extend_range(["11:00", "09:00"], day, existing, grid)

    def test_allows_pending_inside_span(self, grid, day):
        existing = [make_appointment("a", "09:00", "09:30")]

        assert can_extend_range(["08:30", "09:30"], day, existing, grid)

    def test_excluded_appointment_does_not_block(self, grid, day):
        existing = [make_appointment("a", "09:00", "09:30", CONFIRMED)]

        assert can_extend_range(["08:30", "09:30"], day, existing, grid, exclude_id="a")

    def test_empty_candidate_is_rejected(self, grid, day):
        assert not can_extend_range([], day, [], grid)

    def test_find_overlap_skips_canceled(self):
        existing = [
            make_appointment("c", "09:00", "10:00", CANCELED),
            make_appointment("p", "09:30", "10:30"),
        ]

        assert find_overlap(at("09:00"), at("10:00"), existing).id == "p"
