"""Tests for the half-hour slot grid."""
from datetime import date, datetime

import pytest

from clinic_api.exceptions import ConfigurationError, InvalidSlotError
from clinic_api.slot_grid import SlotGrid, generate_slots


def test_default_clinic_day_has_twenty_slots():
    slots = generate_slots(8, 18, 30)

    assert len(slots) == 20
    assert slots[0] == "08:00"
    assert slots[-1] == "17:30"
    assert slots == sorted(slots)
    assert len(set(slots)) == len(slots)


def test_hourly_granularity():
    assert generate_slots(9, 12, 60) == ["09:00", "10:00", "11:00"]


@pytest.mark.parametrize("open_hour,close_hour", [(-1, 10), (10, 10), (18, 8), (0, 25)])
def test_rejects_bad_hours(open_hour, close_hour):
    with pytest.raises(ConfigurationError):
        generate_slots(open_hour, close_hour, 30)


@pytest.mark.parametrize("granularity", [0, -30, 45])
def test_rejects_bad_granularity(granularity):
    with pytest.raises(ConfigurationError):
        generate_slots(8, 18, granularity)


class TestSlotGrid:

    def test_position_of(self, grid):
        assert grid.position_of("08:00") == 0
        assert grid.position_of("09:30") == 3
        assert grid.position_of("17:30") == 19

    def test_position_of_unknown_label(self, grid):
        with pytest.raises(InvalidSlotError):
            grid.position_of("18:00")
        with pytest.raises(ValueError):
            grid.position_of("9:00")

    def test_to_timestamp_and_window(self, grid):
        day = date(2024, 1, 10)

        assert grid.to_timestamp(day, "09:30") == datetime(2024, 1, 10, 9, 30)
        assert grid.slot_window(day, "17:30") == (
            datetime(2024, 1, 10, 17, 30),
            datetime(2024, 1, 10, 18, 0),
        )

    def test_span_is_inclusive_and_order_independent(self, grid):
        assert grid.span("10:00", "08:30") == ["08:30", "09:00", "09:30", "10:00"]
        assert grid.span("12:00", "12:00") == ["12:00"]

    def test_sort_uses_grid_position(self, grid):
        assert grid.sort(["10:00", "08:00", "09:30", "08:00"]) == ["08:00", "09:30", "10:00"]

    def test_is_contiguous(self, grid):
        assert grid.is_contiguous(["09:00", "09:30", "10:00"])
        assert grid.is_contiguous(["11:00"])
        assert not grid.is_contiguous(["09:00", "10:00"])
        assert not grid.is_contiguous([])

    def test_labels_between(self, grid):
        start = datetime(2024, 1, 10, 9, 0)
        end = datetime(2024, 1, 10, 10, 30)

        assert grid.labels_between(start, end) == ["09:00", "09:30", "10:00"]

    def test_invalid_configuration_fails_on_construction(self):
        with pytest.raises(ConfigurationError):
            SlotGrid(18, 8, 30)
