"""In-progress slot selection for the booking form.

The selection is one of three states:

    Empty            nothing highlighted
    Single(slot)     one slot highlighted
    Range(slots)     a contiguous run of two or more slots, in grid order

`click_slot` is a pure transition function; the caller keeps the returned
state and throws it away on submit, cancel or date change.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Tuple, Union

from clinic_api.conflicts import can_extend_range, is_locked, occupancy
from clinic_api.schemas import Appointment
from clinic_api.slot_grid import SlotGrid

LOCKED_SLOT_MESSAGE = "This slot belongs to a confirmed or completed appointment."
LOCKED_RANGE_MESSAGE = "Cannot select a range that overlaps with Confirmed or Completed appointments."


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Single:
    slot: str


@dataclass(frozen=True)
class Range:
    slots: Tuple[str, ...]


SelectionState = Union[Empty, Single, Range]


@dataclass(frozen=True)
class ClickResult:
    state: SelectionState
    message: Optional[str] = None


def selected_slots(state: SelectionState) -> Tuple[str, ...]:
    if isinstance(state, Empty):
        return ()
    if isinstance(state, Single):
        return (state.slot,)
    if isinstance(state, Range):
        return state.slots
    raise TypeError(f"Unknown selection state: {state!r}")


def selection_from_slots(
    slots: Iterable[str],
    grid: SlotGrid,
    day: Optional[date] = None,
    appointments: Iterable[Appointment] = (),
    exclude_id: Optional[str] = None,
) -> SelectionState:
    """Rebuild a state from a list of labels, e.g. one posted back by a client.

    With a day given, a selection whose span covers a confirmed or completed
    slot is dropped and the user starts over from Empty.
    """
    ordered = grid.sort(slots)
    if not ordered:
        return Empty()
    if day is not None and not can_extend_range(ordered, day, appointments, grid, exclude_id):
        return Empty()
    if len(ordered) == 1:
        return Single(ordered[0])
    return Range(tuple(grid.span(ordered[0], ordered[-1])))


def click_slot(
    state: SelectionState,
    slot: str,
    day: date,
    appointments: Iterable[Appointment],
    grid: SlotGrid,
    exclude_id: Optional[str] = None,
) -> ClickResult:
    appointments = list(appointments)
    current = selected_slots(state)

    if is_locked(occupancy(day, slot, appointments, grid, exclude_id).status):
        return ClickResult(state, LOCKED_SLOT_MESSAGE)

    # Clicking any highlighted slot clears the whole selection.
    if slot in current:
        return ClickResult(Empty())

    if isinstance(state, Empty):
        return ClickResult(Single(slot))

    candidates = current + (slot,)
    if not can_extend_range(candidates, day, appointments, grid, exclude_id):
        return ClickResult(state, LOCKED_RANGE_MESSAGE)

    ordered = grid.sort(candidates)
    return ClickResult(Range(tuple(grid.span(ordered[0], ordered[-1]))))


def change_date(state: SelectionState) -> SelectionState:
    return Empty()


def reset_form(state: SelectionState) -> SelectionState:
    return Empty()
