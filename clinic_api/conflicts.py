from datetime import date, datetime
from typing import Iterable, List, Optional

from clinic_api.schemas import Appointment, AppointmentStatus, Occupancy, SlotOccupancy, SlotStatus
from clinic_api.slot_grid import SlotGrid

# Occupancy a slot inherits from the appointment covering it. Canceled
# appointments never occupy a slot.
SLOT_STATUS_FOR = {
    AppointmentStatus.PENDING: SlotStatus.PENDING,
    AppointmentStatus.CONFIRMED: SlotStatus.CONFIRMED,
    AppointmentStatus.COMPLETED: SlotStatus.COMPLETED,
    AppointmentStatus.CANCELED: None,
}

LOCKED_STATUSES = frozenset({SlotStatus.CONFIRMED, SlotStatus.COMPLETED})


def is_locked(status: SlotStatus) -> bool:
    return status in LOCKED_STATUSES


def overlaps(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    return other_start < end and other_end > start


def find_overlap(
    start: datetime,
    end: datetime,
    appointments: Iterable[Appointment],
    exclude_id: Optional[str] = None,
) -> Optional[Appointment]:
    """First non-canceled appointment, other than exclude_id, intersecting [start, end)."""

    for apt in appointments:
        if SLOT_STATUS_FOR[apt.status] is None:
            continue
        if exclude_id is not None and apt.id == exclude_id:
            continue
        if overlaps(start, end, apt.start, apt.end):
            return apt
    return None


def occupancy(
    day: date,
    slot: str,
    appointments: Iterable[Appointment],
    grid: SlotGrid,
    exclude_id: Optional[str] = None,
) -> Occupancy:
    slot_start, slot_end = grid.slot_window(day, slot)
    owner = find_overlap(slot_start, slot_end, appointments, exclude_id)

    if owner is None:
        return Occupancy(status=SlotStatus.FREE)

    return Occupancy(status=SLOT_STATUS_FOR[owner.status], owner=owner)


def day_occupancy(
    day: date,
    appointments: Iterable[Appointment],
    grid: SlotGrid,
    exclude_id: Optional[str] = None,
) -> List[SlotOccupancy]:
    appointments = list(appointments)
    result = []

    for slot in grid.labels:
        occ = occupancy(day, slot, appointments, grid, exclude_id)
        result.append(SlotOccupancy(
            slot=slot,
            status=occ.status,
            owner_id=occ.owner.id if occ.owner else None,
            owner_name=occ.owner.patient_name if occ.owner else None,
        ))

    return result


def can_extend_range(
    candidate_slots: Iterable[str],
    day: date,
    appointments: Iterable[Appointment],
    grid: SlotGrid,
    exclude_id: Optional[str] = None,
) -> bool:
    """Whether the contiguous span covering candidate_slots is free of locked slots.

    Pending slots may be included: they are overwritten on save, after the
    user confirms.
    """

    candidates = grid.sort(candidate_slots)
    if not candidates:
        return False

    appointments = list(appointments)
    for slot in grid.span(candidates[0], candidates[-1]):
        if is_locked(occupancy(day, slot, appointments, grid, exclude_id).status):
            return False
    return True
