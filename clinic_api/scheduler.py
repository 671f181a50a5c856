from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from clinic_api import conflicts, lifecycle, selection
from clinic_api.config import ALLOW_DIRECT_COMPLETION, CLINIC_CLOSE_HOUR, CLINIC_OPEN_HOUR, SLOT_MINUTES
from clinic_api.gateway import SchedulePersistenceGateway
from clinic_api.schemas import (
    Appointment,
    AppointmentDraft,
    AppointmentForm,
    AppointmentStatus,
    Occupancy,
    SlotOccupancy,
)
from clinic_api.slot_grid import SlotGrid


def default_grid() -> SlotGrid:
    return SlotGrid(CLINIC_OPEN_HOUR, CLINIC_CLOSE_HOUR, SLOT_MINUTES)


class ClinicScheduler:
    """Entry point for the calendar UI.

    Holds no appointments of its own: every call reads a fresh snapshot from
    the gateway and hands mutations back to it.
    """

    def __init__(
        self,
        gateway: SchedulePersistenceGateway,
        grid: Optional[SlotGrid] = None,
        allow_direct_completion: bool = ALLOW_DIRECT_COMPLETION,
    ):
        self.gateway = gateway
        self.grid = grid or default_grid()
        self.allow_direct_completion = allow_direct_completion

    def slots(self) -> List[str]:
        return list(self.grid.labels)

    def appointments(self) -> List[Appointment]:
        return self.gateway.list()

    def appointments_on(self, day: date) -> List[Appointment]:
        day_start = datetime(day.year, day.month, day.day)
        day_end = day_start + timedelta(days=1)
        return sorted(
            (a for a in self.gateway.list()
             if a.status is not AppointmentStatus.CANCELED and day_start <= a.start < day_end),
            key=lambda a: a.start,
        )

    def canceled_log(self) -> List[Appointment]:
        canceled = [a for a in self.gateway.list() if a.status is AppointmentStatus.CANCELED]
        return sorted(canceled, key=lambda a: a.start, reverse=True)

    def occupancy(self, day: date, slot: str, exclude_id: Optional[str] = None) -> Occupancy:
        return conflicts.occupancy(day, slot, self.gateway.list(), self.grid, exclude_id)

    def day_occupancy(self, day: date, exclude_id: Optional[str] = None) -> List[SlotOccupancy]:
        return conflicts.day_occupancy(day, self.gateway.list(), self.grid, exclude_id)

    def editing_slots(self, appointment_id: str) -> List[str]:
        apt = lifecycle.find_appointment(self.gateway.list(), appointment_id)
        return self.grid.labels_between(apt.start, apt.end)

    def rebuild_selection(
        self,
        day: date,
        slots: Sequence[str],
        exclude_id: Optional[str] = None,
    ) -> selection.SelectionState:
        return selection.selection_from_slots(slots, self.grid, day, self.gateway.list(), exclude_id)

    def click_slot(
        self,
        state: selection.SelectionState,
        day: date,
        slot: str,
        exclude_id: Optional[str] = None,
    ) -> selection.ClickResult:
        return selection.click_slot(state, slot, day, self.gateway.list(), self.grid, exclude_id)

    def prepare_save(self, form: AppointmentForm, slots: Sequence[str]) -> lifecycle.SaveOutcome:
        return lifecycle.prepare_save(form, slots, self.gateway.list(), self.grid)

    def commit_save(self, payload: AppointmentDraft, cancel_ids: Iterable[str] = ()) -> lifecycle.CommitOutcome:
        return lifecycle.commit_save(self.gateway, payload, cancel_ids)

    def cancel(self, appointment_id: str) -> lifecycle.ChangeOutcome:
        return lifecycle.cancel(self.gateway, appointment_id, self.gateway.list())

    def restore(self, appointment_id: str) -> lifecycle.RestoreOutcome:
        return lifecycle.restore(self.gateway, appointment_id, self.gateway.list())

    def change_status(self, appointment_id: str, status: AppointmentStatus) -> lifecycle.ChangeOutcome:
        return lifecycle.change_status(
            self.gateway, appointment_id, status, self.gateway.list(), self.allow_direct_completion
        )
