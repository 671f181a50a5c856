"""Status transitions and the save / cancel / restore flows.

    pending   -> confirmed, canceled
    confirmed -> completed, canceled
    completed -> (nothing, read only)
    canceled  -> pending (restore)

Expected conditions (missing fields, locked slots, pending overlaps,
illegal transitions, occupied restore windows) come back as outcome values.
Only gateway failures and unknown ids are raised.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Union

from clinic_api.conflicts import find_overlap, is_locked, occupancy
from clinic_api.exceptions import AppointmentNotFoundError
from clinic_api.gateway import SchedulePersistenceGateway
from clinic_api.schemas import (
    Appointment,
    AppointmentDraft,
    AppointmentForm,
    AppointmentStatus,
    Committed,
    ReadyToCommit,
    RequiresOverwriteConfirmation,
    RestoreRejected,
    SlotLocked,
    SlotStatus,
    TransitionRejected,
    ValidationFailed,
)
from clinic_api.slot_grid import SlotGrid

logger = logging.getLogger(__name__)

TRANSITIONS = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELED: frozenset({AppointmentStatus.PENDING}),
}

SaveOutcome = Union[ValidationFailed, SlotLocked, RequiresOverwriteConfirmation, ReadyToCommit]
CommitOutcome = Union[Committed, TransitionRejected, ValidationFailed]
ChangeOutcome = Union[Committed, TransitionRejected]
RestoreOutcome = Union[Committed, TransitionRejected, RestoreRejected]


def can_transition(
    current: AppointmentStatus,
    target: AppointmentStatus,
    allow_direct_completion: bool = False,
) -> bool:
    if target in TRANSITIONS[current]:
        return True
    # Open question: the dashboard can mark a pending visit as done.
    return (
        allow_direct_completion
        and current is AppointmentStatus.PENDING
        and target is AppointmentStatus.COMPLETED
    )


def find_appointment(appointments: Iterable[Appointment], appointment_id: str) -> Appointment:
    for apt in appointments:
        if apt.id == appointment_id:
            return apt
    raise AppointmentNotFoundError(appointment_id)


def _rejected(apt: Appointment, target: AppointmentStatus) -> TransitionRejected:
    logger.warning(f"Rejected transition {apt.status.value} -> {target.value} for {apt.id}")
    return TransitionRejected(
        appointment_id=apt.id,
        current=apt.status,
        requested=target,
        message=f"Cannot change a {apt.status.value} appointment to {target.value}.",
    )


def prepare_save(
    form: AppointmentForm,
    selected_slots: Sequence[str],
    appointments: Iterable[Appointment],
    grid: SlotGrid,
) -> SaveOutcome:
    """Validate a booking form and work out what saving it would overwrite."""

    appointments = list(appointments)

    if form.date is None or not selected_slots or not form.patient_id:
        return ValidationFailed(message="Please select a date, at least one slot and a patient.")
    if not form.patient_name:
        return ValidationFailed(message="The selected patient has no name on file.")

    slots = grid.sort(selected_slots)
    if not grid.is_contiguous(slots):
        return ValidationFailed(message="Selected slots must form one contiguous range.")

    # Completing and canceling go through change_status / cancel, not the form.
    if form.status not in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED):
        return ValidationFailed(message="Appointments are saved as pending or confirmed.")

    if form.id is not None:
        existing = next((a for a in appointments if a.id == form.id), None)
        if existing is None:
            return ValidationFailed(message=f"Appointment {form.id} no longer exists.")
        if existing.status is AppointmentStatus.COMPLETED:
            return ValidationFailed(message="Completed appointments are read only.")
        if existing.status is AppointmentStatus.CANCELED:
            return ValidationFailed(message="Restore a canceled appointment before editing it.")
        if form.status is not existing.status and not can_transition(existing.status, form.status):
            return ValidationFailed(
                message=f"Cannot change a {existing.status.value} appointment to {form.status.value}."
            )

    conflicting_pending_ids: List[str] = []
    for slot in slots:
        occ = occupancy(form.date, slot, appointments, grid, exclude_id=form.id)
        if is_locked(occ.status):
            return SlotLocked(slot=slot, owner=occ.owner)
        if occ.status is SlotStatus.PENDING and occ.owner.id not in conflicting_pending_ids:
            conflicting_pending_ids.append(occ.owner.id)

    start, _ = grid.slot_window(form.date, slots[0])
    _, end = grid.slot_window(form.date, slots[-1])
    payload = AppointmentDraft(
        id=form.id,
        patient_id=form.patient_id,
        patient_name=form.patient_name,
        start=start,
        end=end,
        status=form.status,
        observation=form.observation,
    )

    if conflicting_pending_ids:
        return RequiresOverwriteConfirmation(conflicting_pending_ids=conflicting_pending_ids, payload=payload)
    return ReadyToCommit(payload=payload)


def commit_save(
    gateway: SchedulePersistenceGateway,
    payload: AppointmentDraft,
    conflicting_ids_to_cancel: Iterable[str] = (),
) -> CommitOutcome:
    """Cancel the overwritten pending appointments and upsert payload in one save.

    Both are checked against a fresh snapshot first: only pending
    appointments can be overwritten, and the upsert must be a legal edit.
    """

    cancel_ids = list(dict.fromkeys(conflicting_ids_to_cancel))
    appointments = gateway.list()

    if payload.id is not None and payload.id in cancel_ids:
        return ValidationFailed(message="An appointment cannot overwrite itself.")

    for apt_id in cancel_ids:
        victim = find_appointment(appointments, apt_id)
        if victim.status is not AppointmentStatus.PENDING:
            return _rejected(victim, AppointmentStatus.CANCELED)

    if payload.status not in (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED):
        return ValidationFailed(message="Appointments are saved as pending or confirmed.")

    if payload.id is not None:
        existing = find_appointment(appointments, payload.id)
        if existing.status in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELED):
            return _rejected(existing, payload.status)
        if payload.status is not existing.status and not can_transition(existing.status, payload.status):
            return _rejected(existing, payload.status)

    appointments = gateway.save(payload, cancel_ids)
    if cancel_ids:
        logger.info(f"Overwrote pending appointments {cancel_ids}")
    return Committed(appointments=appointments)


def change_status(
    gateway: SchedulePersistenceGateway,
    appointment_id: str,
    target: AppointmentStatus,
    appointments: Iterable[Appointment],
    allow_direct_completion: bool = False,
) -> ChangeOutcome:
    apt = find_appointment(appointments, appointment_id)

    # Restoring has its own conflict check.
    if target is AppointmentStatus.PENDING and apt.status is AppointmentStatus.CANCELED:
        return _rejected(apt, target)
    if not can_transition(apt.status, target, allow_direct_completion):
        return _rejected(apt, target)

    draft = AppointmentDraft(**apt.model_dump(include=set(AppointmentDraft.model_fields)))
    draft = draft.model_copy(update={"status": target})
    return Committed(appointments=gateway.save(draft, []))


def cancel(
    gateway: SchedulePersistenceGateway,
    appointment_id: str,
    appointments: Iterable[Appointment],
) -> ChangeOutcome:
    return change_status(gateway, appointment_id, AppointmentStatus.CANCELED, appointments)


def restore(
    gateway: SchedulePersistenceGateway,
    appointment_id: str,
    appointments: Iterable[Appointment],
) -> RestoreOutcome:
    appointments = list(appointments)
    apt = find_appointment(appointments, appointment_id)

    if apt.status is not AppointmentStatus.CANCELED:
        return _rejected(apt, AppointmentStatus.PENDING)

    blocking: Optional[Appointment] = find_overlap(apt.start, apt.end, appointments, exclude_id=apt.id)
    if blocking is not None:
        logger.warning(f"Restore of {apt.id} blocked by {blocking.id} ({blocking.status.value})")
        return RestoreRejected(
            appointment_id=apt.id,
            conflicting_appointment=blocking,
            message=f"The time slot is already occupied by {blocking.patient_name} ({blocking.status.value}).",
        )

    return Committed(appointments=gateway.restore(apt.id))
