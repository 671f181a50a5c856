from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from datetime import date as Date, datetime
from typing import List, Literal, Optional


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELED = "canceled"


class SlotStatus(str, Enum):
    FREE = "free"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


class Appointment(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    patient_id: str
    patient_name: str
    start: datetime
    end: datetime
    status: AppointmentStatus
    observation: Optional[str] = None
    created_at: datetime


class AppointmentDraft(BaseModel):
    """Upsert payload handed to the persistence gateway. No id means create."""

    id: Optional[str] = None
    patient_id: str
    patient_name: str
    start: datetime
    end: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    observation: Optional[str] = None


class AppointmentForm(BaseModel):
    id: Optional[str] = None
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    date: Optional[Date] = None
    status: AppointmentStatus = AppointmentStatus.PENDING
    observation: Optional[str] = None


class Occupancy(BaseModel):
    status: SlotStatus
    owner: Optional[Appointment] = None


class SlotOccupancy(BaseModel):
    slot: str
    status: SlotStatus
    owner_id: Optional[str] = None
    owner_name: Optional[str] = None


# Outcomes. Expected conditions come back as values tagged by `kind`.

class ValidationFailed(BaseModel):
    kind: Literal["validation_failed"] = "validation_failed"
    message: str


class SlotLocked(BaseModel):
    kind: Literal["slot_locked"] = "slot_locked"
    slot: str
    owner: Appointment


class RequiresOverwriteConfirmation(BaseModel):
    kind: Literal["requires_overwrite_confirmation"] = "requires_overwrite_confirmation"
    conflicting_pending_ids: List[str]
    payload: AppointmentDraft


class ReadyToCommit(BaseModel):
    kind: Literal["ready_to_commit"] = "ready_to_commit"
    payload: AppointmentDraft


class Committed(BaseModel):
    kind: Literal["committed"] = "committed"
    appointments: List[Appointment]


class TransitionRejected(BaseModel):
    kind: Literal["transition_rejected"] = "transition_rejected"
    appointment_id: str
    current: AppointmentStatus
    requested: AppointmentStatus
    message: str


class RestoreRejected(BaseModel):
    kind: Literal["restore_rejected"] = "restore_rejected"
    appointment_id: str
    conflicting_appointment: Appointment
    message: str


# Request / response bodies for the HTTP binding.

class PatientCreate(BaseModel):
    name: str
    phone: str
    email: Optional[str] = None


class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    phone: str
    email: Optional[str] = None


class SlotClickRequest(BaseModel):
    date: Date
    slot: str
    selected: List[str] = Field(default_factory=list)
    exclude_id: Optional[str] = None


class SlotClickResponse(BaseModel):
    selected: List[str]
    message: Optional[str] = None


class PrepareSaveRequest(BaseModel):
    form: AppointmentForm
    slots: List[str] = Field(default_factory=list)


class SaveRequest(BaseModel):
    appointment: AppointmentDraft
    cancel_ids: List[str] = Field(default_factory=list)


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus
