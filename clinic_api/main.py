import logging
import uuid
from datetime import date, datetime
from typing import List, Optional, Union

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from clinic_api.config import LOG_LEVEL
from clinic_api.database import Base, engine, SessionLocal
from clinic_api.exceptions import AppointmentNotFoundError, InvalidSlotError, PersistenceError
from clinic_api.gateway import SqlAlchemyGateway
from clinic_api.models import PatientRecord
from clinic_api.scheduler import ClinicScheduler, default_grid
from clinic_api.schemas import (
    Appointment,
    Committed,
    PatientCreate,
    PatientResponse,
    PrepareSaveRequest,
    ReadyToCommit,
    RequiresOverwriteConfirmation,
    SaveRequest,
    SlotClickRequest,
    SlotClickResponse,
    SlotLocked,
    SlotOccupancy,
    StatusChangeRequest,
    ValidationFailed,
)
from clinic_api.selection import selected_slots

logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="Clinic Scheduling API")

# Create tables
Base.metadata.create_all(bind=engine)

# Built once so bad clinic hours fail at startup.
GRID = default_grid()


# Dependency for DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_scheduler(db: Session = Depends(get_db)) -> ClinicScheduler:
    return ClinicScheduler(SqlAlchemyGateway(db), GRID)


@app.exception_handler(AppointmentNotFoundError)
async def appointment_not_found(request: Request, exc: AppointmentNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidSlotError)
async def invalid_slot(request: Request, exc: InvalidSlotError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_failed(request: Request, exc: PersistenceError):
    # The client keeps its form state and may resubmit; nothing is retried here.
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def parse_date(value: str) -> date:
    """Accept YYYY-MM-DD, a quoted string (clients sometimes send %22...%22) or an ISO datetime."""

    raw = value.strip()
    if (raw.startswith('"') and raw.endswith('"')) or (raw.startswith("'") and raw.endswith("'")):
        raw = raw[1:-1]

    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(raw).date()
    except ValueError:
        raise HTTPException(status_code=422, detail="date must be YYYY-MM-DD or ISO format")


def outcome_error(status_code: int, outcome) -> HTTPException:
    return HTTPException(status_code=status_code, detail=outcome.model_dump(mode="json"))


@app.get("/api/slots", response_model=List[str])
def list_slots(scheduler: ClinicScheduler = Depends(get_scheduler)):
    return scheduler.slots()


@app.get("/api/availability", response_model=List[SlotOccupancy])
def availability(date: str, exclude_id: Optional[str] = None, scheduler: ClinicScheduler = Depends(get_scheduler)):
    return scheduler.day_occupancy(parse_date(date), exclude_id)


@app.post("/api/selection/click", response_model=SlotClickResponse)
def click_slot(req: SlotClickRequest, scheduler: ClinicScheduler = Depends(get_scheduler)):
    state = scheduler.rebuild_selection(req.date, req.selected, req.exclude_id)
    result = scheduler.click_slot(state, req.date, req.slot, req.exclude_id)
    return SlotClickResponse(selected=list(selected_slots(result.state)), message=result.message)


@app.get("/api/appointments", response_model=List[Appointment])
def list_appointments(scheduler: ClinicScheduler = Depends(get_scheduler)):
    return scheduler.appointments()


@app.get("/api/appointments/canceled", response_model=List[Appointment])
def canceled_appointments(scheduler: ClinicScheduler = Depends(get_scheduler)):
    """Canceled bookings log, most recent first."""
    return scheduler.canceled_log()


@app.get("/api/appointments/day", response_model=List[Appointment])
def appointments_on_day(date: str, scheduler: ClinicScheduler = Depends(get_scheduler)):
    return scheduler.appointments_on(parse_date(date))


@app.get("/api/appointments/{appointment_id}/slots", response_model=List[str])
def appointment_slots(appointment_id: str, scheduler: ClinicScheduler = Depends(get_scheduler)):
    return scheduler.editing_slots(appointment_id)


@app.post(
    "/api/appointments/prepare",
    response_model=Union[RequiresOverwriteConfirmation, ReadyToCommit],
)
def prepare_appointment(
    req: PrepareSaveRequest,
    db: Session = Depends(get_db),
    scheduler: ClinicScheduler = Depends(get_scheduler),
):
    form = req.form

    # Fill the display name from the directory when the client only sent an id.
    if form.patient_id and not form.patient_name:
        patient = db.query(PatientRecord).filter(PatientRecord.id == form.patient_id).first()
        if patient:
            form = form.model_copy(update={"patient_name": patient.name})

    outcome = scheduler.prepare_save(form, req.slots)

    if isinstance(outcome, ValidationFailed):
        raise outcome_error(422, outcome)
    if isinstance(outcome, SlotLocked):
        raise outcome_error(409, outcome)

    return outcome


@app.post("/api/appointments", response_model=List[Appointment])
def save_appointment(req: SaveRequest, scheduler: ClinicScheduler = Depends(get_scheduler)):
    outcome = scheduler.commit_save(req.appointment, req.cancel_ids)
    if isinstance(outcome, ValidationFailed):
        raise outcome_error(422, outcome)
    if not isinstance(outcome, Committed):
        raise outcome_error(409, outcome)

    return outcome.appointments


@app.put("/api/appointments/{appointment_id}/cancel", response_model=List[Appointment])
def cancel_appointment(appointment_id: str, scheduler: ClinicScheduler = Depends(get_scheduler)):
    outcome = scheduler.cancel(appointment_id)
    if not isinstance(outcome, Committed):
        raise outcome_error(409, outcome)

    logger.info(f"Canceled appointment {appointment_id}")
    return outcome.appointments


@app.put("/api/appointments/{appointment_id}/restore", response_model=List[Appointment])
def restore_appointment(appointment_id: str, scheduler: ClinicScheduler = Depends(get_scheduler)):
    outcome = scheduler.restore(appointment_id)
    if not isinstance(outcome, Committed):
        raise outcome_error(409, outcome)

    return outcome.appointments


@app.put("/api/appointments/{appointment_id}/status", response_model=List[Appointment])
def change_appointment_status(
    appointment_id: str,
    req: StatusChangeRequest,
    scheduler: ClinicScheduler = Depends(get_scheduler),
):
    outcome = scheduler.change_status(appointment_id, req.status)
    if not isinstance(outcome, Committed):
        raise outcome_error(409, outcome)

    return outcome.appointments


@app.get("/api/patients", response_model=List[PatientResponse])
def list_patients(db: Session = Depends(get_db)):
    return db.query(PatientRecord).order_by(PatientRecord.name).all()


@app.post("/api/patients", response_model=PatientResponse)
def create_patient(payload: PatientCreate, db: Session = Depends(get_db)):
    patient = PatientRecord(id=uuid.uuid4().hex[:9], name=payload.name, phone=payload.phone, email=payload.email)
    db.add(patient)

    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to create patient")
        raise HTTPException(status_code=500, detail="Failed to create patient")

    db.refresh(patient)
    return patient
