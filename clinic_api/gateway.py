import abc
import logging
import uuid
from datetime import datetime
from typing import Dict, Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_api.exceptions import AppointmentNotFoundError, PersistenceError
from clinic_api.models import AppointmentRecord
from clinic_api.schemas import Appointment, AppointmentDraft, AppointmentStatus

logger = logging.getLogger(__name__)


def new_appointment_id() -> str:
    return f"APT-{uuid.uuid4().hex[:12]}"


class SchedulePersistenceGateway(abc.ABC):
    """Storage contract the scheduling core depends on.

    Every call returns the full, current list of appointments so callers
    always work from a fresh snapshot.
    """

    @abc.abstractmethod
    def list(self) -> List[Appointment]:
        ...

    @abc.abstractmethod
    def save(self, draft: AppointmentDraft, cancel_ids: Iterable[str] = ()) -> List[Appointment]:
        """Cancel `cancel_ids`, then create `draft` (no id) or update it (id set)."""

    @abc.abstractmethod
    def restore(self, appointment_id: str) -> List[Appointment]:
        """Flip a canceled appointment back to pending."""


class InMemoryGateway(SchedulePersistenceGateway):

    def __init__(self, appointments: Iterable[Appointment] = ()):
        self._appointments: Dict[str, Appointment] = {a.id: a for a in appointments}

    def list(self) -> List[Appointment]:
        return sorted(self._appointments.values(), key=lambda a: (a.start, a.created_at))

    def save(self, draft: AppointmentDraft, cancel_ids: Iterable[str] = ()) -> List[Appointment]:
        if draft.id is not None and draft.id not in self._appointments:
            raise AppointmentNotFoundError(draft.id)

        for apt_id in cancel_ids:
            if apt_id in self._appointments:
                self._appointments[apt_id] = self._appointments[apt_id].model_copy(
                    update={"status": AppointmentStatus.CANCELED}
                )

        fields = draft.model_dump(exclude={"id"})
        if draft.id is None:
            apt = Appointment(id=new_appointment_id(), created_at=datetime.now(), **fields)
        else:
            apt = self._appointments[draft.id].model_copy(update=fields)
        self._appointments[apt.id] = apt

        return self.list()

    def restore(self, appointment_id: str) -> List[Appointment]:
        if appointment_id not in self._appointments:
            raise AppointmentNotFoundError(appointment_id)

        self._appointments[appointment_id] = self._appointments[appointment_id].model_copy(
            update={"status": AppointmentStatus.PENDING}
        )
        return self.list()


class SqlAlchemyGateway(SchedulePersistenceGateway):

    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[Appointment]:
        try:
            records = self.db.query(AppointmentRecord).order_by(
                AppointmentRecord.start, AppointmentRecord.created_at
            ).all()
        except SQLAlchemyError as exc:
            logger.exception("Failed to load appointments")
            raise PersistenceError("Failed to load appointments") from exc

        return [Appointment.model_validate(r) for r in records]

    def save(self, draft: AppointmentDraft, cancel_ids: Iterable[str] = ()) -> List[Appointment]:
        cancel_ids = list(cancel_ids)

        # Cancellations and the upsert go out in one commit.
        try:
            if cancel_ids:
                self.db.query(AppointmentRecord).filter(
                    AppointmentRecord.id.in_(cancel_ids)
                ).update({AppointmentRecord.status: AppointmentStatus.CANCELED.value}, synchronize_session=False)

            fields = draft.model_dump(exclude={"id"})
            fields["status"] = draft.status.value

            if draft.id is None:
                record = AppointmentRecord(id=new_appointment_id(), created_at=datetime.now(), **fields)
                self.db.add(record)
            else:
                record = self.db.query(AppointmentRecord).filter(AppointmentRecord.id == draft.id).first()
                if record is None:
                    self.db.rollback()
                    raise AppointmentNotFoundError(draft.id)
                for name, value in fields.items():
                    setattr(record, name, value)

            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to save appointment")
            raise PersistenceError("Failed to save appointment") from exc

        logger.info(f"Saved appointment {record.id} ({draft.status.value}); canceled {cancel_ids or 'none'}")
        return self.list()

    def restore(self, appointment_id: str) -> List[Appointment]:
        try:
            record = self.db.query(AppointmentRecord).filter(AppointmentRecord.id == appointment_id).first()
            if record is None:
                raise AppointmentNotFoundError(appointment_id)

            record.status = AppointmentStatus.PENDING.value
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(f"Failed to restore appointment {appointment_id}")
            raise PersistenceError("Failed to restore appointment") from exc

        logger.info(f"Restored appointment {appointment_id}")
        return self.list()
