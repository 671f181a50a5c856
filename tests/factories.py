from datetime import date, datetime

from clinic_api.schemas import Appointment, AppointmentStatus

DAY = date(2024, 1, 10)


def at(hhmm: str, day: date = DAY) -> datetime:
    hour, minute = (int(part) for part in hhmm.split(":"))
    return datetime(day.year, day.month, day.day, hour, minute)


def make_appointment(
    id: str,
    start: str,
    end: str,
    status: AppointmentStatus = AppointmentStatus.PENDING,
    patient_id: str = "p1",
    patient_name: str = "Sarah Connor",
    day: date = DAY,
) -> Appointment:
    return Appointment(
        id=id,
        patient_id=patient_id,
        patient_name=patient_name,
        start=at(start, day),
        end=at(end, day),
        status=status,
        observation=None,
        created_at=datetime(2024, 1, 1, 12, 0),
    )
