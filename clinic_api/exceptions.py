class SchedulingError(Exception):
    """Base class for errors raised by the scheduling core."""


class ConfigurationError(SchedulingError):
    """Clinic hours or slot granularity cannot produce a valid grid."""


class InvalidSlotError(SchedulingError, ValueError):
    """A slot label is not part of the clinic grid."""


class AppointmentNotFoundError(SchedulingError):
    def __init__(self, appointment_id: str):
        super().__init__(f"Appointment {appointment_id} not found")
        self.appointment_id = appointment_id


class PersistenceError(SchedulingError):
    """The backing store failed to apply or return a change."""
