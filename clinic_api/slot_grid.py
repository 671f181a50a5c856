from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Tuple

from clinic_api.exceptions import ConfigurationError, InvalidSlotError

GRANULARITY_MINUTES = 30


def generate_slots(open_hour: int, close_hour: int, granularity_minutes: int = GRANULARITY_MINUTES) -> List[str]:
    """Return the "HH:MM" labels of a clinic day, covering [open_hour:00, close_hour:00)."""

    if open_hour < 0 or close_hour > 24 or open_hour >= close_hour:
        raise ConfigurationError(
            f"Clinic hours must satisfy 0 <= open < close <= 24, got {open_hour}-{close_hour}"
        )
    if granularity_minutes <= 0 or 60 % granularity_minutes != 0:
        raise ConfigurationError(
            f"Slot granularity must divide an hour evenly, got {granularity_minutes} minutes"
        )

    slots = []
    current = open_hour * 60
    day_end = close_hour * 60

    while current < day_end:
        slots.append(f"{current // 60:02d}:{current % 60:02d}")
        current += granularity_minutes

    return slots


@dataclass(frozen=True)
class SlotGrid:
    open_hour: int = 8
    close_hour: int = 18
    granularity_minutes: int = GRANULARITY_MINUTES
    labels: Tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self):
        labels = generate_slots(self.open_hour, self.close_hour, self.granularity_minutes)
        object.__setattr__(self, "labels", tuple(labels))

    @property
    def granularity(self) -> timedelta:
        return timedelta(minutes=self.granularity_minutes)

    def position_of(self, label: str) -> int:
        try:
            return self.labels.index(label)
        except ValueError:
            raise InvalidSlotError(f"{label!r} is not a slot between {self.labels[0]} and {self.labels[-1]}")

    def to_timestamp(self, day: date, label: str) -> datetime:
        position = self.position_of(label)
        minutes = self.open_hour * 60 + position * self.granularity_minutes
        return datetime(day.year, day.month, day.day) + timedelta(minutes=minutes)

    def slot_window(self, day: date, label: str) -> Tuple[datetime, datetime]:
        start = self.to_timestamp(day, label)
        return start, start + self.granularity

    def span(self, first: str, last: str) -> List[str]:
        """Contiguous labels between two slots, inclusive, whatever order they come in."""
        a, b = self.position_of(first), self.position_of(last)
        lo, hi = min(a, b), max(a, b)
        return list(self.labels[lo:hi + 1])

    def sort(self, labels) -> List[str]:
        return sorted(set(labels), key=self.position_of)

    def is_contiguous(self, labels) -> bool:
        positions = [self.position_of(label) for label in self.sort(labels)]
        return bool(positions) and positions[-1] - positions[0] == len(positions) - 1

    def labels_between(self, start: datetime, end: datetime) -> List[str]:
        """Grid labels whose slot starts inside [start, end) on start's day."""
        labels = []
        for label in self.labels:
            slot_start = self.to_timestamp(start.date(), label)
            if start <= slot_start < end:
                labels.append(label)
        return labels
