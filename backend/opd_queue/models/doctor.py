"""
Doctor schedule model and slot generation.
"""

from pydantic import BaseModel, Field, computed_field, model_validator
from typing import List, Optional

from .slot import Slot

TIME_PATTERN = r"^\d{2}:\d{2}$"


def parse_time(label: str) -> int:
    """'HH:MM' -> minutes of day."""
    hours, minutes = label.split(":")
    return int(hours) * 60 + int(minutes)


def format_time(minutes: int) -> str:
    """Minutes of day -> 'HH:MM'. Values past midnight are not wrapped."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def generate_slots(
    doctor_id: str,
    start_time: str,
    end_time: str,
    slot_duration: int,
    capacity: int,
) -> List[Slot]:
    """Walk [start, end) in fixed steps.

    A slot is emitted while its start is strictly before ``end``, so the last
    slot may run past ``end`` when the duration does not divide the interval.
    """
    slots = []
    current = parse_time(start_time)
    end = parse_time(end_time)
    while current < end:
        label = format_time(current)
        slots.append(Slot(
            id=f"{doctor_id}-{label.replace(':', '')}",
            doctor_id=doctor_id,
            slot_time=label,
            capacity=capacity,
        ))
        current += slot_duration
    return slots


class DoctorSchedule(BaseModel):
    """A doctor's working day split into slots."""
    doctor_id: str = Field(..., min_length=1)
    name: str
    start_time: str = Field("09:00", pattern=TIME_PATTERN)
    end_time: str = Field("13:00", pattern=TIME_PATTERN)
    slot_duration: int = Field(60, gt=0, description="Minutes per slot")
    avg_consultation_time: int = Field(10, gt=0, description="Minutes per patient")
    slot_capacity: int = Field(6, ge=0)
    slots: List[Slot] = []

    @model_validator(mode="after")
    def _build_slots(self) -> "DoctorSchedule":
        if not self.slots:
            self.slots = generate_slots(
                self.doctor_id,
                self.start_time,
                self.end_time,
                self.slot_duration,
                self.slot_capacity,
            )
        return self

    # Lookups are linear scans over the ordered slot list; a day holds a
    # bounded number of slots.
    def slot_index(self, slot_time: str) -> int:
        for index, slot in enumerate(self.slots):
            if slot.slot_time == slot_time:
                return index
        return -1

    def get_slot(self, slot_time: str) -> Optional[Slot]:
        index = self.slot_index(slot_time)
        return self.slots[index] if index >= 0 else None

    def available_slots(self) -> List[Slot]:
        return [s for s in self.slots if not s.is_full()]

    @computed_field
    @property
    def allocated(self) -> int:
        return sum(s.allocated for s in self.slots)

    @computed_field
    @property
    def total_capacity(self) -> int:
        return sum(s.capacity for s in self.slots)

    @computed_field
    @property
    def utilization(self) -> float:
        total = self.total_capacity
        return (self.allocated / total) * 100 if total > 0 else 0.0
