"""
Shared fixtures: an engine with a deterministic clock and token ids.
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from opd_queue.models import AllocateRequest, DoctorSchedule, EmergencyRequest
from opd_queue.services import AllocationEngine

START = datetime(2026, 1, 5, 8, 0, tzinfo=timezone.utc)


class FixedClock:
    """Advances one minute per call so timestamps stay ordered."""

    def __init__(self, start=START):
        self.now = start

    def __call__(self):
        current = self.now
        self.now += timedelta(minutes=1)
        return current


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def engine(clock):
    counter = itertools.count(1)
    return AllocationEngine(clock=clock, id_factory=lambda: f"T{next(counter):03d}")


def make_doctor(doctor_id="DOC001", start="09:00", end="10:00", duration=30, capacity=1, avg=10):
    return DoctorSchedule(
        doctor_id=doctor_id,
        name=f"Dr. {doctor_id}",
        start_time=start,
        end_time=end,
        slot_duration=duration,
        avg_consultation_time=avg,
        slot_capacity=capacity,
    )


def allocate(engine, slot_time, doctor_id="DOC001", source="online", priority=0, patient="P"):
    return engine.allocate_token(AllocateRequest(
        patient_id=f"{patient}-{slot_time}",
        patient_name=f"Patient {patient}",
        doctor_id=doctor_id,
        slot_time=slot_time,
        source=source,
        priority=priority,
    ))


def emergency(engine, doctor_id="DOC001", preferred=None, patient="E"):
    return engine.insert_emergency_token(EmergencyRequest(
        patient_id=patient,
        patient_name=f"Emergency {patient}",
        doctor_id=doctor_id,
        preferred_slot=preferred,
    ))
