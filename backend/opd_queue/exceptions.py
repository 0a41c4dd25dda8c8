"""
Error taxonomy for the allocation engine.

Expected outcomes (unknown doctor, unknown slot, ...) are raised internally
as ``AllocationError`` subclasses and converted into failure results at the
boundary of each public engine operation.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure kinds reported in operation results."""
    DOCTOR_NOT_FOUND = "doctor_not_found"
    SLOT_NOT_FOUND = "slot_not_found"
    TOKEN_NOT_FOUND = "token_not_found"
    EMERGENCY_PREEMPTION_DENIED = "emergency_preemption_denied"
    INVALID_DELAY = "invalid_delay"
    DUPLICATE_DOCTOR = "duplicate_doctor"
    ALL_SLOTS_FULL = "all_slots_full"


class AllocationError(Exception):
    """Base class for recoverable allocation failures."""

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DoctorNotFound(AllocationError):
    kind = ErrorKind.DOCTOR_NOT_FOUND

    def __init__(self, doctor_id: str):
        super().__init__(f"Doctor {doctor_id} not found")
        self.doctor_id = doctor_id


class SlotNotFound(AllocationError):
    kind = ErrorKind.SLOT_NOT_FOUND

    def __init__(self, doctor_id: str, slot_time: Optional[str] = None):
        if slot_time is None:
            super().__init__(f"Doctor {doctor_id} has no slots")
        else:
            super().__init__(f"Slot {slot_time} not found for doctor {doctor_id}")
        self.doctor_id = doctor_id
        self.slot_time = slot_time


class TokenNotFound(AllocationError):
    kind = ErrorKind.TOKEN_NOT_FOUND

    def __init__(self, token_id: str):
        super().__init__(f"Token {token_id} not found")
        self.token_id = token_id


class EmergencyPreemptionDenied(AllocationError):
    kind = ErrorKind.EMERGENCY_PREEMPTION_DENIED


class InvalidDelay(AllocationError):
    kind = ErrorKind.INVALID_DELAY


class DuplicateDoctor(AllocationError):
    kind = ErrorKind.DUPLICATE_DOCTOR

    def __init__(self, doctor_id: str):
        super().__init__(f"Doctor {doctor_id} is already registered")
        self.doctor_id = doctor_id


class CapacityExceeded(RuntimeError):
    """A token was placed into a slot with no free capacity."""
