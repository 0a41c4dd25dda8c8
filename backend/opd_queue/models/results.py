"""
Result models returned by engine operations.

Every operation reports ``success``; failures carry an ``error`` kind and a
human readable ``message`` instead of raising.
"""

from pydantic import BaseModel
from typing import Optional, List

from ..exceptions import AllocationError, ErrorKind
from .token import Token


class OperationResult(BaseModel):
    """Fields shared by all operation results."""
    success: bool
    message: str = ""
    error: Optional[ErrorKind] = None

    @classmethod
    def failure(cls, exc: AllocationError, **fields):
        return cls(success=False, error=exc.kind, message=exc.message, **fields)


class AllocationResult(OperationResult):
    token: Optional[Token] = None
    reassigned: bool = False
    waiting_position: Optional[int] = None


class CancellationResult(OperationResult):
    token_id: Optional[str] = None
    reallocated: Optional[Token] = None


class EmergencyResult(OperationResult):
    token: Optional[Token] = None
    displaced_patient_id: Optional[str] = None
    displaced_token_id: Optional[str] = None
    displaced_to: Optional[str] = None


class DelayResult(OperationResult):
    affected_slots: int = 0


class RegistrationResult(OperationResult):
    doctor_id: Optional[str] = None
    slot_count: int = 0


class DoctorSummary(BaseModel):
    """Per-doctor load figures."""
    doctor_id: str
    name: str
    allocated: int
    capacity: int
    utilization: float


class EngineStatus(BaseModel):
    """Engine-wide counters plus per-doctor load."""
    total_doctors: int
    total_tokens: int
    waiting_list: int
    doctors: List[DoctorSummary] = []
