"""Pydantic models for the OPD token allocator."""

from .token import Token, TokenSource, TokenStatus, calculate_priority, SOURCE_BASE_PRIORITY
from .slot import Slot
from .doctor import DoctorSchedule, generate_slots, parse_time, format_time
from .requests import (
    AllocateRequest,
    CancelRequest,
    EmergencyRequest,
    DelayRequest,
    DoctorCreate
)
from .results import (
    OperationResult,
    AllocationResult,
    CancellationResult,
    EmergencyResult,
    DelayResult,
    RegistrationResult,
    DoctorSummary,
    EngineStatus
)

__all__ = [
    # Entities
    "Token", "TokenSource", "TokenStatus", "calculate_priority", "SOURCE_BASE_PRIORITY",
    "Slot",
    "DoctorSchedule", "generate_slots", "parse_time", "format_time",
    # Requests
    "AllocateRequest", "CancelRequest", "EmergencyRequest", "DelayRequest", "DoctorCreate",
    # Results
    "OperationResult", "AllocationResult", "CancellationResult", "EmergencyResult",
    "DelayResult", "RegistrationResult", "DoctorSummary", "EngineStatus"
]
