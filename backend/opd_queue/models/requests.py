"""
Request models, one per engine operation.
"""

from pydantic import BaseModel, Field
from typing import Optional

from .token import TokenSource
from .doctor import TIME_PATTERN


class AllocateRequest(BaseModel):
    """Request a token in a doctor's slot."""
    patient_id: str = Field(..., min_length=1)
    patient_name: str = Field(..., min_length=1)
    doctor_id: str = Field(..., min_length=1)
    slot_time: str = Field(..., min_length=1)
    source: TokenSource
    priority: int = Field(default=0, description="Manual adjustment added to the channel base score")


class CancelRequest(BaseModel):
    """Cancel an issued token."""
    token_id: str = Field(..., min_length=1)
    reason: Optional[str] = "No reason"


class EmergencyRequest(BaseModel):
    """Admit an emergency patient, preempting if needed."""
    patient_id: str = Field(..., min_length=1)
    patient_name: str = Field(..., min_length=1)
    doctor_id: str = Field(..., min_length=1)
    preferred_slot: Optional[str] = None


class DelayRequest(BaseModel):
    """Push a slot and every later slot back."""
    doctor_id: str = Field(..., min_length=1)
    slot_time: str = Field(..., min_length=1)
    delay_minutes: int = Field(..., ge=0)


class DoctorCreate(BaseModel):
    """Register a doctor's schedule for the day."""
    doctor_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    start_time: str = Field("09:00", pattern=TIME_PATTERN)
    end_time: str = Field("13:00", pattern=TIME_PATTERN)
    slot_duration: int = Field(60, gt=0)
    avg_consultation_time: int = Field(10, gt=0)
    slot_capacity: int = Field(6, ge=0)
