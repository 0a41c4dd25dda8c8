"""
Token models for the consultation queue.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class TokenSource(str, Enum):
    """Channel a token was requested through."""
    ONLINE = "online"
    WALKIN = "walkin"
    FOLLOWUP = "followup"
    PRIORITY = "priority"


class TokenStatus(str, Enum):
    """Token lifecycle states."""
    ALLOCATED = "allocated"
    WAITING = "waiting"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Base score per channel; the manual adjustment is added on top
SOURCE_BASE_PRIORITY = {
    TokenSource.PRIORITY: 1000,
    TokenSource.FOLLOWUP: 500,
    TokenSource.ONLINE: 100,
    TokenSource.WALKIN: 0,
}


def calculate_priority(source: TokenSource, adjustment: int = 0) -> int:
    """Priority score = channel base + manual adjustment."""
    return SOURCE_BASE_PRIORITY[TokenSource(source)] + adjustment


class Token(BaseModel):
    """One patient's claim on one consultation."""
    id: str
    patient_id: str
    patient_name: str
    doctor_id: str
    slot_time: str = Field(..., description="Label of the slot the token is bound to")
    source: TokenSource
    priority: int = 0
    sequence_number: Optional[int] = Field(None, description="1-based position within the slot")
    status: TokenStatus = TokenStatus.ALLOCATED
    created_at: datetime
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    no_show_at: Optional[datetime] = None
    estimated_time: Optional[str] = None

    @classmethod
    def issue(
        cls,
        token_id: str,
        patient_id: str,
        patient_name: str,
        doctor_id: str,
        slot_time: str,
        source: TokenSource,
        adjustment: int,
        created_at: datetime,
    ) -> "Token":
        """Build a fresh token with its priority score computed."""
        return cls(
            id=token_id,
            patient_id=patient_id,
            patient_name=patient_name,
            doctor_id=doctor_id,
            slot_time=slot_time,
            source=source,
            priority=calculate_priority(source, adjustment),
            created_at=created_at,
        )

    def cancel(self, reason: Optional[str], at: datetime) -> None:
        self.status = TokenStatus.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_at = at

    def complete(self, at: datetime) -> None:
        self.status = TokenStatus.COMPLETED
        self.completed_at = at

    def mark_no_show(self, at: datetime) -> None:
        self.status = TokenStatus.NO_SHOW
        self.no_show_at = at

    def snapshot(self) -> "Token":
        """Detached copy safe to hand to callers."""
        return self.model_copy()
