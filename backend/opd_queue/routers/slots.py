"""
Slot delay API routes.
"""

from fastapi import APIRouter, Request

from ..models.requests import DelayRequest
from ..models.results import DelayResult
from .dependencies import raise_for_error, serialized_engine

router = APIRouter(prefix="/api/slots", tags=["Slots"])


@router.post("/delay", response_model=DelayResult)
async def add_delay(payload: DelayRequest, request: Request):
    """Delay a slot and all later slots of the doctor."""
    async with serialized_engine(request) as engine:
        result = engine.add_delay(payload.doctor_id, payload.slot_time, payload.delay_minutes)

    raise_for_error(result)
    return result
