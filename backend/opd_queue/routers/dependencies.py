"""
Engine access dependencies.

The engine has no internal locking, so every handler that touches it runs
inside ``serialized_engine`` to keep calls one at a time.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import HTTPException, Request, status

from ..exceptions import ErrorKind
from ..models.results import OperationResult
from ..services.allocation_service import AllocationEngine

NOT_FOUND_KINDS = {
    ErrorKind.DOCTOR_NOT_FOUND,
    ErrorKind.SLOT_NOT_FOUND,
    ErrorKind.TOKEN_NOT_FOUND,
}

CONFLICT_KINDS = {
    ErrorKind.EMERGENCY_PREEMPTION_DENIED,
    ErrorKind.DUPLICATE_DOCTOR,
}


def get_engine(request: Request) -> AllocationEngine:
    """Engine instance created in the application lifespan."""
    return request.app.state.engine


@asynccontextmanager
async def serialized_engine(request: Request) -> AsyncIterator[AllocationEngine]:
    """Hold the application-wide engine lock for the duration of a call."""
    async with request.app.state.engine_lock:
        yield get_engine(request)


def raise_for_error(result: OperationResult) -> None:
    """Turn a failed engine result into the matching HTTP error.

    The error kind travels in ``detail`` next to the message so clients can
    tell failures with the same status code apart.
    """
    if result.success:
        return
    if result.error in NOT_FOUND_KINDS:
        code = status.HTTP_404_NOT_FOUND
    elif result.error in CONFLICT_KINDS:
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    raise HTTPException(
        status_code=code,
        detail={"error": result.error.value, "message": result.message}
    )
