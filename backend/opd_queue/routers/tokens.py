"""
Token request, cancellation and emergency API routes.
"""

from fastapi import APIRouter, HTTPException, Request, Response, status

from ..exceptions import ErrorKind
from ..models.requests import AllocateRequest, CancelRequest, EmergencyRequest
from ..models.results import AllocationResult, CancellationResult, EmergencyResult
from ..models.token import Token
from .dependencies import raise_for_error, serialized_engine

router = APIRouter(prefix="/api/tokens", tags=["Tokens"])


@router.post("/request", response_model=AllocationResult, status_code=status.HTTP_201_CREATED)
async def request_token(payload: AllocateRequest, request: Request, response: Response):
    """Allocate a token; answers 202 when the patient was waitlisted instead."""
    async with serialized_engine(request) as engine:
        result = engine.allocate_token(payload)

    if result.error == ErrorKind.ALL_SLOTS_FULL:
        response.status_code = status.HTTP_202_ACCEPTED
        return result

    raise_for_error(result)
    return result


@router.post("/cancel", response_model=CancellationResult)
async def cancel_token(payload: CancelRequest, request: Request):
    """Cancel a token and refill its place from the waiting list."""
    async with serialized_engine(request) as engine:
        result = engine.cancel_token(payload.token_id, payload.reason)

    raise_for_error(result)
    return result


@router.post("/emergency", response_model=EmergencyResult, status_code=status.HTTP_201_CREATED)
async def emergency_token(payload: EmergencyRequest, request: Request):
    """Insert an emergency token, preempting a lower-priority patient if needed."""
    async with serialized_engine(request) as engine:
        result = engine.insert_emergency_token(payload)

    raise_for_error(result)
    return result


@router.get("/{token_id}", response_model=Token)
async def get_token(token_id: str, request: Request):
    """Get token by ID."""
    async with serialized_engine(request) as engine:
        token = engine.get_token(token_id)

    if not token:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Token not found"
        )
    return token
