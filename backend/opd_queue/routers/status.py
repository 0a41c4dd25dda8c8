"""
Engine status API routes.
"""

from typing import List
from fastapi import APIRouter, Request

from ..models.results import EngineStatus
from ..models.token import Token
from .dependencies import serialized_engine

router = APIRouter(prefix="/api", tags=["Status"])


@router.get("/status", response_model=EngineStatus)
async def get_status(request: Request):
    async with serialized_engine(request) as engine:
        return engine.get_status()


@router.get("/waiting-list", response_model=List[Token])
async def get_waiting_list(request: Request):
    """Waiting tokens in list order, across all doctors."""
    async with serialized_engine(request) as engine:
        return engine.waiting_tokens()
