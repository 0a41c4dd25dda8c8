"""
Doctor schedule API routes.
"""

from typing import List
from fastapi import APIRouter, HTTPException, Request, status

from ..models.doctor import DoctorSchedule
from ..models.requests import DoctorCreate
from ..models.results import DoctorSummary, RegistrationResult
from .dependencies import raise_for_error, serialized_engine

router = APIRouter(prefix="/api/doctors", tags=["Doctors"])


@router.get("", response_model=List[DoctorSummary])
async def list_doctors(request: Request):
    """Per-doctor allocation, capacity and utilization."""
    async with serialized_engine(request) as engine:
        return engine.list_doctors()


@router.post("", response_model=RegistrationResult, status_code=status.HTTP_201_CREATED)
async def register_doctor(payload: DoctorCreate, request: Request):
    """Register a doctor and generate the day's slots."""
    async with serialized_engine(request) as engine:
        result = engine.register_doctor(payload)

    raise_for_error(result)
    return result


@router.get("/{doctor_id}", response_model=DoctorSchedule)
async def get_doctor(doctor_id: str, request: Request):
    """Full schedule with every slot and its tokens."""
    async with serialized_engine(request) as engine:
        doctor = engine.get_doctor(doctor_id)

    if not doctor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Doctor not found"
        )
    return doctor
