"""Routers package for the OPD token allocation API."""

from .tokens import router as tokens_router
from .slots import router as slots_router
from .doctors import router as doctors_router
from .status import router as status_router

__all__ = [
    "tokens_router",
    "slots_router",
    "doctors_router",
    "status_router"
]
