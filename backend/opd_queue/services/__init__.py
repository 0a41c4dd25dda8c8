"""Services package for the OPD token allocator."""

from .allocation_service import AllocationEngine

__all__ = [
    "AllocationEngine"
]
