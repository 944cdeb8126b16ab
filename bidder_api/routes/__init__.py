"""
Route package initialization.
"""
from .control import router as control_router
from .status import router as status_router

__all__ = ["control_router", "status_router"]
