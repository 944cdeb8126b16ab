"""
Status and activity log route handlers.
"""
import logging
from fastapi import APIRouter, Depends, Query

from ..config import config
from ..models import LogOut, StatusOut
from ..state import ControlState
from .control import _status, get_control

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["status"])

@router.get("/status", response_model=StatusOut)
async def get_api_status(state: ControlState = Depends(get_control)):
    """Get the bidder's counters."""
    return _status(state)

@router.get("/log", response_model=LogOut)
async def get_api_log(
    limit: int = Query(config.DEFAULT_LOG_LIMIT, ge=1, le=config.LOG_BUFFER_SIZE),
    state: ControlState = Depends(get_control),
):
    """Get the most recent activity log lines."""
    lines = state.recent_lines(limit)
    return LogOut(total=len(state.lines), lines=lines)
