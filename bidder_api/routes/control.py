"""
Start/stop route handlers.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException

from bidder import Credentials

from ..models import StartRequest, StatusOut
from ..state import ControlState, control

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["control"])

def get_control() -> ControlState:
    """Dependency returning the process-wide control state."""
    return control

def _status(state: ControlState) -> StatusOut:
    return StatusOut(
        running=state.running,
        discovered=state.discovered,
        successful_bids=state.successful_bids,
        last_error=state.last_error(),
    )

@router.post("/start", response_model=StatusOut)
def start_bidder(req: StartRequest, state: ControlState = Depends(get_control)):
    """Spawn the bidder worker."""
    if state.running:
        raise HTTPException(status_code=409, detail="Bidder is already running")
    try:
        state.start(Credentials(req.username, req.password), detection_only=req.detection_only)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("Bidder started via API")
    return _status(state)

@router.post("/stop", response_model=StatusOut)
def stop_bidder(state: ControlState = Depends(get_control)):
    """
    Signal the worker to stop and wait for it to shut down.

    Plain ``def`` so the join runs in the threadpool and the event loop keeps
    serving status requests meanwhile.
    """
    if not state.running:
        raise HTTPException(status_code=409, detail="Bidder is not running")
    stopped = state.stop()
    if not stopped:
        raise HTTPException(status_code=504, detail="Bidder did not stop in time")
    logger.info("Bidder stopped via API")
    return _status(state)
