"""
Pydantic models for API request/response serialization.
"""
from typing import List, Optional
from pydantic import BaseModel

class StartRequest(BaseModel):
    """Credentials for a new run; leave empty to log in by hand."""
    username: str = ""
    password: str = ""
    detection_only: bool = False

class StatusOut(BaseModel):
    """Model for the bidder's current counters."""
    running: bool
    discovered: int = 0
    successful_bids: int = 0
    last_error: Optional[str] = None

class LogOut(BaseModel):
    """Most recent activity log lines, oldest first."""
    total: int
    lines: List[str]
