"""
Data models for the marketplace bidder engine.
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Deque, Optional


class PollerState(str, Enum):
    """States of the listing poller."""
    INIT = "init"
    REFRESHING = "refreshing"
    EXTRACTING = "extracting"
    DEDUPING = "deduping"
    BIDDING = "bidding"
    IDLE = "idle"
    STOPPED = "stopped"


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


@dataclass
class Credentials:
    """Marketplace login. Empty values mean the user logs in by hand."""
    username: str = ""
    password: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.username and self.password)


@dataclass
class ListingItem:
    """A work item found on the listing page during one cycle."""

    # Basic row info
    identity: str
    url: str
    title: str
    category: Optional[str] = None
    description: str = ""

    # Competition and timing
    bid_count: int = 0
    deadline: Optional[datetime] = None

    # Row flags
    customer_online: bool = False
    has_attachments: bool = False
    budget_set: bool = False
    budget_value: Optional[float] = None
    budget_currency: Optional[str] = None

    discovered_at_cycle: int = 0

    # Row handle on the listing view; only valid for the cycle that produced it
    container: Any = field(default=None, repr=False, compare=False)


@dataclass(frozen=True)
class BidAttempt:
    """Write-once record of one bid placement attempt."""
    identity: str
    strategy_used: Optional[str]
    outcome: Outcome
    timestamp: str
    title: str = ""
    detail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.outcome is Outcome.SUCCESS


@dataclass
class CycleStats:
    cycle_number: int
    discovered_count: int = 0
    success_count: int = 0


@dataclass
class EngineState:
    """
    Counters and attempt history owned by the worker.

    Passed by reference to the poller; the presentation side only ever sees
    values copied out through the status bus.
    """
    cycle_number: int = 0
    discovered_total: int = 0
    success_total: int = 0
    failure_total: int = 0
    attempts: Deque[BidAttempt] = field(default_factory=lambda: deque(maxlen=5000))

    def record(self, attempt: BidAttempt) -> None:
        if attempt.outcome is Outcome.CANCELLED:
            return
        self.attempts.append(attempt)
        if attempt.succeeded:
            self.success_total += 1
        else:
            self.failure_total += 1
