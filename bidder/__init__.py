"""
Marketplace Bidder Package
"""
from .cancel import CancelToken
from .composer import MessageComposer
from .config import BidderConfig
from .core import run_bidder
from .errors import (
    BidderError,
    InteractionError,
    NavigationError,
    SessionExpiredError,
    TransientPageError,
)
from .extractor import ItemExtractor, vote_by_yield
from .ledger import DedupLedger
from .models import BidAttempt, CycleStats, Credentials, EngineState, ListingItem, Outcome, PollerState
from .poller import ListingPoller
from .service import BidderService
from .session import SessionGate
from .status import StatusBus, StatusCallbacks
from .strategist import BidStrategist
from .utils import init_logger, item_identity, now_iso

__version__ = "1.0.0"

__all__ = [
    "BidAttempt",
    "BidderConfig",
    "BidderError",
    "BidderService",
    "BidStrategist",
    "CancelToken",
    "Credentials",
    "CycleStats",
    "DedupLedger",
    "EngineState",
    "InteractionError",
    "ItemExtractor",
    "ListingItem",
    "ListingPoller",
    "MessageComposer",
    "NavigationError",
    "Outcome",
    "PollerState",
    "SessionExpiredError",
    "SessionGate",
    "StatusBus",
    "StatusCallbacks",
    "TransientPageError",
    "init_logger",
    "item_identity",
    "now_iso",
    "run_bidder",
    "vote_by_yield",
]
