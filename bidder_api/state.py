"""
Control-side view of the bidder: the service handle plus counters and log
lines delivered by the status callbacks.
"""
import threading
from collections import deque
from dataclasses import replace
from typing import Callable, List, Optional

from bidder import BidderConfig, BidderService, Credentials, StatusCallbacks

from .config import config


class ControlState:
    """Holds what the API reports. Mutated only by status callbacks and start/stop."""

    def __init__(self, service_factory: Optional[Callable[..., BidderService]] = None):
        self._lock = threading.Lock()
        self.discovered = 0
        self.successful_bids = 0
        self.lines: deque = deque(maxlen=config.LOG_BUFFER_SIZE)
        self.service: Optional[BidderService] = None
        self.service_factory = service_factory or BidderService

    # ---- callbacks (dispatcher thread) -----------------------------------

    def on_discovered(self, count: int) -> None:
        with self._lock:
            self.discovered = count

    def on_bid_success(self, count: int) -> None:
        with self._lock:
            self.successful_bids = count

    def on_log_line(self, text: str) -> None:
        with self._lock:
            self.lines.append(text)

    # ---- control ---------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.service is not None and self.service.running

    def start(self, credentials: Credentials, detection_only: bool = False) -> None:
        if self.running:
            raise RuntimeError("Bidder is already running")
        cfg = BidderConfig.from_env()
        if detection_only:
            cfg = replace(cfg, bid_placement_enabled=False)
        with self._lock:
            self.discovered = 0
            self.successful_bids = 0
        callbacks = StatusCallbacks(
            on_discovered=self.on_discovered,
            on_bid_success=self.on_bid_success,
            on_log_line=self.on_log_line,
        )
        self.service = self.service_factory(cfg, callbacks)
        self.service.start(credentials)

    def stop(self, timeout: Optional[float] = None) -> bool:
        if self.service is None:
            return True
        return self.service.stop(timeout if timeout is not None else config.STOP_TIMEOUT_S)

    def last_error(self) -> Optional[str]:
        if self.service is None or self.service.last_error is None:
            return None
        return str(self.service.last_error)

    def recent_lines(self, limit: int) -> List[str]:
        with self._lock:
            lines = list(self.lines)
        return lines[-limit:] if limit else lines


control = ControlState()
