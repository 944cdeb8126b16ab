"""
Background service wrapping the bidder worker for a presentation layer.

``start`` spawns one worker thread running its own asyncio loop; ``stop``
signals cancellation and waits for the worker to save the session and exit.
"""
import asyncio
import logging
import threading
from typing import Awaitable, Callable, Optional

from .cancel import CancelToken
from .config import BidderConfig
from .core import run_bidder
from .models import Credentials, EngineState
from .status import StatusBus, StatusCallbacks, StatusLogHandler

logger = logging.getLogger("bidder.service")

Runner = Callable[..., Awaitable[EngineState]]


class BidderService:
    """Start/stop facade. Counters are read via callbacks, never shared directly."""

    def __init__(
        self,
        config: BidderConfig,
        callbacks: Optional[StatusCallbacks] = None,
        runner: Runner = run_bidder,
        log_name: str = "bidder",
    ):
        config.validate()
        self.config = config
        self.bus = StatusBus(callbacks)
        self.runner = runner
        self.log_name = log_name
        self._thread: Optional[threading.Thread] = None
        self._cancel: Optional[CancelToken] = None
        self._handler: Optional[StatusLogHandler] = None
        self.last_state: Optional[EngineState] = None
        self.last_error: Optional[BaseException] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, credentials: Optional[Credentials] = None) -> None:
        if self.running:
            raise RuntimeError("Bidder is already running")
        self.bus.start()
        self._handler = StatusLogHandler(self.bus)
        engine_logger = logging.getLogger(self.log_name)
        if engine_logger.getEffectiveLevel() > logging.INFO:
            engine_logger.setLevel(logging.INFO)
        engine_logger.addHandler(self._handler)

        self._cancel = CancelToken()
        self.last_error = None
        self._thread = threading.Thread(
            target=self._work, args=(credentials or Credentials(), self._cancel),
            name="bidder-worker", daemon=True,
        )
        self._thread.start()
        logger.info(">>> Bidder started")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Signal cancellation and wait for a clean shutdown. True if the worker exited."""
        if self._cancel is not None:
            self._cancel.cancel()
        stopped = True
        if self._thread is not None:
            # session save and browser close happen after the loop notices the signal
            wait = timeout if timeout is not None else max(10.0, self.config.op_timeout_ms / 1000.0 * 4)
            self._thread.join(wait)
            stopped = not self._thread.is_alive()
            if not stopped:
                logger.warning(">>> Worker did not stop in time")
        if stopped:
            self._thread = None
            self._detach()
        return stopped

    def _detach(self) -> None:
        if self._handler is not None:
            logging.getLogger(self.log_name).removeHandler(self._handler)
            self._handler = None
        self.bus.close()

    def _work(self, credentials: Credentials, cancel: CancelToken) -> None:
        try:
            self.last_state = asyncio.run(
                self.runner(self.config, credentials, cancel=cancel, sink=self.bus)
            )
        except Exception as e:
            self.last_error = e
            logger.exception("Bidder worker crashed")
