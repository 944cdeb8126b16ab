"""
Status hand-off from the worker to whatever presents it.

The worker only ever enqueues; a dispatcher thread delivers the events to the
registered callbacks, so a slow or failing callback can never stall bidding.
"""
import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger("bidder.status")


@dataclass
class StatusCallbacks:
    on_discovered: Optional[Callable[[int], None]] = None
    on_bid_success: Optional[Callable[[int], None]] = None
    on_log_line: Optional[Callable[[str], None]] = None


class NullSink:
    """Sink that drops everything."""

    def discovered(self, count: int) -> None:
        pass

    def bid_success(self, count: int) -> None:
        pass

    def log_line(self, text: str) -> None:
        pass


_STOP = object()


class StatusBus:
    """Queue-backed sink with a daemon dispatcher thread."""

    def __init__(self, callbacks: Optional[StatusCallbacks] = None, maxsize: int = 10_000):
        self.callbacks = callbacks or StatusCallbacks()
        self._q: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "StatusBus":
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(target=self._run, name="bidder-status", daemon=True)
            self._thread.start()
        return self

    def close(self, timeout: float = 2.0) -> None:
        """Deliver what is queued, then stop the dispatcher."""
        if self._thread is None:
            return
        self._put((_STOP, None))
        self._thread.join(timeout)
        self._thread = None

    # ---- sink interface (worker side) -------------------------------------

    def discovered(self, count: int) -> None:
        self._put(("discovered", count))

    def bid_success(self, count: int) -> None:
        self._put(("bid_success", count))

    def log_line(self, text: str) -> None:
        self._put(("log_line", text))

    def _put(self, event) -> None:
        try:
            self._q.put_nowait(event)
        except queue.Full:
            # drop oldest so the newest counters get through
            try:
                self._q.get_nowait()
                self._q.put_nowait(event)
            except (queue.Empty, queue.Full):
                pass

    # ---- dispatcher --------------------------------------------------------

    def _run(self) -> None:
        while True:
            kind, payload = self._q.get()
            if kind is _STOP:
                return
            callback = {
                "discovered": self.callbacks.on_discovered,
                "bid_success": self.callbacks.on_bid_success,
                "log_line": self.callbacks.on_log_line,
            }[kind]
            if callback is None:
                continue
            try:
                callback(payload)
            except Exception:
                # a broken presenter must not take the dispatcher down
                logger.debug("Status callback failed", exc_info=True)


class StatusLogHandler(logging.Handler):
    """Logging handler that forwards formatted records as ``log_line`` events."""

    def __init__(self, sink, level: int = logging.INFO):
        super().__init__(level)
        self.sink = sink
        self.setFormatter(logging.Formatter("%(asctime)s %(message)s", "%H:%M:%S"))

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == logger.name:
            return
        try:
            self.sink.log_line(self.format(record))
        except Exception:
            self.handleError(record)
