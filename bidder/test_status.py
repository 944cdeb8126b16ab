#!/usr/bin/env python3
"""
Tests for the status bus and the log forwarding handler.
"""
import logging
import threading

from bidder.status import StatusBus, StatusCallbacks, StatusLogHandler


class Collector:
    def __init__(self, expected=1):
        self.events = []
        self._remaining = expected
        self.done = threading.Event()

    def add(self, kind, value):
        self.events.append((kind, value))
        self._remaining -= 1
        if self._remaining <= 0:
            self.done.set()


def test_events_delivered_in_order():
    got = Collector(expected=3)
    bus = StatusBus(StatusCallbacks(
        on_discovered=lambda n: got.add("discovered", n),
        on_bid_success=lambda n: got.add("bid_success", n),
        on_log_line=lambda s: got.add("log", s),
    )).start()

    bus.discovered(4)
    bus.bid_success(1)
    bus.log_line("hello")
    assert got.done.wait(2.0)
    bus.close()

    assert got.events == [("discovered", 4), ("bid_success", 1), ("log", "hello")]


def test_failing_callback_does_not_stop_delivery():
    got = Collector(expected=1)

    def broken(_):
        raise RuntimeError("presenter went away")

    bus = StatusBus(StatusCallbacks(on_discovered=broken, on_bid_success=lambda n: got.add("bid", n))).start()
    bus.discovered(1)
    bus.bid_success(2)
    assert got.done.wait(2.0)
    bus.close()

    assert got.events == [("bid", 2)]


def test_missing_callbacks_are_skipped():
    bus = StatusBus().start()
    bus.discovered(1)
    bus.log_line("ignored")
    bus.close()


def test_full_queue_drops_oldest():
    bus = StatusBus(maxsize=2)
    bus.discovered(1)
    bus.discovered(2)
    bus.discovered(3)
    assert [bus._q.get_nowait()[1] for _ in range(2)] == [2, 3]


def test_log_handler_forwards_records():
    got = Collector(expected=1)
    bus = StatusBus(StatusCallbacks(on_log_line=lambda s: got.add("log", s))).start()
    handler = StatusLogHandler(bus)
    log = logging.getLogger("bidder.test_status")
    log.setLevel(logging.INFO)
    log.addHandler(handler)
    try:
        log.debug("too chatty")
        log.info(">>> Bid placed for 42 via in-panel")
        assert got.done.wait(2.0)
    finally:
        log.removeHandler(handler)
        bus.close()

    assert len(got.events) == 1
    assert got.events[0][1].endswith(">>> Bid placed for 42 via in-panel")
