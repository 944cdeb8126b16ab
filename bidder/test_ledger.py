#!/usr/bin/env python3
"""
Tests for the in-memory dedup ledger.
"""
from bidder.ledger import DedupLedger


def test_mark_then_seen():
    ledger = DedupLedger()
    assert not ledger.has_seen("4821937")
    ledger.mark_seen("4821937")
    assert ledger.has_seen("4821937")
    assert "4821937" in ledger
    assert len(ledger) == 1


def test_mark_is_idempotent():
    ledger = DedupLedger()
    ledger.mark_seen("a")
    ledger.mark_seen("a")
    assert len(ledger) == 1


def test_empty_identity_ignored():
    ledger = DedupLedger()
    ledger.mark_seen("")
    assert len(ledger) == 0
    assert not ledger.has_seen("")


def test_new_ledger_starts_empty():
    first = DedupLedger()
    first.mark_seen("a")
    assert not DedupLedger().has_seen("a")
