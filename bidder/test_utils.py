#!/usr/bin/env python3
"""
Tests for text, identity, price and deadline helpers.
"""
from datetime import datetime, timedelta

import pytest

from bidder.utils import (
    absolute_url,
    clean_text,
    item_identity,
    parse_bid_count,
    parse_deadline,
    parse_price,
)


def test_identity_ignores_query_string():
    """Same detail address with different query strings gives one identity."""
    base = "https://studybay.com/order/4821937"
    assert item_identity(base) == "4821937"
    assert item_identity(base + "?x=1") == "4821937"
    assert item_identity(base + "?x=2") == "4821937"
    assert item_identity(base + "/details#bids") == "4821937"


def test_identity_without_marker_uses_address():
    assert item_identity("https://example.com/jobs/detail?x=1") == "https://example.com/jobs/detail"
    assert item_identity("https://example.com/jobs/detail?x=2") == "https://example.com/jobs/detail"
    assert item_identity("https://example.com/jobs/detail") == "https://example.com/jobs/detail"
    assert item_identity("") == ""


def test_identity_custom_marker():
    assert item_identity("https://x.com/project/abc-12/view", marker="/project/") == "abc-12"


def test_absolute_url():
    assert absolute_url("/order/1", "https://studybay.com") == "https://studybay.com/order/1"
    assert absolute_url("order/1", "https://studybay.com/") == "https://studybay.com/order/1"
    assert absolute_url("https://other.com/order/1", "https://studybay.com") == "https://other.com/order/1"
    assert absolute_url("", "https://studybay.com") == ""


def test_text_cleaning():
    assert clean_text("  Hello   World  \n") == "Hello World"
    assert clean_text(None) == ""
    assert clean_text("") == ""


def test_price_parsing():
    price, currency = parse_price("Budget: $150")
    assert price == 150.0
    assert currency == "USD"

    price, currency = parse_price("€1,200.50 total")
    assert price == 1200.5
    assert currency == "EUR"

    price, currency = parse_price("40 GBP")
    assert price == 40.0
    assert currency == "GBP"

    assert parse_price("") == (None, None)
    assert parse_price("5 pages, 3 bids") == (None, None)


def test_bid_count_parsing():
    assert parse_bid_count("Essay | 30 bids | 2 days") == 30
    assert parse_bid_count("1 bid so far") == 1
    assert parse_bid_count("Bids: 7") == 7
    assert parse_bid_count("no offers yet") == 0
    assert parse_bid_count("") == 0


def test_relative_deadline():
    now = datetime(2026, 10, 19, 12, 0)
    assert parse_deadline("10 hours", now) == now + timedelta(hours=10)
    assert parse_deadline("Deadline: 2 days 3 h", now) == now + timedelta(days=2, hours=3)
    assert parse_deadline("45 min left", now) == now + timedelta(minutes=45)


def test_absolute_deadline():
    now = datetime(2026, 10, 19, 12, 0)
    assert parse_deadline("2026-10-21 18:30", now) == datetime(2026, 10, 21, 18, 30)
    assert parse_deadline("Oct 21, 6:30 PM", now) == datetime(2026, 10, 21, 18, 30)


@pytest.mark.parametrize("text", ["", "soon", "whenever you can"])
def test_unparseable_deadline(text):
    assert parse_deadline(text) is None


@pytest.mark.parametrize("text", ["Deadline: 9999999 days", "99999999999999 hours left"])
def test_out_of_range_deadline(text):
    assert parse_deadline(text, datetime(2026, 10, 19, 12, 0)) is None
