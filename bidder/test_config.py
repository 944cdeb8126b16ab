#!/usr/bin/env python3
"""
Tests for configuration loading and command line overrides.
"""
import pytest

from bidder.cli import build_config, parse_args
from bidder.config import BidderConfig


def test_defaults_are_valid():
    cfg = BidderConfig()
    cfg.validate()
    assert cfg.listing_url == "https://studybay.com/order/search"
    assert cfg.login_url == "https://studybay.com/login"
    assert cfg.bid_amount == "5"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("BIDDER_POLL_INTERVAL_S", "2.5")
    monkeypatch.setenv("BIDDER_OP_TIMEOUT_MS", "1500")
    monkeypatch.setenv("BIDDER_HEADLESS", "true")
    monkeypatch.setenv("BIDDER_BID_PLACEMENT_ENABLED", "0")
    monkeypatch.setenv("BIDDER_BASE_URL", "https://example.com/")

    cfg = BidderConfig.from_env()

    assert cfg.poll_interval_s == 2.5
    assert cfg.op_timeout_ms == 1500
    assert cfg.headless is True
    assert cfg.bid_placement_enabled is False
    assert cfg.listing_url == "https://example.com/order/search"


@pytest.mark.parametrize("changes", [
    {"poll_interval_s": -1.0},
    {"op_timeout_ms": 0},
    {"strategy_timeout_s": 0},
    {"message_mode": "fancy"},
    {"base_url": "studybay.com"},
])
def test_invalid_values_rejected(changes):
    with pytest.raises(ValueError):
        BidderConfig(**changes).validate()


def test_cli_flags_override_environment(monkeypatch):
    monkeypatch.setenv("BIDDER_POLL_INTERVAL_S", "9")
    args = parse_args([
        "--poll-interval", "0.5",
        "--headless",
        "--detection-only",
        "--message-mode", "baseline",
        "--export-attempts", "attempts.csv",
    ])

    cfg = build_config(args)

    assert cfg.poll_interval_s == 0.5
    assert cfg.headless is True
    assert cfg.bid_placement_enabled is False
    assert cfg.message_mode == "baseline"
    assert cfg.export_attempts_path == "attempts.csv"


def test_cli_without_flags_keeps_environment(monkeypatch):
    monkeypatch.setenv("BIDDER_POLL_INTERVAL_S", "9")
    cfg = build_config(parse_args([]))
    assert cfg.poll_interval_s == 9.0
    assert cfg.bid_placement_enabled is True
