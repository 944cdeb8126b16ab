"""
Bidder configuration and settings management.
"""
import os
from dataclasses import dataclass, fields
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BidderConfig:
    """Engine configuration. Defaults favour responsiveness over politeness."""

    # Marketplace
    base_url: str = "https://studybay.com"
    listing_path: str = "/order/search"
    login_path: str = "/login"
    item_path_marker: str = "/order/"

    # Session
    storage_state_path: str = "session.json"
    manual_login_timeout_s: float = 0.0  # 0 waits until cancelled
    manual_login_poll_s: float = 2.0

    # Browser
    headless: bool = False
    slow_mo_ms: int = 0
    navigation_timeout_ms: int = 60_000

    # Cadence
    poll_interval_s: float = 0.1
    poll_jitter_s: float = 0.0
    error_backoff_s: float = 0.5

    # Per-operation bounds
    op_timeout_ms: int = 2_000
    strategy_timeout_s: float = 20.0
    detail_page_timeout_ms: int = 10_000
    surface_wait_attempts: int = 10
    submit_retries: int = 3
    submit_settle_ms: int = 500

    # Bidding
    bid_placement_enabled: bool = True
    bid_amount: Optional[str] = "5"
    message_mode: str = "enriched"  # "baseline" or "enriched"
    message_max_length: int = 600
    urgent_hours: float = 24.0

    # Observability
    export_attempts_path: Optional[str] = None

    @property
    def listing_url(self) -> str:
        return self.base_url.rstrip("/") + self.listing_path

    @property
    def login_url(self) -> str:
        return self.base_url.rstrip("/") + self.login_path

    @classmethod
    def from_env(cls) -> "BidderConfig":
        """Build a config from BIDDER_* environment variables over the defaults."""
        cfg = cls()
        for f in fields(cls):
            env_name = f"BIDDER_{f.name.upper()}"
            raw = os.getenv(env_name)
            if raw is None:
                continue
            current = getattr(cfg, f.name)
            if isinstance(current, bool):
                setattr(cfg, f.name, _env_bool(env_name, current))
            elif isinstance(current, int):
                setattr(cfg, f.name, int(raw))
            elif isinstance(current, float):
                setattr(cfg, f.name, float(raw))
            else:
                setattr(cfg, f.name, raw or None)
        return cfg

    def validate(self) -> None:
        """Validate configuration on startup."""
        if self.poll_interval_s < 0 or self.poll_jitter_s < 0 or self.error_backoff_s < 0:
            raise ValueError("Cadence values must not be negative")
        if self.op_timeout_ms <= 0:
            raise ValueError("op_timeout_ms must be positive")
        if self.strategy_timeout_s <= 0:
            raise ValueError("strategy_timeout_s must be positive")
        if self.message_mode not in ("baseline", "enriched"):
            raise ValueError(f"Unknown message mode: {self.message_mode}")
        if not self.base_url.startswith("http"):
            raise ValueError(f"base_url must be an absolute address: {self.base_url}")
