"""
Utility functions for logging, text processing, identity and price/deadline parsing.
"""
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from urllib.parse import urljoin


def init_logger(
    name: str = "bidder",
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    log_file: Optional[str] = "bidder.log"
) -> logging.Logger:
    """Initialize logger with console and optional file handlers."""
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    if logger.handlers:
        return logger

    console_level_num = getattr(logging, console_level.upper(), logging.INFO)
    ch = logging.StreamHandler()
    ch.setLevel(console_level_num)

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_file:  # Create file handler only if log_file is provided
        file_level_num = getattr(logging, file_level.upper(), logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level_num)
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    return logger


def now_iso() -> str:
    """Return current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def clean_text(s: Optional[str]) -> str:
    """Clean and normalize text by removing extra whitespace."""
    if not s:
        return ""
    s = re.sub(r"\s+", " ", s)
    return s.strip()


def absolute_url(href: str, base_url: str) -> str:
    """Resolve a possibly relative href against the marketplace base address."""
    if not href:
        return ""
    if href.startswith("http"):
        return href
    return urljoin(base_url.rstrip("/") + "/", href.lstrip("/"))


def item_identity(url: str, marker: str = "/order/") -> str:
    """
    Derive the dedup identity of an item from its detail-page address.

    The identity is the path segment that follows ``marker``, cut at the next
    ``/``, ``?`` or ``#``. Without the marker the whole address minus its
    query string and fragment is used, so ``detail?x=1`` and ``detail`` agree.
    """
    if not url:
        return ""
    if marker and marker in url:
        tail = url.split(marker, 1)[1]
        segment = re.split(r"[/?#]", tail, maxsplit=1)[0]
        if segment:
            return segment
    return re.split(r"[?#]", url, maxsplit=1)[0]


def parse_price(price_text: str) -> Tuple[Optional[float], Optional[str]]:
    """
    Parse price text to extract numeric value and currency.

    Supports various formats and currencies (USD $, EUR €, GBP £).
    """
    if not price_text:
        return (None, None)

    s = price_text.replace(",", "").replace("\xa0", " ")
    m = re.search(r"(\$|€|£)\s?(\d+(?:\.\d+)?)", s)
    cur = None
    val = None

    if m:
        cur = m.group(1)
        try:
            val = float(m.group(2))
        except ValueError:
            val = None
    else:
        m2 = re.search(r"(\d+(?:\.\d+)?)\s?\b(USD|EUR|GBP)\b", s, re.I)
        if m2:
            val = float(m2.group(1))
            cur = m2.group(2).upper()

    symbol_map = {"$": "USD", "€": "EUR", "£": "GBP"}
    if cur in symbol_map:
        cur = symbol_map[cur]

    return (val, cur)


def parse_bid_count(text: str) -> int:
    """Extract the number of competing bids from row text, 0 when absent."""
    if not text:
        return 0
    m = re.search(r"(\d+)\s*(?:bids?|offers?|proposals?)\b", text, re.I)
    if not m:
        m = re.search(r"\b(?:bids?|offers?)\s*[:#]?\s*(\d+)", text, re.I)
    if m:
        try:
            return int(m.group(1))
        except ValueError:
            return 0
    return 0


_DURATION_UNITS = {
    "d": "days", "day": "days", "days": "days",
    "h": "hours", "hr": "hours", "hrs": "hours", "hour": "hours", "hours": "hours",
    "m": "minutes", "min": "minutes", "mins": "minutes", "minute": "minutes", "minutes": "minutes",
}

_ABSOLUTE_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M",
    "%d.%m.%Y %H:%M",
    "%b %d, %Y %I:%M %p",
    "%b %d, %I:%M %p",
)


def parse_deadline(text: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse a deadline from row text.

    Understands relative forms ("2 days 3 h", "10 hours left", "45 min") and a
    handful of absolute timestamp layouts. Returns None when nothing matches.
    """
    if not text:
        return None
    now = now or datetime.now()

    m = re.search(r"deadline[:\s]+(.+)", text, re.I)
    candidate = clean_text(m.group(1)) if m else clean_text(text)

    parts = re.findall(r"(\d+)\s*(days?|d|hours?|hrs?|h|minutes?|mins?|m)\b", candidate, re.I)
    if parts:
        try:
            delta = timedelta()
            for amount, unit in parts:
                delta += timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})
            return now + delta
        except (OverflowError, ValueError):
            # "9999999 days" and the like land outside datetime's range
            return None

    found = re.search(r"[A-Za-z0-9][A-Za-z0-9 ,.:\-]+", candidate)
    if not found:
        return None
    stamp = found.group(0).strip()
    for fmt in _ABSOLUTE_FORMATS:
        try:
            parsed = datetime.strptime(stamp, fmt)
        except ValueError:
            continue
        if "%Y" not in fmt:
            parsed = parsed.replace(year=now.year)
        return parsed
    return None
