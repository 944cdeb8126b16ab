"""
Export utilities for bid attempt records.
"""
from typing import Iterable

import pandas as pd

from .models import BidAttempt


def attempts_frame(attempts: Iterable[BidAttempt]) -> pd.DataFrame:
    """Tabulate bid attempts, one row per attempt in the order they happened."""
    rows = []
    for a in attempts:
        rows.append({
            "timestamp": a.timestamp,
            "identity": a.identity,
            "title": a.title,
            "strategy_used": a.strategy_used or "",
            "outcome": a.outcome.value,
            "detail": a.detail,
        })
    return pd.DataFrame(rows, columns=["timestamp", "identity", "title", "strategy_used", "outcome", "detail"])


def save_attempts(attempts: Iterable[BidAttempt], out_path: str, logger=None) -> int:
    """Save bid attempts to CSV or Excel file."""
    df = attempts_frame(attempts)
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)

    if logger:
        logger.info(f">>> Saved {len(df)} bid attempts to {out_path}")
    return len(df)


def strategy_summary(attempts: Iterable[BidAttempt]) -> pd.DataFrame:
    """Successes and failures per strategy; failed attempts count under 'none'."""
    df = attempts_frame(attempts)
    if df.empty:
        return pd.DataFrame(columns=["strategy_used", "success", "failure"])
    df["strategy_used"] = df["strategy_used"].replace("", "none")
    table = pd.crosstab(df["strategy_used"], df["outcome"])
    for col in ("success", "failure"):
        if col not in table.columns:
            table[col] = 0
    return table[["success", "failure"]].reset_index()
