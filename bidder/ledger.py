"""
In-memory ledger of item identities handled during the current run.
"""
from typing import Set


class DedupLedger:
    """
    Append-only set of identities. Nothing is written to disk, so a restart
    starts from an empty ledger and may bid on the same items again.
    """

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def has_seen(self, identity: str) -> bool:
        return identity in self._seen

    def mark_seen(self, identity: str) -> None:
        if identity:
            self._seen.add(identity)

    def __contains__(self, identity: str) -> bool:
        return self.has_seen(identity)

    def __len__(self) -> int:
        return len(self._seen)
