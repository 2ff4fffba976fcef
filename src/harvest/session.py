"""
Ephemeral bookkeeping for one harvest run.
"""

from typing import List, Optional, Set


class HarvestSession:
    """
    Seen identifiers plus the counters that bound a harvest loop.

    `ordered` keeps first-discovery order; `seen` answers membership.
    The session never accepts more identifiers than its bound, so the
    result is already capped at `max_items` and at the reported total
    when one is known.
    """

    def __init__(self, target_count: int, reported_total: Optional[int] = None):
        if target_count < 0:
            raise ValueError("target_count must not be negative")
        self.target_count = target_count
        self.reported_total = reported_total if reported_total is not None and reported_total >= 0 else None
        self.seen: Set[str] = set()
        self.ordered: List[str] = []
        self.scroll_attempts = 0
        self.idle_scrolls = 0
        self.last_trigger_count = 0

    @property
    def bound(self) -> int:
        if self.reported_total is None:
            return self.target_count
        return min(self.target_count, self.reported_total)

    @property
    def count(self) -> int:
        return len(self.ordered)

    def add(self, identifier: str) -> bool:
        """Record an identifier. Returns True if it was new and accepted."""
        if identifier in self.seen or self.is_complete():
            return False
        self.seen.add(identifier)
        self.ordered.append(identifier)
        return True

    def is_complete(self) -> bool:
        return self.count >= self.bound

    def since_last_trigger(self) -> int:
        return self.count - self.last_trigger_count

    def result(self) -> List[str]:
        return list(self.ordered[: self.bound])

    def __repr__(self) -> str:
        return (
            f"HarvestSession(count={self.count}, bound={self.bound}, "
            f"scrolls={self.scroll_attempts}, idle={self.idle_scrolls})"
        )
