"""
Harvester for plain, incrementally rendered report tables.

Rows are pushed from the page by a change observer (see PlaywrightRowFeed)
instead of being re-scanned, and are identified by the row number shown in
their first cell.
"""

import asyncio
import re
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, NamedTuple, Optional, Set

from src.browser.surfaces import RowFeed
from src.core.logging import get_logger

logger = get_logger(__name__)

_ROW_INDEX_RE = re.compile(r"^\d+$")


class TableRow(NamedTuple):
    index: int
    cells: List[str]


RowProcessor = Callable[[TableRow, List[str]], None]


@dataclass
class TableHarvestSettings:
    """Timing and ceilings for one table harvest (seconds unless stated)."""

    row_timeout: float = 0.05
    max_wait: float = 1.5
    max_scrolls: int = 50
    max_idle_scrolls: int = 10
    scroll_delay: float = 0.015
    scroll_px: int = 1000
    max_duration: float = 120.0

    def __post_init__(self):
        """Validate configuration."""
        if self.max_scrolls < 0 or self.max_idle_scrolls < 1:
            raise ValueError("max_scrolls must be >= 0 and max_idle_scrolls >= 1")
        if self.row_timeout <= 0 or self.max_wait <= 0 or self.max_duration <= 0:
            raise ValueError("timeouts must be positive")
        if self.scroll_px <= 0:
            raise ValueError("scroll_px must be positive")


def row_index(cells: List[str]) -> Optional[int]:
    """Row number from the first cell, or None when it is not a positive integer."""
    if not cells:
        return None
    text = (cells[0] or "").strip()
    if not _ROW_INDEX_RE.match(text):
        return None
    value = int(text)
    return value or None


def tab_separated(row: TableRow, lines: List[str]) -> None:
    lines.append("\t".join(row.cells))


class TableHarvester:
    """
    Scroll a report table and hand every new row to a processor.

    Stops on the first of: the reported total reached, max_scrolls,
    max_idle_scrolls cycles in a row without a new row, max_wait seconds
    with neither a new row nor a scroll, or max_duration overall.
    """

    def __init__(
        self,
        feed: RowFeed,
        settings: Optional[TableHarvestSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.feed = feed
        self.settings = settings or TableHarvestSettings()
        self.sleep = sleep
        self.clock = clock

    async def harvest(self, process_row: Optional[RowProcessor] = None,
                      lines: Optional[List[str]] = None) -> List[str]:
        """
        Collect rows until a stop condition holds.

        Args:
            process_row: Called once per new row with the shared lines list
            lines: Output list to append to (a new one by default)

        Returns:
            The lines list
        """
        s = self.settings
        process_row = process_row or tab_separated
        lines = [] if lines is None else lines
        seen: Set[int] = set()

        total = await self.feed.reported_total()
        logger.info(f"[table] Expected rows: {total if total is not None else 'unknown'}")

        started = self.clock()
        self._idle_deadline = started + s.max_wait
        scrolls = idle_scrolls = 0
        reason = "target"

        await self.feed.open()
        try:
            await self._drain(seen, process_row, lines)
            while True:
                if total and len(seen) >= total:
                    reason = "target"
                    break
                if scrolls >= s.max_scrolls:
                    reason = "max_scrolls"
                    break
                if idle_scrolls >= s.max_idle_scrolls:
                    reason = "max_idle_scrolls"
                    break
                now = self.clock()
                if now >= self._idle_deadline:
                    reason = "idle_timeout"
                    break
                if now - started >= s.max_duration:
                    reason = "max_duration"
                    break

                await self.sleep(s.scroll_delay)
                scrolls += 1
                await self.feed.scroll_by(s.scroll_px)
                self._idle_deadline = self.clock() + s.max_wait

                new = await self._drain(seen, process_row, lines)
                idle_scrolls = 0 if new else idle_scrolls + 1
        finally:
            await self.feed.close()

        logger.info(f"[table] Stopped ({reason}) after {scrolls} scrolls with {len(seen)} rows")
        return lines

    async def _drain(self, seen: Set[int], process_row: RowProcessor, lines: List[str]) -> int:
        """Consume rows until none arrives within row_timeout. Returns the number of new rows."""
        new = 0
        while True:
            cells = await self.feed.next_row(self.settings.row_timeout)
            if cells is None:
                return new
            index = row_index(cells)
            if index is None or index in seen:
                continue
            seen.add(index)
            process_row(TableRow(index, cells), lines)
            new += 1
            self._idle_deadline = self.clock() + self.settings.max_wait
