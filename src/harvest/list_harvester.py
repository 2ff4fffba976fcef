"""
Incremental harvester for virtualized candidate lists.

A virtualized list only keeps the cards near the viewport in the DOM, so
the list cannot be read in one pass. The harvester alternates between
scanning what is rendered and either scrolling or activating the site's
load-more control, until it has enough identifiers or the list stops
producing new ones.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional

from src.browser.jitter import JitterPolicy
from src.browser.surfaces import ListSurface
from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.logging import get_logger
from src.harvest.session import HarvestSession
from src.sites.profiles import HarvestSettings
from src.utils.url_utils import normalize_identifier

logger = get_logger(__name__)

Normalizer = Callable[[str], Optional[str]]


class ListHarvester:
    """
    Collect ordered, deduplicated item identifiers from a list surface.

    Args:
        surface: Page surface exposing rendered refs, scrolling and load-more
        settings: Per-site thresholds (trigger threshold, ceilings)
        jitter: Pacing policy (defaults to one built from settings)
        normalize: Raw reference -> identifier (None drops the reference)
        sleep: Awaitable sleep, injectable for tests
        site: Site name used in log and error records

    Example:
        >>> harvester = ListHarvester(PlaywrightListSurface(page, HELLOWORK.selectors), HELLOWORK.harvest)
        >>> ids = await harvester.harvest(max_items=50)
    """

    def __init__(
        self,
        surface: ListSurface,
        settings: HarvestSettings,
        jitter: Optional[JitterPolicy] = None,
        normalize: Optional[Normalizer] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        site: str = "unknown",
    ):
        self.surface = surface
        self.settings = settings
        self.jitter = jitter or JitterPolicy.from_settings(settings)
        self.normalize = normalize or normalize_identifier
        self.sleep = sleep
        self.site = site

    async def harvest(self, max_items: Optional[int] = None, reported_total: Optional[int] = None) -> List[str]:
        """
        Run the harvest loop.

        Args:
            max_items: Upper bound on identifiers (default: the site's default_max_items)
            reported_total: Item count the page claims to hold, if known

        Returns:
            At most min(max_items, reported_total) identifiers in first-seen order
        """
        if max_items is None:
            max_items = self.settings.default_max_items
        session = HarvestSession(max_items, reported_total)
        if session.reported_total is not None:
            logger.info(f"[{self.site}] Page reports {session.reported_total} items, limit {session.target_count}")
        else:
            logger.info(f"[{self.site}] Limit {session.target_count} items, page total unknown")
        if session.bound == 0:
            return []

        if await self._scan(session) == 0 and session.count == 0:
            logger.info(f"[{self.site}] No visible items, starting from the top")
            await self.surface.scroll_to_top()
            await self.sleep(0.3)

        acted = False
        while True:
            new = await self._scan(session)
            if acted:
                session.idle_scrolls = 0 if new else session.idle_scrolls + 1

            if session.is_complete():
                logger.info(f"[{self.site}] Collected {session.count}, bound {session.bound} reached")
                break
            if session.scroll_attempts >= self.settings.max_scroll_attempts:
                self._log_ceiling(session, "max_scroll_attempts")
                break
            if session.idle_scrolls >= self.settings.max_idle_scrolls:
                self._log_ceiling(session, "max_idle_scrolls")
                break

            acted = True
            if session.since_last_trigger() >= self.settings.trigger_threshold:
                if await self._trigger_load_more(session):
                    continue

            if await self._scroll_cycle(session):
                # stuck: the load-more control is the last way to get more items
                if await self._trigger_load_more(session):
                    continue
                logger.info(f"[{self.site}] List exhausted after {session.scroll_attempts} scroll cycles")
                break

        # cards may have rendered during the last action
        await self._scan(session)
        result = session.result()
        logger.info(f"[{self.site}] Harvest finished with {len(result)} unique identifiers")
        return result

    async def _scan(self, session: HarvestSession) -> int:
        """Add unseen identifiers among the rendered, in-viewport refs."""
        new = 0
        for raw in await self.surface.visible_refs():
            if session.is_complete():
                break
            identifier = self.normalize(raw)
            if identifier and session.add(identifier):
                new += 1
        if new:
            logger.debug(f"[{self.site}] +{new} identifiers ({session.count} total)")
        return new

    async def _trigger_load_more(self, session: HarvestSession) -> bool:
        if not await self.surface.click_load_more():
            return False
        session.last_trigger_count = session.count
        session.scroll_attempts += 1
        await self.sleep(self.jitter.settle_delay())
        return True

    async def _scroll_cycle(self, session: HarvestSession) -> bool:
        """
        One human-paced burst of scrolls followed by a reading pause.

        Returns:
            True if the list is stuck (position unchanged or at the bottom)
        """
        viewport = await self.surface.viewport_height()
        before = await self.surface.scroll_state()
        for _ in range(self.jitter.burst()):
            await self.surface.scroll_by(self.jitter.increment(viewport))
            await self.sleep(self.jitter.micro_delay())
        await self.sleep(self.jitter.reading_pause())
        after = await self.surface.scroll_state()
        session.scroll_attempts += 1
        stuck = after.at_bottom or after.position == before.position
        if stuck:
            logger.debug(f"[{self.site}] Scroll stuck at {after.position} (bottom={after.at_bottom})")
        return stuck

    def _log_ceiling(self, session: HarvestSession, ceiling: str) -> None:
        get_error_logger().log_error(
            component=ErrorComponent.HARVESTER,
            stage=ErrorStage.SCROLL_CYCLE,
            error_type=ErrorType.TIMEOUT,
            site=self.site,
            message=f"Harvest stopped by {ceiling} with {session.count} identifiers",
            severity=ErrorSeverity.WARNING,
            metadata={
                "ceiling": ceiling,
                "collected": session.count,
                "scroll_attempts": session.scroll_attempts,
                "idle_scrolls": session.idle_scrolls,
            },
        )
