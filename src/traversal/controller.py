"""
Traversal Controller.

Drives a multi-item visit across full page loads:

    IDLE -> COLLECTING -> NAVIGATING -> PROCESSING <-> PAUSED -> COMPLETED | STOPPED

The controller keeps nothing in memory between page loads. Each call to
on_page_load reads the store, acts on the page it is on, writes the next
state and navigates. Pause and stop are only looked at after the item
scraper has returned and inside the pause-poll loop, so an item that has
started is always scraped to the end.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.exceptions import ElementNotFound
from src.core.logging import get_logger
from src.harvest.list_harvester import ListHarvester
from src.scraping.models import ItemScraper, ScrapeResult, ScrapeStatus
from src.sites.classifier import PageKind, classify
from src.sites.profiles import SiteProfile
from src.traversal.state import SourceTag, StopReason, TraversalState
from src.traversal.store import TraversalStore
from src.utils.url_utils import normalize_identifier, same_page

logger = get_logger(__name__)

LOGIN_REQUIRED_MESSAGE = "Login required: the traversal was stopped. Please log in and start it again."
LIST_READY_TIMEOUT_MS = 3000
LIST_SETTLE_S = 1.5


class TraversalPhase(str, Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    NAVIGATING = "navigating"
    PROCESSING = "processing"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Decision:
    """What the controller did on one page load."""

    state: TraversalPhase
    navigate_to: Optional[str] = None
    reason: str = ""


class Navigator(Protocol):
    @property
    def current_url(self) -> str: ...

    async def goto(self, url: str) -> bool: ...


class Notifier(Protocol):
    async def notify(self, message: str) -> None: ...


class TraversalController:
    """
    Resumable state machine over one site's list and item pages.

    Args:
        profile: Site profile (classification rules, list-ready selector)
        store: Durable store shared with the control channel
        harvester: List harvester bound to the list page
        scraper: Item scraper invoked once per item page
        navigator: Performs full page navigations
        notifier: Blocking user notifications for traversal-ending conditions
        list_scope: Scope used to wait for the list-ready element (optional)
        pause_poll_interval: Seconds between store reads while paused
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        profile: SiteProfile,
        store: TraversalStore,
        harvester: ListHarvester,
        scraper: ItemScraper,
        navigator: Navigator,
        notifier: Notifier,
        list_scope=None,
        pause_poll_interval: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.profile = profile
        self.store = store
        self.harvester = harvester
        self.scraper = scraper
        self.navigator = navigator
        self.notifier = notifier
        self.list_scope = list_scope
        self.pause_poll_interval = pause_poll_interval
        self.sleep = sleep
        self.phase = TraversalPhase.IDLE
        self.last_navigation_failed = False

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    async def start(self, max_items: Optional[int] = None,
                    source_tag: Optional[SourceTag] = None) -> Optional[Decision]:
        """
        Harvest the current list page and navigate to the first item.

        Returns:
            The decision taken, or None when nothing was started
        """
        url = self.navigator.current_url
        if classify(url, self.profile) is not PageKind.LIST_PAGE:
            logger.warning(f"[{self.profile.name}] Not a list page, nothing to start: {url}")
            return None

        existing = await self.store.load()
        if existing is not None and existing.in_progress:
            logger.warning(f"[{self.profile.name}] A traversal is already in progress ({existing.summary()})")
            return None

        self.phase = TraversalPhase.COLLECTING
        reported_total = await self.harvester.surface.reported_total()
        items = await self.harvester.harvest(max_items, reported_total)
        if not items:
            logger.warning(f"[{self.profile.name}] No items found on the list page")
            self.phase = TraversalPhase.IDLE
            return None

        state = TraversalState.create(items, origin_page=url, source_tag=source_tag)
        await self.store.save(state)
        logger.info(f"[{self.profile.name}] Stored traversal of {len(items)} items, navigating to the first")
        return await self._navigate(TraversalPhase.NAVIGATING, state.items[0], "started")

    # ------------------------------------------------------------------
    # Page load
    # ------------------------------------------------------------------

    async def on_page_load(self, url: Optional[str] = None) -> Decision:
        """Re-enter after a page load and take the next step."""
        url = url or self.navigator.current_url
        state = await self.store.load()
        if state is None:
            self.phase = TraversalPhase.IDLE
            return Decision(TraversalPhase.IDLE, reason="no_state")

        kind = classify(url, self.profile)
        if kind is PageKind.ITEM_PAGE:
            if not state.in_progress:
                logger.info(f"[{self.profile.name}] Traversal was stopped, returning to the list page")
                return await self._navigate(TraversalPhase.STOPPED, state.origin_page,
                                            (state.stop_reason or StopReason.USER_STOP).value)
            return await self._process_item(state, url)

        if same_page(url, state.origin_page):
            return await self._return_to_origin(state)

        logger.debug(f"[{self.profile.name}] Page outside the traversal: {url}")
        phase = TraversalPhase.NAVIGATING if state.in_progress else TraversalPhase.STOPPED
        return Decision(phase, reason="unrelated_page")

    async def _process_item(self, state: TraversalState, url: str) -> Decision:
        self.phase = TraversalPhase.PROCESSING
        expected = state.current_item
        if normalize_identifier(url, volatile_params=self.profile.volatile_params) != expected:
            logger.warning(f"[{self.profile.name}] On {url} but item {state.cursor + 1} is {expected}")

        logger.info(f"[{self.profile.name}] Processing item {state.cursor + 1}/{len(state.items)}")
        result = await self._scrape(state, url)

        # control signals may have arrived during extraction
        current = await self.store.load()
        if current is None:
            logger.info(f"[{self.profile.name}] State cleared during extraction, returning to the list page")
            return await self._navigate(TraversalPhase.STOPPED, state.origin_page, "cleared")

        if result.status is ScrapeStatus.LOGIN_REQUIRED:
            logger.warning(f"[{self.profile.name}] Login required, halting the traversal")
            current = current.stopped(StopReason.LOGIN_REQUIRED)
            await self.store.save(current)
            return await self._navigate(TraversalPhase.STOPPED, current.origin_page,
                                        StopReason.LOGIN_REQUIRED.value)

        if not current.in_progress:
            return await self._navigate(TraversalPhase.STOPPED, current.origin_page,
                                        (current.stop_reason or StopReason.USER_STOP).value)

        while True:
            if current.is_paused:
                current = await self._wait_while_paused(current)
                if current is None or not current.in_progress:
                    return await self._navigate(TraversalPhase.STOPPED, state.origin_page,
                                                StopReason.USER_STOP.value)

            if not current.has_next:
                await self.store.clear()
                logger.info(f"[{self.profile.name}] Traversal complete ({len(current.items)} items)")
                return await self._navigate(TraversalPhase.COMPLETED, current.origin_page, "completed")

            # a pause or stop written since the last read must survive the advance
            latest = await self.store.load()
            if latest is None:
                return await self._navigate(TraversalPhase.STOPPED, state.origin_page, "cleared")
            if not latest.in_progress:
                return await self._navigate(TraversalPhase.STOPPED, latest.origin_page,
                                            (latest.stop_reason or StopReason.USER_STOP).value)
            if latest != current:
                current = latest
                continue

            nxt = current.advanced()
            await self.store.save(nxt)
            return await self._navigate(TraversalPhase.NAVIGATING, nxt.current_item, "advanced")

    async def _scrape(self, state: TraversalState, url: str) -> ScrapeResult:
        """Run the scraper; a failure only affects this item."""
        try:
            result = await self.scraper.scrape(state.source_tag)
        except Exception as e:
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.TRAVERSAL,
                stage=ErrorStage.PROCESS_ITEM,
                site=self.profile.name,
                url=url,
                metadata={"cursor": state.cursor},
            )
            return ScrapeResult.failed(str(e))

        if result.status is ScrapeStatus.ERROR:
            get_error_logger().log_error(
                component=ErrorComponent.TRAVERSAL,
                stage=ErrorStage.PROCESS_ITEM,
                error_type=ErrorType.UNKNOWN,
                site=self.profile.name,
                message=result.error or "Item scrape failed",
                url=url,
                severity=ErrorSeverity.WARNING,
                metadata={"cursor": state.cursor},
            )
        return result

    async def _wait_while_paused(self, state: TraversalState) -> Optional[TraversalState]:
        """Poll the store until the traversal is resumed or stopped."""
        self.phase = TraversalPhase.PAUSED
        while state is not None and state.in_progress and state.is_paused:
            logger.info(f"[{self.profile.name}] Paused, checking again in {self.pause_poll_interval:g}s")
            await self.sleep(self.pause_poll_interval)
            state = await self.store.load()
        self.phase = TraversalPhase.PROCESSING
        return state

    async def _return_to_origin(self, state: TraversalState) -> Decision:
        """Back on the list page: report a login stop, then clear the store."""
        if state.stop_reason is StopReason.LOGIN_REQUIRED:
            await self._notify_login_required()
        await self.store.clear()
        logger.info(f"[{self.profile.name}] Returned to the list page, state cleared")
        if state.in_progress:
            reason = "returned_to_origin"
        else:
            reason = (state.stop_reason or StopReason.USER_STOP).value
        self.phase = TraversalPhase.STOPPED
        return Decision(TraversalPhase.STOPPED, reason=reason)

    async def _notify_login_required(self) -> None:
        ready = self.profile.selectors.list_ready
        try:
            if self.list_scope is not None and ready:
                await self.list_scope.wait_for(ready, timeout_ms=LIST_READY_TIMEOUT_MS)
            await self.sleep(LIST_SETTLE_S)
            await self.notifier.notify(LOGIN_REQUIRED_MESSAGE)
        except ElementNotFound as e:
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.TRAVERSAL,
                stage=ErrorStage.RETURN_TO_ORIGIN,
                site=self.profile.name,
                url=self.navigator.current_url,
                severity=ErrorSeverity.WARNING,
                metadata={"stop_reason": StopReason.LOGIN_REQUIRED.value},
            )

    async def _navigate(self, phase: TraversalPhase, url: str, reason: str) -> Decision:
        self.phase = phase
        self.last_navigation_failed = not await self.navigator.goto(url)
        if self.last_navigation_failed:
            logger.error(f"[{self.profile.name}] Navigation to {url} failed")
        return Decision(phase, navigate_to=url, reason=reason)
