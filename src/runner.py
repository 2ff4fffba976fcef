"""
Wire the walker together over a real browser.

run_traversal opens a persistent Chromium profile (so a recruiter login
survives between runs), starts or resumes a traversal and re-enters the
controller after every navigation until it stops navigating.
"""

import functools
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional
from playwright.async_api import BrowserContext, Page, async_playwright

from src.browser.jitter import JitterPolicy
from src.browser.navigation import PageNotifier, PlaywrightNavigator
from src.browser.scope import DocumentScope
from src.browser.surfaces import PlaywrightListSurface, PlaywrightRowFeed
from src.core.config import Config
from src.core.exceptions import ElementNotFound
from src.core.logging import get_logger
from src.db.sinks import JsonlCandidateSink, MultiSink, SupabaseCandidateSink
from src.harvest.list_harvester import ListHarvester
from src.harvest.table_harvester import TableHarvester, TableHarvestSettings
from src.scraping.extractor import SelectorFieldExtractor
from src.scraping.models import CandidateSink
from src.scraping.scraper import DeliveringItemScraper
from src.sites.profiles import SiteProfile
from src.traversal.control import ControlSignalChannel
from src.traversal.controller import Decision, TraversalController
from src.traversal.keyboard import KeyboardControlBinding
from src.traversal.state import SourceTag
from src.traversal.store import FileTraversalStore, SessionStorageTraversalStore, TraversalStore
from src.utils.url_utils import normalize_identifier

logger = get_logger(__name__)

# safety net against a controller that keeps navigating without progress
MAX_PAGE_LOADS = 10_000


@asynccontextmanager
async def walker_context(pw, config: Config, headless: Optional[bool] = None):
    """Persistent Chromium context rooted at config.user_data_dir."""
    config.user_data_dir.mkdir(parents=True, exist_ok=True)
    context: BrowserContext = await pw.chromium.launch_persistent_context(
        str(config.user_data_dir),
        headless=config.headless if headless is None else headless,
        args=["--disable-blink-features=AutomationControlled"],
        locale="fr-FR",
    )
    await context.add_init_script("Object.defineProperty(navigator, 'webdriver', {get: () => undefined});")
    try:
        yield context
    finally:
        await context.close()


async def _first_page(context: BrowserContext) -> Page:
    return context.pages[0] if context.pages else await context.new_page()


def build_sink(config: Config) -> CandidateSink:
    sinks: List[CandidateSink] = [JsonlCandidateSink(config.output_dir)]
    if config.supabase_enabled:
        sinks.insert(0, SupabaseCandidateSink(table=config.supabase_candidates_table))
    return sinks[0] if len(sinks) == 1 else MultiSink(sinks)


def build_store(kind: str, config: Config, page: Page, site: str) -> TraversalStore:
    if kind == "session":
        return SessionStorageTraversalStore(page, site=site)
    return FileTraversalStore(config.state_file, site=site)


def build_controller(page: Page, profile: SiteProfile, config: Config, store: TraversalStore,
                     notifier: PageNotifier, seed: Optional[int] = None) -> TraversalController:
    normalize = functools.partial(normalize_identifier, volatile_params=profile.volatile_params)
    surface = PlaywrightListSurface(page, profile.selectors, profile.harvest.bottom_tolerance_px)
    harvester = ListHarvester(
        surface,
        profile.harvest,
        jitter=JitterPolicy.from_settings(profile.harvest, seed=seed),
        normalize=normalize,
        site=profile.name,
    )
    extractor = SelectorFieldExtractor.from_page(page, profile, timeout_ms=config.element_timeout_ms)
    scraper = DeliveringItemScraper(
        extractor,
        build_sink(config),
        current_url=lambda: normalize(page.url) or page.url,
        site=profile.name,
    )
    navigator = PlaywrightNavigator(page, profile.name, config.nav_timeout_ms, config.nav_max_retries)
    return TraversalController(
        profile=profile,
        store=store,
        harvester=harvester,
        scraper=scraper,
        navigator=navigator,
        notifier=notifier,
        list_scope=DocumentScope(page, timeout_ms=config.element_timeout_ms),
        pause_poll_interval=config.pause_poll_interval_s,
    )


async def drive(controller: TraversalController, first: Decision) -> Decision:
    """Re-enter the controller after each navigation until it stops navigating."""
    decision = first
    loads = 0
    while decision.navigate_to and loads < MAX_PAGE_LOADS:
        if controller.last_navigation_failed:
            logger.error("Navigation failed; state kept for a later --resume")
            break
        decision = await controller.on_page_load()
        loads += 1
        logger.info(f"[{controller.profile.name}] {decision.state.value}: {decision.reason}")
    return decision


async def run_traversal(config: Config, profile: SiteProfile, url: str, max_items: Optional[int],
                        source_tag: Optional[SourceTag], store_kind: str = "file",
                        resume: bool = False, headless: Optional[bool] = None) -> int:
    """
    Start (or resume) a traversal from a list page URL.

    Returns:
        Process exit code
    """
    async with async_playwright() as pw:
        async with walker_context(pw, config, headless) as context:
            page = await _first_page(context)
            notifier = PageNotifier(page, profile.name, headless=config.headless if headless is None else headless)
            store = build_store(store_kind, config, page, profile.name)
            controller = build_controller(page, profile, config, store, notifier)
            await KeyboardControlBinding(page, ControlSignalChannel(store), notifier).install()

            target = url
            if resume and isinstance(store, FileTraversalStore):
                existing = await store.load()
                if existing is not None and existing.in_progress:
                    logger.info(f"Resuming: {existing.summary()}")
                    target = existing.current_item

            if not await controller.navigator.goto(target):
                return 1

            decision = await controller.on_page_load()
            if decision.reason == "no_state" or (decision.navigate_to is None and not resume):
                if profile.selectors.list_ready:
                    try:
                        await DocumentScope(page).wait_for(profile.selectors.list_ready,
                                                           timeout_ms=config.element_timeout_ms)
                    except ElementNotFound as e:
                        logger.warning(f"List page not ready: {e}")
                started = await controller.start(max_items, source_tag)
                if started is None:
                    return 1
                decision = started

            final = await drive(controller, decision)
            logger.info(f"Traversal ended: {final.state.value} ({final.reason})")
            return 0


async def run_table(config: Config, url: str, out: Optional[Path] = None,
                    tbody_selector: str = "table tbody", total_selector: str = ".resultats.bold",
                    headless: Optional[bool] = None) -> int:
    """Harvest a report table and write one line per row."""
    out = out or config.output_dir / f"table_{datetime.now().strftime('%Y%m%d_%H%M%S')}.tsv"
    async with async_playwright() as pw:
        async with walker_context(pw, config, headless) as context:
            page = await _first_page(context)
            navigator = PlaywrightNavigator(page, "table", config.nav_timeout_ms, config.nav_max_retries)
            if not await navigator.goto(url):
                return 1
            feed = PlaywrightRowFeed(page, tbody_selector=tbody_selector, total_selector=total_selector)
            lines = await TableHarvester(feed, TableHarvestSettings()).harvest()

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
    logger.info(f"[table] {len(lines)} rows -> {out}")
    return 0
