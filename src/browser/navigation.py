"""
Full-page navigation and user notification over a Playwright page.
"""

import random
from playwright.async_api import Dialog, Error as PlaywrightError, Page

from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.logging import get_logger

logger = get_logger(__name__)


class PlaywrightNavigator:
    """
    Navigate one page with bounded retries.

    Args:
        page: Playwright page instance
        site: Site name used in error records
        timeout_ms: Timeout for each page.goto
        max_retries: Attempts before giving up
    """

    def __init__(self, page: Page, site: str, timeout_ms: int = 45_000, max_retries: int = 3):
        self.page = page
        self.site = site
        self.timeout_ms = timeout_ms
        self.max_retries = max_retries

    @property
    def current_url(self) -> str:
        return self.page.url

    async def goto(self, url: str) -> bool:
        """
        Navigate to url, retrying transient failures.

        Returns:
            True once the page reached DOMContentLoaded, False after the last failed attempt
        """
        for attempt in range(self.max_retries):
            try:
                logger.info(f"[nav] {url} (attempt {attempt + 1}/{self.max_retries})")
                await self.page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                await self.page.wait_for_timeout(random.randint(1200, 2000))
                return True
            except PlaywrightError as e:
                if attempt == self.max_retries - 1:
                    get_error_logger().log_exception(
                        e,
                        component=ErrorComponent.BROWSER,
                        stage=ErrorStage.NAVIGATE,
                        site=self.site,
                        url=url,
                        error_type=ErrorType.NAVIGATION_ERROR,
                        metadata={"attempts": self.max_retries},
                    )
                    return False
                await self.page.wait_for_timeout(random.randint(2000, 4000))
        return False


class PageNotifier:
    """
    Blocking user notification shown as a page alert.

    The message is always logged. In a headed browser the alert stays open
    until the user dismisses it; headless runs accept it at once.
    """

    def __init__(self, page: Page, site: str, headless: bool = False):
        self.page = page
        self.site = site
        self.headless = headless

    async def notify(self, message: str) -> None:
        logger.warning(f"[notify] {message}")

        async def on_dialog(dialog: Dialog):
            if self.headless:
                await dialog.accept()

        self.page.once("dialog", on_dialog)
        try:
            await self.page.evaluate("(m) => window.alert(m)", message)
        except PlaywrightError as e:
            get_error_logger().log_exception(
                e,
                component=ErrorComponent.BROWSER,
                stage=ErrorStage.RETURN_TO_ORIGIN,
                site=self.site,
                url=self.page.url,
                severity=ErrorSeverity.WARNING,
            )
