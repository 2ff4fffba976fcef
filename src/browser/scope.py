"""
Locate-in-scope: element lookups over the document or a shadow root.

Recruiter pages mix plain DOM with web components whose content lives in
open shadow roots. Both cases are handled by one interface:

    scope = DocumentScope(page).shadow("#tools > contact-workflow")
    button = await scope.wait_for("#contactEmail", timeout_ms=3000)

Playwright CSS locators pierce open shadow roots, so a ShadowScope is a
locator chained under its host. The host itself must exist, otherwise the
scope raises ScopeMissing.
"""

from typing import Optional, Union
from playwright.async_api import Locator, Page

from src.browser.waiting import wait_until
from src.core.exceptions import ElementNotFound, ScopeMissing
from src.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_MS = 5000
POLL_INTERVAL_S = 0.1


class Scope:
    """Common behaviour for DocumentScope and ShadowScope."""

    def __init__(self, page: Page, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        self.page = page
        self.timeout_ms = timeout_ms

    async def root(self) -> Union[Page, Locator]:
        raise NotImplementedError

    def shadow(self, host_selector: str) -> "ShadowScope":
        """Nested scope rooted at a shadow host inside this scope."""
        return ShadowScope(self.page, host_selector, parent=self, timeout_ms=self.timeout_ms)

    async def query(self, selector: str) -> Optional[Locator]:
        """First matching element, or None if nothing matches right now."""
        loc = (await self.root()).locator(selector).first
        if await loc.count() > 0:
            return loc
        return None

    async def wait_for(self, selector: str, timeout_ms: Optional[int] = None) -> Locator:
        """
        Wait for an element to appear in this scope.

        Raises:
            ElementNotFound: If nothing matches before the timeout
            ScopeMissing: If this scope's shadow host is absent
        """
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        root = await self.root()
        loc = root.locator(selector).first

        async def present():
            return await loc.count() > 0

        if not await wait_until(present, timeout_ms / 1000.0, interval=POLL_INTERVAL_S):
            raise ElementNotFound(selector, timeout_ms)
        return loc

    async def wait_gone(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        """
        Wait for every element matching selector to disappear.

        Raises:
            ElementNotFound: If the element is still present at the timeout
        """
        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        root = await self.root()
        loc = root.locator(selector)

        async def absent():
            return await loc.count() == 0

        if not await wait_until(absent, timeout_ms / 1000.0, interval=POLL_INTERVAL_S):
            raise ElementNotFound(
                selector, timeout_ms,
                message=f"Timeout: element {selector!r} still present after {timeout_ms}ms",
            )

    async def read(self, selector: str, attribute: Optional[str] = None,
                   timeout_ms: Optional[int] = None) -> Optional[str]:
        """
        Wait for an element and read its text or one attribute.

        Returns:
            Stripped value, or None if the element has no such attribute/text
        """
        loc = await self.wait_for(selector, timeout_ms)
        if attribute:
            value = await loc.get_attribute(attribute)
        else:
            value = await loc.text_content()
        if value is None:
            return None
        value = value.strip()
        return value or None

    async def click(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        loc = await self.wait_for(selector, timeout_ms)
        await loc.click()


class DocumentScope(Scope):
    """The page's root document."""

    async def root(self) -> Page:
        return self.page

    def __repr__(self) -> str:
        return "DocumentScope()"


class ShadowScope(Scope):
    """Content under a shadow host, itself located in a parent scope."""

    def __init__(self, page: Page, host_selector: str, parent: Optional[Scope] = None,
                 timeout_ms: int = DEFAULT_TIMEOUT_MS):
        super().__init__(page, timeout_ms)
        self.host_selector = host_selector
        self.parent = parent or DocumentScope(page, timeout_ms)

    async def root(self) -> Locator:
        parent_root = await self.parent.root()
        host = parent_root.locator(self.host_selector).first

        async def host_present():
            return await host.count() > 0

        if not await wait_until(host_present, self.timeout_ms / 1000.0, interval=POLL_INTERVAL_S):
            logger.debug(f"Shadow host missing: {self.host_selector}")
            raise ScopeMissing(self.host_selector)
        return host

    def __repr__(self) -> str:
        return f"ShadowScope({self.host_selector!r}, parent={self.parent!r})"
