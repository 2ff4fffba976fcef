"""
Page surfaces the harvesters work against.

ListSurface and RowFeed describe just enough of a list page for the
harvesters to run. The Playwright implementations here run small scripts
in the page; tests substitute in-memory fakes with the same methods.
"""

import asyncio
import re
from typing import List, NamedTuple, Optional, Protocol
from playwright.async_api import Error as PlaywrightError, Page

from src.core.logging import get_logger
from src.sites.profiles import ListSelectors

logger = get_logger(__name__)

_FIRST_INT_RE = re.compile(r"\d+")


class ScrollState(NamedTuple):
    position: int
    at_bottom: bool


class ListSurface(Protocol):
    """What the list harvester needs from a list page."""

    async def visible_refs(self) -> List[str]: ...

    async def viewport_height(self) -> int: ...

    async def scroll_by(self, pixels: int) -> None: ...

    async def scroll_to_top(self) -> None: ...

    async def scroll_state(self) -> ScrollState: ...

    async def click_load_more(self) -> bool: ...

    async def reported_total(self) -> Optional[int]: ...


class RowFeed(Protocol):
    """What the table harvester needs from a report page."""

    async def open(self) -> None: ...

    async def next_row(self, timeout: float) -> Optional[List[str]]: ...

    async def scroll_by(self, pixels: int) -> None: ...

    async def reported_total(self) -> Optional[int]: ...

    async def close(self) -> None: ...


def parse_total(raw: Optional[str]) -> Optional[int]:
    """
    First integer found in raw, or None.

    Example:
        >>> parse_total("Résultats : 123 candidats")
        123
    """
    if not raw:
        return None
    m = _FIRST_INT_RE.search(raw)
    return int(m.group(0)) if m else None


# Returns null when the list host or its shadow root is missing.
_VISIBLE_REFS_JS = """
([listHost, card, cardShadow, link]) => {
  let root = document;
  if (listHost) {
    const host = document.querySelector(listHost);
    if (!host || !host.shadowRoot) return null;
    root = host.shadowRoot;
  }
  const vh = window.innerHeight || document.documentElement.clientHeight;
  const out = [];
  for (const c of root.querySelectorAll(card)) {
    const r = c.getBoundingClientRect();
    if (!(r.bottom > 0 && r.top < vh)) continue;
    const inner = cardShadow ? c.shadowRoot : c;
    if (!inner) continue;
    const a = inner.querySelector(link);
    const href = a && (a.href || a.getAttribute('href'));
    if (href) out.push(href);
  }
  return out;
}
"""

_SCROLL_STATE_JS = """
(container) => {
  const el = container ? document.querySelector(container) : null;
  if (el) {
    return {y: Math.round(el.scrollTop), max: el.scrollHeight - el.clientHeight};
  }
  const doc = document.scrollingElement || document.documentElement;
  return {y: Math.round(window.scrollY), max: doc.scrollHeight - window.innerHeight};
}
"""

_SCROLL_BY_JS = """
([container, px]) => {
  const el = container ? document.querySelector(container) : null;
  (el || window).scrollBy(0, px);
}
"""

_SCROLL_TOP_JS = """
(container) => {
  const el = container ? document.querySelector(container) : null;
  if (el) { el.scrollTop = 0; } else { window.scrollTo({top: 0, behavior: "auto"}); }
}
"""


class PlaywrightListSurface:
    """ListSurface over a live Playwright page, driven by a site's ListSelectors."""

    def __init__(self, page: Page, selectors: ListSelectors, bottom_tolerance_px: int = 10):
        self.page = page
        self.selectors = selectors
        self.bottom_tolerance_px = bottom_tolerance_px

    async def visible_refs(self) -> List[str]:
        s = self.selectors
        refs = await self.page.evaluate(
            _VISIBLE_REFS_JS, [s.list_host, s.card, s.card_has_shadow, s.link]
        )
        if refs is None:
            logger.debug(f"List scope not rendered yet: {s.list_host}")
            return []
        return refs

    async def viewport_height(self) -> int:
        return await self.page.evaluate("() => window.innerHeight || document.documentElement.clientHeight")

    async def scroll_by(self, pixels: int) -> None:
        await self.page.evaluate(_SCROLL_BY_JS, [self.selectors.scroll_container, pixels])

    async def scroll_to_top(self) -> None:
        await self.page.evaluate(_SCROLL_TOP_JS, self.selectors.scroll_container)

    async def scroll_state(self) -> ScrollState:
        st = await self.page.evaluate(_SCROLL_STATE_JS, self.selectors.scroll_container)
        y = int(st.get("y") or 0)
        max_y = int(st.get("max") or 0)
        return ScrollState(position=y, at_bottom=y >= max_y - self.bottom_tolerance_px)

    async def click_load_more(self) -> bool:
        """
        Activate the site's load-more control if it is present and usable.

        Returns:
            True if the control was clicked, False otherwise
        """
        s = self.selectors
        if not s.load_more:
            return False
        try:
            if s.load_more_host:
                loc = self.page.locator(s.load_more_host).locator(s.load_more).first
            else:
                loc = self.page.locator(s.load_more).first
            if not (await loc.count() and await loc.is_visible() and await loc.is_enabled()):
                return False
            if s.load_more_disabled_attr:
                flag = await loc.get_attribute(s.load_more_disabled_attr)
                if flag is not None and flag != "false":
                    return False
            await loc.click()
            logger.info(f"[click] load-more: {s.load_more}")
            return True
        except PlaywrightError as e:
            logger.debug(f"Load-more click failed: {e}")
            return False

    async def reported_total(self) -> Optional[int]:
        s = self.selectors
        if not s.total_selector:
            return None
        try:
            loc = self.page.locator(s.total_selector).first
            if not await loc.count():
                return None
            if s.total_attribute:
                raw = await loc.get_attribute(s.total_attribute)
            else:
                raw = await loc.text_content()
        except PlaywrightError as e:
            logger.debug(f"Reported total unreadable: {e}")
            return None
        return parse_total(raw)


# Installs a MutationObserver on the table body and forwards every added
# <tr> (and the rows already rendered) to the exposed Python binding.
_OBSERVE_ROWS_JS = """
([tbodySel, binding]) => {
  const tbody = document.querySelector(tbodySel);
  if (!tbody) return false;
  const send = (tr) => window[binding](Array.from(tr.querySelectorAll('td')).map(td => (td.textContent || '').trim()));
  tbody.querySelectorAll('tr').forEach(send);
  const observer = new MutationObserver(mutations => {
    for (const m of mutations) {
      for (const node of m.addedNodes) {
        if (node.nodeName === 'TR') send(node);
      }
    }
  });
  observer.observe(tbody, {childList: true});
  window[binding + '_observer'] = observer;
  return true;
}
"""

_DISCONNECT_JS = """
(binding) => {
  const o = window[binding + '_observer'];
  if (o) { o.disconnect(); delete window[binding + '_observer']; }
}
"""

_SCROLLABLE_PARENT_SCROLL_JS = """
([tbodySel, px]) => {
  const tbody = document.querySelector(tbodySel);
  let el = tbody ? tbody.parentElement : null;
  while (el) {
    if (/(auto|scroll)/.test(getComputedStyle(el).overflowY)) { el.scrollBy(0, px); return; }
    el = el.parentElement;
  }
  window.scrollBy(0, px);
}
"""


class PlaywrightRowFeed:
    """
    RowFeed backed by an in-page MutationObserver.

    Rows arrive as lists of cell texts through page.expose_function and are
    queued until the harvester asks for them.
    """

    _instances = 0

    def __init__(self, page: Page, tbody_selector: str = "table tbody",
                 total_selector: str = ".resultats.bold"):
        self.page = page
        self.tbody_selector = tbody_selector
        self.total_selector = total_selector
        self.queue: "asyncio.Queue[List[str]]" = asyncio.Queue()
        PlaywrightRowFeed._instances += 1
        self.binding = f"__walkerRow{PlaywrightRowFeed._instances}"

    def _on_row(self, cells: List[str]) -> None:
        self.queue.put_nowait(list(cells))

    async def open(self) -> None:
        await self.page.expose_function(self.binding, self._on_row)
        installed = await self.page.evaluate(_OBSERVE_ROWS_JS, [self.tbody_selector, self.binding])
        if not installed:
            logger.warning(f"Table body not found: {self.tbody_selector}")

    async def next_row(self, timeout: float) -> Optional[List[str]]:
        try:
            return await asyncio.wait_for(self.queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    async def scroll_by(self, pixels: int) -> None:
        await self.page.evaluate(_SCROLLABLE_PARENT_SCROLL_JS, [self.tbody_selector, pixels])

    async def reported_total(self) -> Optional[int]:
        try:
            loc = self.page.locator(self.total_selector).first
            if not await loc.count():
                return None
            return parse_total(await loc.text_content())
        except PlaywrightError as e:
            logger.debug(f"Reported total unreadable: {e}")
            return None

    async def close(self) -> None:
        try:
            await self.page.evaluate(_DISCONNECT_JS, self.binding)
        except PlaywrightError as e:
            logger.debug(f"Observer disconnect failed: {e}")
