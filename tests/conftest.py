"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all tests in the test suite. Browser-facing code is exercised through
the in-memory fakes defined here; no test opens a real browser.
"""

import pytest
from pathlib import Path
from typing import Dict, List, Optional

from src.browser.jitter import JitterPolicy
from src.browser.surfaces import ScrollState
from src.core.error_logger import ErrorLogger
from src.scraping.models import ScrapeResult
from src.sites.profiles import HELLOWORK, LINKEDIN, SiteProfile
from src.traversal.state import TraversalState
from src.traversal.store import MemoryTraversalStore


HW = "https://app-recruteur.hellowork.com"
HW_LIST = f"{HW}/campaign/detail/9001?searchGuid=abc-123"


def hw_item(n: int, query: str = "") -> str:
    return f"{HW}/applicant/detail/{n}{query}"


# ============================================================================
# Paths and Directories
# ============================================================================

@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def test_output_dir(tmp_path: Path) -> Path:
    """Create a temporary output directory for tests."""
    output_dir = tmp_path / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture(autouse=True)
def isolated_error_logger(tmp_path: Path, monkeypatch) -> ErrorLogger:
    """Route error records to a temp dir instead of Supabase or ./logs."""
    import src.core.error_logger as error_logger_module

    logger = ErrorLogger(fallback_dir=tmp_path / "errors", use_database=False)
    monkeypatch.setattr(error_logger_module, "_error_logger", logger)
    return logger


# ============================================================================
# Profiles and State
# ============================================================================

@pytest.fixture
def hellowork() -> SiteProfile:
    return HELLOWORK


@pytest.fixture
def linkedin() -> SiteProfile:
    return LINKEDIN


@pytest.fixture
def four_item_state() -> TraversalState:
    """In-progress traversal of four HelloWork applicants."""
    return TraversalState.create([hw_item(n) for n in range(1, 5)], origin_page=HW_LIST)


@pytest.fixture
def memory_store() -> MemoryTraversalStore:
    return MemoryTraversalStore(site="hellowork")


@pytest.fixture
def instant_jitter() -> JitterPolicy:
    return JitterPolicy.instant()


CONFIG_KEYS = [
    "WALKER_SITE", "WALKER_HEADLESS", "WALKER_USER_DATA_DIR", "NAV_TIMEOUT_MS", "NAV_MAX_RETRIES",
    "ELEMENT_TIMEOUT_MS", "STATE_FILE", "PAUSE_POLL_INTERVAL_S", "DEFAULT_SOURCE_TAG",
    "SUPABASE_ENABLED", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_CANDIDATES_TABLE",
    "LOG_LEVEL", "LOG_DIR", "OUTPUT_DIR",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Unset every config variable; monkeypatch restores them afterwards."""
    for key in CONFIG_KEYS:
        # setenv first so values loaded from a .env file are undone too
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


# ============================================================================
# Fakes
# ============================================================================

class RecordingSleep:
    """Awaitable sleep that returns at once and remembers every delay."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeListSurface:
    """
    Virtualized list of fixed-height cards.

    Only cards intersecting the viewport are "rendered". `loaded` cards exist
    in the list; clicking load-more appends `page_size` more while
    `has_load_more` is set. `frozen` makes scrolling a no-op.
    """

    def __init__(self, refs: List[str], item_height: int = 100, viewport: int = 500,
                 loaded: Optional[int] = None, page_size: Optional[int] = None,
                 has_load_more: bool = False, frozen: bool = False, total: Optional[int] = None):
        self.refs = list(refs)
        self.item_height = item_height
        self.viewport = viewport
        self.loaded = len(self.refs) if loaded is None else loaded
        self.page_size = page_size or len(self.refs)
        self.has_load_more = has_load_more
        self.frozen = frozen
        self.total = total
        self.position = 0
        self.scroll_calls = 0
        self.load_more_clicks = 0

    @property
    def max_position(self) -> int:
        return max(0, self.loaded * self.item_height - self.viewport)

    async def visible_refs(self) -> List[str]:
        out = []
        for i in range(self.loaded):
            top = i * self.item_height - self.position
            if top + self.item_height > 0 and top < self.viewport:
                out.append(self.refs[i])
        return out

    async def viewport_height(self) -> int:
        return self.viewport

    async def scroll_by(self, pixels: int) -> None:
        self.scroll_calls += 1
        if not self.frozen:
            self.position = min(self.position + pixels, self.max_position)

    async def scroll_to_top(self) -> None:
        self.position = 0

    async def scroll_state(self) -> ScrollState:
        return ScrollState(self.position, self.position >= self.max_position - 10)

    async def click_load_more(self) -> bool:
        if not self.has_load_more or self.loaded >= len(self.refs):
            return False
        self.load_more_clicks += 1
        self.loaded = min(len(self.refs), self.loaded + self.page_size)
        return True

    async def reported_total(self) -> Optional[int]:
        return self.total


class FakeNavigator:
    """Records navigations; every goto succeeds unless listed in `failing`."""

    def __init__(self, url: str = HW_LIST, failing: Optional[set] = None):
        self.url = url
        self.visits: List[str] = []
        self.failing = failing or set()

    @property
    def current_url(self) -> str:
        return self.url

    async def goto(self, url: str) -> bool:
        if url in self.failing:
            return False
        self.visits.append(url)
        self.url = url
        return True


class FakeNotifier:
    def __init__(self):
        self.messages: List[str] = []

    async def notify(self, message: str) -> None:
        self.messages.append(message)


class FakeScraper:
    """
    Scripted item scraper.

    `results` maps the 1-based call number to a ScrapeResult (or an exception
    to raise); other calls succeed. `on_call` runs after each call, before the
    result is returned, to simulate control signals arriving mid-item.
    """

    def __init__(self, results: Optional[Dict[int, object]] = None, on_call=None):
        self.results = results or {}
        self.on_call = on_call
        self.calls = 0
        self.tags: List[object] = []

    async def scrape(self, source_tag):
        self.calls += 1
        self.tags.append(source_tag)
        if self.on_call is not None:
            await self.on_call(self.calls)
        outcome = self.results.get(self.calls, ScrapeResult.success({"n": self.calls}))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeScope:
    """
    Scope over a dict of selector -> element.

    An element is a dict with optional "text" and attribute keys. Shadow
    hosts are nested FakeScopes in `shadows`. Clicking a selector listed in
    `reveals` makes the revealed elements appear.
    """

    def __init__(self, elements: Optional[Dict[str, Dict[str, str]]] = None,
                 shadows: Optional[Dict[str, "FakeScope"]] = None,
                 reveals: Optional[Dict[str, Dict[str, Dict[str, str]]]] = None):
        self.elements = dict(elements or {})
        self.shadows = shadows or {}
        self.reveals = reveals or {}
        self.clicked: List[str] = []

    def shadow(self, host_selector: str):
        from src.core.exceptions import ScopeMissing

        if host_selector not in self.shadows:
            return _MissingScope(ScopeMissing(host_selector))
        return self.shadows[host_selector]

    async def wait_for(self, selector: str, timeout_ms: Optional[int] = None):
        from src.core.exceptions import ElementNotFound

        if selector not in self.elements:
            raise ElementNotFound(selector, timeout_ms or 0)
        return self.elements[selector]

    async def wait_gone(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        self.elements.pop(selector, None)

    async def read(self, selector: str, attribute: Optional[str] = None, timeout_ms: Optional[int] = None):
        element = await self.wait_for(selector, timeout_ms)
        value = element.get(attribute or "text")
        return value.strip() if value else None

    async def click(self, selector: str, timeout_ms: Optional[int] = None) -> None:
        await self.wait_for(selector, timeout_ms)
        self.clicked.append(selector)
        self.elements.update(self.reveals.get(selector, {}))


class _MissingScope:
    """Scope whose host is absent: every access raises ScopeMissing."""

    def __init__(self, exc):
        self.exc = exc

    def shadow(self, host_selector: str):
        return self

    async def wait_for(self, *args, **kwargs):
        raise self.exc

    async def wait_gone(self, *args, **kwargs):
        raise self.exc

    async def read(self, *args, **kwargs):
        raise self.exc

    async def click(self, *args, **kwargs):
        raise self.exc


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def mock_supabase_client():
    """Minimal Supabase client double recording upserts."""
    class MockTable:
        def __init__(self):
            self.data = []
            self.error: Optional[Exception] = None

        def upsert(self, rows, on_conflict=None):
            self.on_conflict = on_conflict
            if isinstance(rows, dict):
                rows = [rows]
            self.pending = rows
            return self

        def insert(self, rows):
            return self.upsert(rows)

        def execute(self):
            if self.error is not None:
                raise self.error
            self.data.extend(self.pending)

            class Result:
                def __init__(self, data):
                    self.data = data
            return Result(self.pending)

    class MockClient:
        def __init__(self):
            self.tables = {}

        def table(self, name: str):
            if name not in self.tables:
                self.tables[name] = MockTable()
            return self.tables[name]

    return MockClient()


# ============================================================================
# Test Markers
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
