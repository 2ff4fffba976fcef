"""
Durable Traversal Store.

The store holds at most one TraversalState under STATE_KEY. It is read once
when a page loads and written at every transition, which makes it the only
channel between successive page loads and between the control adapters and
the controller.

Backends:
- FileTraversalStore: JSON file on disk; shared with the `walker control` CLI
- SessionStorageTraversalStore: the page's sessionStorage (per tab)
- MemoryTraversalStore: in-process, for tests and dry runs
"""

import json
import os
from pathlib import Path
from typing import Optional
from playwright.async_api import Page
from pydantic import ValidationError

from src.core.error_logger import get_error_logger
from src.core.error_models import ErrorComponent, ErrorSeverity, ErrorStage, ErrorType
from src.core.exceptions import StorageCorrupt
from src.core.logging import get_logger
from src.traversal.state import TraversalState

logger = get_logger(__name__)

STATE_KEY = "walkerTraversalState"


class TraversalStore:
    """
    Base store: parsing, corruption handling and the load/save/clear API.

    Subclasses implement _read_raw, _write_raw and _delete_raw.
    """

    def __init__(self, site: str = "unknown"):
        self.site = site

    async def _read_raw(self) -> Optional[str]:
        raise NotImplementedError

    async def _write_raw(self, raw: str) -> None:
        raise NotImplementedError

    async def _delete_raw(self) -> None:
        raise NotImplementedError

    async def load(self) -> Optional[TraversalState]:
        """
        Read the current state.

        An unparseable record is logged as StorageCorrupt, cleared and
        reported as absent so the next run starts fresh.
        """
        raw = await self._read_raw()
        if raw is None:
            return None
        try:
            return TraversalState.from_json(raw)
        except (ValidationError, ValueError) as e:
            get_error_logger().log_exception(
                StorageCorrupt(f"Unreadable traversal state: {e}"),
                component=ErrorComponent.STORE,
                stage=ErrorStage.LOAD_STATE,
                site=self.site,
                severity=ErrorSeverity.WARNING,
                error_type=ErrorType.STORAGE_CORRUPT,
                metadata={"raw_prefix": raw[:200]},
            )
            await self.clear()
            return None

    async def save(self, state: TraversalState) -> None:
        await self._write_raw(state.to_json())
        logger.debug(f"State saved: {state.summary()}")

    async def clear(self) -> None:
        await self._delete_raw()
        logger.debug("State cleared")


class MemoryTraversalStore(TraversalStore):
    """Keeps the raw JSON in memory."""

    def __init__(self, site: str = "unknown", raw: Optional[str] = None):
        super().__init__(site)
        self.raw = raw

    async def _read_raw(self) -> Optional[str]:
        return self.raw

    async def _write_raw(self, raw: str) -> None:
        self.raw = raw

    async def _delete_raw(self) -> None:
        self.raw = None


class FileTraversalStore(TraversalStore):
    """
    JSON file holding {STATE_KEY: <state>}.

    Writes go through a temporary file and os.replace so a reader never
    sees a half-written record.
    """

    def __init__(self, path: Path, site: str = "unknown"):
        super().__init__(site)
        self.path = Path(path)

    async def _read_raw(self) -> Optional[str]:
        if not self.path.exists():
            return None
        data = self.path.read_bytes()
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            return data.decode("utf-8", errors="replace")  # undecodable, load() reports it as corrupt
        if not text.strip():
            return None
        try:
            doc = json.loads(text)
        except json.JSONDecodeError:
            return text  # let load() report it as corrupt
        if not isinstance(doc, dict):
            return text
        value = doc.get(STATE_KEY)
        if value is None:
            return None
        return json.dumps(value)

    async def _write_raw(self, raw: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            f.write(json.dumps({STATE_KEY: json.loads(raw)}, ensure_ascii=False, indent=2))
        os.replace(tmp, self.path)

    async def _delete_raw(self) -> None:
        if self.path.exists():
            self.path.unlink()


class SessionStorageTraversalStore(TraversalStore):
    """State kept in the page's sessionStorage, scoped to the tab and origin."""

    def __init__(self, page: Page, site: str = "unknown"):
        super().__init__(site)
        self.page = page

    async def _read_raw(self) -> Optional[str]:
        return await self.page.evaluate("(k) => window.sessionStorage.getItem(k)", STATE_KEY)

    async def _write_raw(self, raw: str) -> None:
        await self.page.evaluate("([k, v]) => window.sessionStorage.setItem(k, v)", [STATE_KEY, raw])

    async def _delete_raw(self) -> None:
        await self.page.evaluate("(k) => window.sessionStorage.removeItem(k)", STATE_KEY)
