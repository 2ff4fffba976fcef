"""
Field extraction from a candidate's item page.

SelectorFieldExtractor reads the fields a SiteProfile declares (text or
attribute, optionally under a shadow host, optionally after clicking a
reveal control) and turns them into a CandidateRecord.
"""

from typing import Awaitable, Callable, Dict, Optional
from playwright.async_api import Page

from src.browser.scope import DocumentScope, Scope
from src.core.exceptions import ElementNotFound, ScopeMissing
from src.core.logging import get_logger
from src.scraping.models import CandidateRecord
from src.sites.profiles import FieldSpec, SiteProfile
from src.traversal.state import SourceTag
from src.utils.text_utils import name_from_title, normalize_french_phone

logger = get_logger(__name__)

ITEM_READY_TIMEOUT_MS = 5000
CLOSE_TIMEOUT_MS = 2000


class SelectorFieldExtractor:
    """
    Extract a CandidateRecord with the selectors of one site.

    Args:
        profile: Site whose field selectors apply
        scope: Document-level scope of the item page
        title: Async callable returning the page title

    Example:
        >>> extractor = SelectorFieldExtractor.from_page(page, HELLOWORK)
        >>> record = await extractor.extract(SourceTag.ANNONCE, page.url)
    """

    def __init__(self, profile: SiteProfile, scope: Scope, title: Callable[[], Awaitable[str]]):
        self.profile = profile
        self.scope = scope
        self.title = title

    @classmethod
    def from_page(cls, page: Page, profile: SiteProfile, timeout_ms: int = 5000) -> "SelectorFieldExtractor":
        return cls(profile, DocumentScope(page, timeout_ms=timeout_ms), page.title)

    async def extract(self, source_tag: Optional[SourceTag], profile_url: str) -> CandidateRecord:
        """
        Read the item page.

        Raises:
            ElementNotFound: A required element never appeared
            ScopeMissing: A required shadow host is absent
            pydantic.ValidationError: The fields do not form a valid record
        """
        if self.profile.item_ready:
            await self.scope.wait_for(self.profile.item_ready, timeout_ms=ITEM_READY_TIMEOUT_MS)

        first, last = await self._read_name()
        values = await self.read_fields()

        email = values.get("email") or self.profile.email_fallback.format(first=first, last=last)
        phone = normalize_french_phone(values.get("phone"))
        if values.get("phone") and phone is None:
            logger.debug(f"[{self.profile.name}] Phone not recognised, dropped: {values.get('phone')!r}")

        return CandidateRecord(
            first_name=first,
            last_name=last,
            email=email,
            phone=phone,
            source=self.profile.name,
            source_tag=source_tag,
            origin_code=self.profile.origin_codes.get(source_tag.value) if source_tag else None,
            profile_url=profile_url,
        )

    async def read_fields(self) -> Dict[str, Optional[str]]:
        """Every configured field; optional ones that are missing map to None."""
        values: Dict[str, Optional[str]] = {}
        for field in self.profile.fields:
            try:
                values[field.name] = await self._read_field(field)
            except (ElementNotFound, ScopeMissing) as e:
                if field.required:
                    raise
                logger.debug(f"[{self.profile.name}] Optional field {field.name} missing: {e}")
                values[field.name] = None
        return values

    async def _read_field(self, field: FieldSpec) -> Optional[str]:
        scope = self.scope.shadow(field.host) if field.host else self.scope
        if field.click:
            await scope.click(field.click)
        value = await scope.read(field.selector, field.attribute)
        if field.close:
            try:
                await scope.click(field.close, timeout_ms=CLOSE_TIMEOUT_MS)
                await scope.wait_gone(field.selector, timeout_ms=CLOSE_TIMEOUT_MS)
            except ElementNotFound as e:
                logger.debug(f"[{self.profile.name}] Could not close {field.name} panel: {e}")
        return value

    async def _read_name(self):
        if self.profile.name_source == "title":
            raw = await self.title()
        else:
            raw = await self.scope.read(self.profile.name_source, "title")
        parsed = name_from_title(raw, self.profile.name_pattern)
        if parsed is None:
            raise ElementNotFound(
                self.profile.name_source, ITEM_READY_TIMEOUT_MS,
                message=f"Candidate name not found in {raw!r}",
            )
        return parsed
