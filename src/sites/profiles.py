"""
Per-site profiles.

A SiteProfile gathers everything that differs between recruiter sites:
page classification rules, list selectors, harvesting thresholds, item
field selectors and the origin codes forwarded with each record.

Harvest thresholds are deliberately kept per site. The two sites were
tuned independently and nothing says their numbers should match.
"""

from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator


class PageRule(BaseModel):
    """
    One URL-matching rule.

    A URL matches when it starts with url_prefix, contains path_fragment,
    contains query_marker (if set) and does not contain exclude_fragment
    (if set). Matching is done on the raw URL string.
    """
    url_prefix: str = Field(..., min_length=1)
    path_fragment: str = ""
    query_marker: Optional[str] = None
    exclude_fragment: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def matches(self, url: str) -> bool:
        if not url.startswith(self.url_prefix):
            return False
        if self.path_fragment and self.path_fragment not in url:
            return False
        if self.query_marker and self.query_marker not in url:
            return False
        if self.exclude_fragment and self.exclude_fragment in url:
            return False
        return True


class HarvestSettings(BaseModel):
    """Harvesting thresholds and pacing ranges for one site."""
    default_max_items: int = Field(50, gt=0)
    trigger_threshold: int = Field(15, gt=0)
    max_scroll_attempts: int = Field(200, gt=0)
    max_idle_scrolls: int = Field(10, gt=0)

    # pacing (milliseconds unless stated otherwise)
    burst_size: Tuple[int, int] = (3, 10)
    increment_fraction: Tuple[float, float] = (0.20, 0.30)
    micro_delay_ms: Tuple[int, int] = (50, 150)
    reading_pause_ms: Tuple[int, int] = (300, 1200)
    settle_delay_ms: Tuple[int, int] = (500, 1000)
    bottom_tolerance_px: int = 10

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_ranges(self) -> "HarvestSettings":
        for name in ("burst_size", "increment_fraction", "micro_delay_ms", "reading_pause_ms", "settle_delay_ms"):
            lo, hi = getattr(self, name)
            if lo < 0 or hi < lo:
                raise ValueError(f"{name} must be a non-negative (low, high) range, got {(lo, hi)}")
        return self


class ListSelectors(BaseModel):
    """Where the candidate list lives in the list page DOM."""
    card: str
    link: str
    list_host: Optional[str] = None
    card_has_shadow: bool = False
    load_more: Optional[str] = None
    load_more_host: Optional[str] = None
    load_more_disabled_attr: Optional[str] = None
    total_selector: Optional[str] = None
    total_attribute: Optional[str] = None
    list_ready: Optional[str] = None
    scroll_container: Optional[str] = None


class FieldSpec(BaseModel):
    """
    One field read from an item page.

    attribute=None reads the element text. host names a shadow host the
    selector lives under. click selects a control to activate first (also
    resolved under host) and close an optional control to dismiss after.
    """
    name: str
    selector: str
    attribute: Optional[str] = None
    host: Optional[str] = None
    click: Optional[str] = None
    close: Optional[str] = None
    required: bool = False


class SiteProfile(BaseModel):
    """Everything site-specific the walker needs."""
    name: str
    list_rules: List[PageRule]
    item_rules: List[PageRule]
    selectors: ListSelectors
    harvest: HarvestSettings = Field(default_factory=HarvestSettings)

    # item page
    item_ready: Optional[str] = None
    fields: List[FieldSpec] = Field(default_factory=list)
    name_source: str = "title"  # "title" or a selector whose title attribute holds the name
    name_pattern: str = r"^(.+?)\s+-\s"
    email_fallback: str = "{first}_{last}@{site}.com"
    origin_codes: Dict[str, str] = Field(default_factory=dict)

    # identifiers
    volatile_params: Optional[List[str]] = None  # None strips the whole query string

    model_config = ConfigDict(frozen=True)


HELLOWORK_BASE = "https://app-recruteur.hellowork.com"
LINKEDIN_BASE = "https://www.linkedin.com/talent/hire/"


HELLOWORK = SiteProfile(
    name="hellowork",
    list_rules=[
        PageRule(url_prefix=f"{HELLOWORK_BASE}/campaign/detail/", query_marker="searchGuid="),
    ],
    item_rules=[
        PageRule(url_prefix=f"{HELLOWORK_BASE}/applicant/detail/"),
    ],
    selectors=ListSelectors(
        list_host="#result-list",
        card="article > div.result-items.virtualizer > applicant-card",
        card_has_shadow=True,
        link='a[href*="/applicant/detail/"]',
        load_more_host="#result-list",
        load_more="article > div.pagination > hw-button",
        total_selector="applicant-result#result-list",
        total_attribute="nbresult",
        list_ready=".filters.filters-columns.filters-min-width",
    ),
    harvest=HarvestSettings(
        default_max_items=50,
        trigger_threshold=15,
        max_scroll_attempts=300,
        max_idle_scrolls=12,
    ),
    item_ready="#documentViewer",
    fields=[
        FieldSpec(
            name="email",
            host="#tools > contact-workflow",
            click="#contactEmail",
            selector="#emailToApplicant",
            attribute="to",
            close="#close",
        ),
        FieldSpec(
            name="phone",
            host="#tools > contact-workflow",
            click="hw-button#contactTel",
            selector="tel-contact#telContact",
            attribute="tel",
        ),
    ],
    name_source="title",
    name_pattern=r"^(.+?)\s+-\s",
    email_fallback="{first}_{last}@hellowork.com",
    origin_codes={"annonce": "17", "chasse": "14"},
)


LINKEDIN = SiteProfile(
    name="linkedin",
    list_rules=[
        PageRule(url_prefix=LINKEDIN_BASE, path_fragment="/manage/all", exclude_fragment="/profile/"),
        PageRule(url_prefix=LINKEDIN_BASE, path_fragment="/discover/applicants?jobId", exclude_fragment="/profile/"),
    ],
    item_rules=[
        PageRule(url_prefix=LINKEDIN_BASE, path_fragment="/manage/all/profile/"),
        PageRule(url_prefix=LINKEDIN_BASE, path_fragment="/discover/applicants/profile/"),
    ],
    selectors=ListSelectors(
        card="ol[data-test-paginated-list] li div[data-test-paginated-list-item]",
        link="a",
        load_more="a[data-test-pagination-next]",
        load_more_disabled_attr="aria-disabled",
        list_ready="ol[data-test-paginated-list]",
    ),
    harvest=HarvestSettings(
        default_max_items=25,
        trigger_threshold=25,
        max_scroll_attempts=150,
        max_idle_scrolls=6,
        burst_size=(5, 10),
        increment_fraction=(0.10, 0.20),
        micro_delay_ms=(20, 60),
        reading_pause_ms=(300, 1200),
        settle_delay_ms=(500, 1000),
    ),
    item_ready="button[title^='Ajouter une note sur'], button[title^='Add Note about']",
    fields=[
        FieldSpec(name="email", selector="span[data-test-contact-email-address]"),
        FieldSpec(name="phone", selector="span[data-test-contact-phone][data-live-test-contact-phone]"),
    ],
    name_source="button[title^='Ajouter une note sur'], button[title^='Add Note about']",
    name_pattern=r"^(?:Ajouter une note sur|Add Note about) (.+)$",
    email_fallback="@linkedin.com {first}_{last}",
    origin_codes={"annonce": "4", "chasse": "11"},
    volatile_params=["trk", "rightRail", "start"],
)


SITE_PROFILES: Dict[str, SiteProfile] = {
    HELLOWORK.name: HELLOWORK,
    LINKEDIN.name: LINKEDIN,
}


def get_profile(name: str) -> SiteProfile:
    """
    Look up a site profile by name.

    Raises:
        KeyError: If no profile exists for the name
    """
    try:
        return SITE_PROFILES[name]
    except KeyError:
        raise KeyError(f"Unknown site {name!r}; expected one of {sorted(SITE_PROFILES)}") from None
