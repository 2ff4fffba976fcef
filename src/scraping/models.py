"""
Pydantic models for item extraction results.
"""

from enum import Enum
from typing import Any, Dict, Optional, Protocol
from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.traversal.state import SourceTag


class ScrapeStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    LOGIN_REQUIRED = "login_required"


class ScrapeResult(BaseModel):
    """Outcome of scraping one item page."""

    status: ScrapeStatus
    fields: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def success(cls, fields: Dict[str, Any]) -> "ScrapeResult":
        return cls(status=ScrapeStatus.SUCCESS, fields=fields)

    @classmethod
    def failed(cls, error: str) -> "ScrapeResult":
        return cls(status=ScrapeStatus.ERROR, error=error)

    @classmethod
    def login_required(cls, error: Optional[str] = None) -> "ScrapeResult":
        return cls(status=ScrapeStatus.LOGIN_REQUIRED, error=error)


class ItemScraper(Protocol):
    """Extract (and deliver) the item on the current page; called once per item."""

    async def scrape(self, source_tag: Optional[SourceTag]) -> ScrapeResult: ...


class CandidateRecord(BaseModel):
    """
    One candidate as delivered to a sink.

    Attributes:
        first_name, last_name: Parsed display name
        email: Contact email, or the site's placeholder when hidden
        phone: French national format (0XXXXXXXXX) or None
        source: Site name (hellowork, linkedin)
        source_tag: Campaign classification (annonce, chasse)
        origin_code: Site-specific code for the source tag
        profile_url: Normalized item identifier, unique per candidate
    """

    first_name: str = Field(..., min_length=1, max_length=200)
    last_name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=320)
    phone: Optional[str] = Field(None, pattern=r"^0[1-9]\d{8}$")
    source: str = Field(..., min_length=1)
    source_tag: Optional[SourceTag] = None
    origin_code: Optional[str] = None
    profile_url: str = Field(..., min_length=1)

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def blank_email_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    def to_row(self) -> Dict[str, Any]:
        """Row for a database upsert or a JSONL line."""
        return self.model_dump()


class CandidateSink(Protocol):
    """Receives delivered candidates; raises DeliveryFailure on failure."""

    def deliver(self, record: CandidateRecord) -> None: ...
