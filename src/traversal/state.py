"""
The durable traversal record.

One TraversalState exists at a time. It is persisted as JSON with camelCase
keys under a single well-known key and is the only thing that survives a
page load: every transition produces a new copy which is written back to the
store.
"""

from enum import Enum
from typing import Optional, Sequence, Tuple
from pydantic import BaseModel, ConfigDict, Field, model_validator


class SourceTag(str, Enum):
    """Campaign classification forwarded to extraction."""
    ANNONCE = "annonce"  # job-posting applicants
    CHASSE = "chasse"  # headhunted profiles


class StopReason(str, Enum):
    LOGIN_REQUIRED = "login_required"
    USER_STOP = "user_stop"


class TraversalState(BaseModel):
    """
    Persisted traversal record.

    Invariants:
        items is fixed at creation and never reordered
        0 <= cursor < len(items) while in_progress
        in_progress=False is terminal; the next reader clears the store
    """

    in_progress: bool = Field(True, alias="inProgress")
    is_paused: bool = Field(False, alias="isPaused")
    items: Tuple[str, ...] = Field(..., min_length=1)
    cursor: int = Field(0, ge=0)
    origin_page: str = Field(..., alias="originPage", min_length=1)
    source_tag: Optional[SourceTag] = Field(None, alias="sourceTag")
    stop_reason: Optional[StopReason] = Field(None, alias="stopReason")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @model_validator(mode="after")
    def _check_cursor(self) -> "TraversalState":
        if self.in_progress and self.cursor >= len(self.items):
            raise ValueError(f"cursor {self.cursor} out of range for {len(self.items)} items")
        return self

    @classmethod
    def create(cls, items: Sequence[str], origin_page: str,
               source_tag: Optional[SourceTag] = None) -> "TraversalState":
        """Fresh in-progress state positioned on the first item."""
        return cls(
            in_progress=True,
            is_paused=False,
            items=tuple(items),
            cursor=0,
            origin_page=origin_page,
            source_tag=source_tag,
        )

    @property
    def current_item(self) -> str:
        return self.items[min(self.cursor, len(self.items) - 1)]

    @property
    def has_next(self) -> bool:
        return self.cursor + 1 < len(self.items)

    def advanced(self) -> "TraversalState":
        """Copy with the cursor on the next item."""
        return self.model_copy(update={"cursor": self.cursor + 1})

    def with_pause(self, paused: bool) -> "TraversalState":
        return self.model_copy(update={"is_paused": paused})

    def stopped(self, reason: StopReason) -> "TraversalState":
        return self.model_copy(update={"in_progress": False, "is_paused": False, "stop_reason": reason})

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: str) -> "TraversalState":
        return cls.model_validate_json(raw)

    def summary(self) -> str:
        status = "in progress" if self.in_progress else f"stopped ({self.stop_reason.value if self.stop_reason else 'done'})"
        paused = ", paused" if self.is_paused else ""
        return f"{status}{paused}: item {self.cursor + 1}/{len(self.items)} from {self.origin_page}"
