"""
Exception types for candidate-walker.

Every failure the traversal knows how to recover from derives from
WalkerError, so callers can separate expected page-level problems
from programming errors.

Policy per type:
- ElementNotFound: recoverable, aborts the current item's extraction only
- ScopeMissing: fatal for the current item, which is skipped
- StorageCorrupt: the persisted state is treated as absent
- DeliveryFailure: not retried, left for the next traversal
"""

from typing import Optional


class WalkerError(Exception):
    """Base class for all candidate-walker errors."""


class ElementNotFound(WalkerError):
    """A wait-for-appearance (or disappearance) timed out."""

    def __init__(self, selector: str, timeout_ms: int, message: Optional[str] = None):
        self.selector = selector
        self.timeout_ms = timeout_ms
        super().__init__(message or f"Timeout: element {selector!r} not found after {timeout_ms}ms")


class ScopeMissing(WalkerError):
    """An expected nested DOM scope (shadow root) is absent."""

    def __init__(self, host_selector: str):
        self.host_selector = host_selector
        super().__init__(f"Shadow scope not found: {host_selector!r}")


class StorageCorrupt(WalkerError):
    """The persisted traversal state could not be parsed."""


class DeliveryFailure(WalkerError):
    """Reporting a scraped item to the collecting side failed."""

    def __init__(self, message: str, login_required: bool = False):
        self.login_required = login_required
        super().__init__(message)
