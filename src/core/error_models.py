"""
Pydantic models for structured error logging.

This module defines type-safe error record models with automatic validation
and classification so every component reports failures the same way.
"""

import json
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, ConfigDict

from src.core.exceptions import ElementNotFound, ScopeMissing, StorageCorrupt, DeliveryFailure


class ErrorComponent(str, Enum):
    """System components that can generate errors."""
    HARVESTER = "harvester"
    TRAVERSAL = "traversal"
    SCRAPER = "scraper"
    STORE = "store"
    DELIVERY = "delivery"
    BROWSER = "browser"
    CONFIG = "config"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """Error severity levels matching logging standards."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorType(str, Enum):
    """
    Categorized error types for classification.

    New error types should be added here to keep the taxonomy consistent.
    """
    # Page / DOM
    ELEMENT_NOT_FOUND = "element_not_found"
    SCOPE_MISSING = "scope_missing"
    TIMEOUT = "timeout"
    NAVIGATION_ERROR = "navigation_error"
    BROWSER_ERROR = "browser_error"

    # State
    STORAGE_CORRUPT = "storage_corrupt"

    # Collecting side
    DELIVERY_FAILURE = "delivery_failure"
    LOGIN_REQUIRED = "login_required"

    # Data
    VALIDATION_ERROR = "validation_error"
    PARSE_ERROR = "parse_error"

    # Configuration
    CONFIG_ERROR = "config_error"

    UNKNOWN = "unknown"


class ErrorStage:
    """
    Standardized stage names for error logging.

    Use these constants to ensure consistency across the codebase.
    """
    # Harvesting
    SCAN_VISIBLE = "scan_visible"
    SCROLL_CYCLE = "scroll_cycle"
    CLICK_LOAD_MORE = "click_load_more"
    READ_REPORTED_TOTAL = "read_reported_total"
    OBSERVE_ROWS = "observe_rows"

    # Traversal
    LOAD_STATE = "load_state"
    SAVE_STATE = "save_state"
    NAVIGATE = "navigate"
    PROCESS_ITEM = "process_item"
    PAUSE_POLL = "pause_poll"
    RETURN_TO_ORIGIN = "return_to_origin"

    # Item scraping
    WAIT_FOR_ELEMENT = "wait_for_element"
    EXTRACT_FIELDS = "extract_fields"
    DELIVER_ITEM = "deliver_item"

    # Config
    LOAD_CONFIG = "load_config"


class ErrorRecord(BaseModel):
    """
    Structured error record.

    Validates all error data before logging so that logging itself never
    becomes a second source of failures.
    """
    component: ErrorComponent = Field(..., description="System component")
    stage: str = Field(..., min_length=1, max_length=100, description="Processing stage")
    error_type: ErrorType = Field(..., description="Error category")
    severity: ErrorSeverity = Field(default=ErrorSeverity.ERROR, description="Severity level")
    site: str = Field(..., min_length=1, max_length=100, description="Site profile name")
    message: str = Field(..., min_length=1, description="Human-readable error message")

    url: Optional[str] = Field(None, max_length=2048, description="Page URL if applicable")
    exception_type: Optional[str] = Field(None, max_length=255, description="Exception class name")
    stack_trace: Optional[str] = Field(None, description="Stack trace for unexpected errors")

    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional context")

    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Error timestamp"
    )

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_assignment=True,
        use_enum_values=True,
    )

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        """Normalize the stage name."""
        if not v or not v.strip():
            return "unknown"
        return v.strip().lower().replace(" ", "_")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Ensure message is not empty and bounded."""
        if not v or not v.strip():
            return "No error message provided"
        return v.strip()[:5000]

    @field_validator("metadata")
    @classmethod
    def sanitize_metadata(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Convert non JSON-serializable metadata values to strings."""
        sanitized = {}
        for key, value in v.items():
            try:
                json.dumps(value)
                sanitized[key] = value
            except (TypeError, ValueError):
                sanitized[key] = str(value)
        return sanitized

    @classmethod
    def from_exception(
        cls,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        site: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        include_stack_trace: Optional[bool] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ErrorRecord":
        """
        Create ErrorRecord from an exception with automatic classification.

        Args:
            exc: The exception that occurred
            component: System component where error occurred
            stage: Processing stage
            site: Site profile name
            url: Optional page URL
            severity: Error severity (default: ERROR)
            error_type: Optional explicit error type (auto-detected if None)
            include_stack_trace: Whether to include full stack trace (auto if None)
            metadata: Additional context

        Returns:
            ErrorRecord instance ready for logging

        Example:
            >>> try:
            ...     await scope.wait_for("#contactEmail")
            ... except ElementNotFound as e:
            ...     record = ErrorRecord.from_exception(
            ...         e,
            ...         component=ErrorComponent.SCRAPER,
            ...         stage=ErrorStage.WAIT_FOR_ELEMENT,
            ...         site="hellowork",
            ...     )
        """
        if error_type is None:
            error_type = cls._classify_exception(exc)

        message = str(exc) or f"{type(exc).__name__} occurred"
        exception_type = f"{type(exc).__module__}.{type(exc).__name__}"

        if include_stack_trace is None:
            include_stack_trace = cls._should_include_stack(exc, severity)

        stack_trace = None
        if include_stack_trace:
            stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            if len(stack_trace) > 10000:
                stack_trace = stack_trace[:10000] + "\n... (truncated)"

        return cls(
            component=component,
            stage=stage,
            error_type=error_type,
            severity=severity,
            site=site,
            url=url,
            message=message,
            exception_type=exception_type,
            stack_trace=stack_trace,
            metadata=metadata or {},
        )

    @staticmethod
    def _classify_exception(exc: Exception) -> ErrorType:
        """
        Automatically classify exception into ErrorType.

        Known walker errors map directly; anything else is classified from
        its class name and message.
        """
        if isinstance(exc, ElementNotFound):
            return ErrorType.ELEMENT_NOT_FOUND
        if isinstance(exc, ScopeMissing):
            return ErrorType.SCOPE_MISSING
        if isinstance(exc, StorageCorrupt):
            return ErrorType.STORAGE_CORRUPT
        if isinstance(exc, DeliveryFailure):
            return ErrorType.DELIVERY_FAILURE

        exc_name = type(exc).__name__.lower()
        exc_msg = str(exc).lower()

        if "validation" in exc_name:
            return ErrorType.VALIDATION_ERROR
        if "timeout" in exc_name or "timeout" in exc_msg:
            return ErrorType.TIMEOUT
        if "json" in exc_name or "parse" in exc_name:
            return ErrorType.PARSE_ERROR
        if "playwright" in exc_name or "browser" in exc_name or "target" in exc_name:
            return ErrorType.BROWSER_ERROR
        if "navigation" in exc_msg or "net::" in exc_msg:
            return ErrorType.NAVIGATION_ERROR

        return ErrorType.UNKNOWN

    @staticmethod
    def _should_include_stack(exc: Exception, severity: ErrorSeverity) -> bool:
        """
        Decide whether the stack trace is worth keeping.

        Expected page-level errors don't need stacks; unexpected ones do.
        """
        if severity == ErrorSeverity.CRITICAL:
            return True

        if severity in (ErrorSeverity.WARNING, ErrorSeverity.INFO, ErrorSeverity.DEBUG):
            return False

        expected = (ElementNotFound, ScopeMissing, StorageCorrupt, DeliveryFailure, TimeoutError, ValueError)
        return not isinstance(exc, expected)
