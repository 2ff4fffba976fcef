"""
Centralized error logging system with Supabase integration.

This module provides a fail-safe error logger that:
- Logs errors to Supabase with structured schema
- Falls back to local JSONL file logging on database failures
- Uses Pydantic validation for type safety
- Follows singleton pattern for global access
"""

import os
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone

from src.core.config import get_config
from src.core.logging import get_logger
from src.core.error_models import (
    ErrorRecord,
    ErrorComponent,
    ErrorSeverity,
    ErrorType,
)

logger = get_logger(__name__)

ERROR_LOG_TABLE = os.getenv("ERROR_LOG_TABLE", "walker_error_logs")
ERROR_LOG_FALLBACK_DIR = Path(os.getenv("ERROR_LOG_FALLBACK_DIR", "logs/errors"))

_error_logger: Optional["ErrorLogger"] = None


class ErrorLogger:
    """
    Centralized error logger with database and file fallback.

    Every record is also mirrored to the standard logger at the matching
    level, so per-item failures show up in the console while a run is
    in progress.

    Usage:
        >>> error_logger = get_error_logger()
        >>> error_logger.log_error(
        ...     component=ErrorComponent.HARVESTER,
        ...     stage=ErrorStage.CLICK_LOAD_MORE,
        ...     error_type=ErrorType.ELEMENT_NOT_FOUND,
        ...     site="hellowork",
        ...     message="Load-more control not rendered",
        ... )
    """

    def __init__(self, fallback_dir: Optional[Path] = None, use_database: bool = True):
        self._client = None
        self._db_available = False
        self._fallback_dir = Path(fallback_dir) if fallback_dir else ERROR_LOG_FALLBACK_DIR
        self._fallback_dir.mkdir(exist_ok=True, parents=True)

        if use_database:
            self._init_database()

    def _init_database(self) -> None:
        """Initialize Supabase client for error logging."""
        config = get_config()
        if not config.supabase_enabled:
            return

        if not config.supabase_url or not config.supabase_service_role_key:
            logger.warning("Error logging: Supabase credentials missing, using file fallback")
            return

        try:
            from supabase import create_client

            self._client = create_client(config.supabase_url, config.supabase_service_role_key)
            self._db_available = True
            logger.info("Error logging initialized with Supabase")
        except Exception as e:
            logger.warning(f"Error logging: Database init failed ({e}), using file fallback")

    def log_error(
        self,
        component: ErrorComponent,
        stage: str,
        error_type: ErrorType,
        site: str,
        message: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log an error record.

        Never raises: falls back to file logging if the database write fails.

        Returns:
            True if logged successfully, False otherwise
        """
        try:
            record = ErrorRecord(
                component=component,
                stage=stage,
                error_type=error_type,
                severity=severity,
                site=site,
                url=url,
                message=message,
                metadata=metadata or {},
            )
            return self._emit(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original error: {message}")
            return False

    def log_exception(
        self,
        exc: Exception,
        component: ErrorComponent,
        stage: str,
        site: str,
        url: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: Optional[ErrorType] = None,
        include_stack_trace: Optional[bool] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Log an exception with automatic classification.

        Convenience wrapper around ErrorRecord.from_exception().

        Example:
            >>> try:
            ...     await navigator.goto(url)
            ... except Exception as e:
            ...     error_logger.log_exception(
            ...         e,
            ...         component=ErrorComponent.TRAVERSAL,
            ...         stage=ErrorStage.NAVIGATE,
            ...         site="linkedin",
            ...         url=url,
            ...     )
        """
        try:
            record = ErrorRecord.from_exception(
                exc=exc,
                component=component,
                stage=stage,
                site=site,
                url=url,
                severity=severity,
                error_type=error_type,
                include_stack_trace=include_stack_trace,
                metadata=metadata,
            )
            return self._emit(record)
        except Exception as e:
            logger.error(f"Error logger failed: {e} - Original exception: {type(exc).__name__}")
            return False

    def _emit(self, record: ErrorRecord) -> bool:
        level = logging.getLevelName(str(record.severity).upper())
        if not isinstance(level, int):
            level = logging.ERROR
        logger.log(level, f"[{record.component}/{record.stage}] {record.error_type}: {record.message}")

        if self._db_available and self._client:
            return self._write_to_database(record)
        return self._write_to_file(record)

    def _write_to_database(self, record: ErrorRecord) -> bool:
        """Write error record to Supabase."""
        try:
            row = record.model_dump(exclude_none=False)
            self._client.table(ERROR_LOG_TABLE).insert(row).execute()
            return True
        except Exception as e:
            logger.warning(f"Database error write failed: {e}, falling back to file")
            return self._write_to_file(record)

    def _write_to_file(self, record: ErrorRecord) -> bool:
        """Append error record to the dated JSONL file."""
        try:
            date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
            file_path = self._fallback_dir / f"errors_{date_str}.jsonl"

            with open(file_path, "a", encoding="utf-8") as f:
                json.dump(record.model_dump(), f)
                f.write("\n")

            return True
        except Exception as e:
            logger.error(f"File error write failed: {e}")
            return False


def get_error_logger() -> ErrorLogger:
    """
    Get the global ErrorLogger instance.

    Returns:
        Global ErrorLogger singleton
    """
    global _error_logger
    if _error_logger is None:
        config = get_config()
        _error_logger = ErrorLogger(fallback_dir=config.log_dir / "errors")
    return _error_logger
