# src/db/supabase_client.py
import re
from typing import Any, Dict, Optional

from src.core.config import get_config
from src.core.logging import get_logger

logger = get_logger(__name__)

_client = None

_AUTH_CODES = {"401", "403", "PGRST301", "PGRST302", "42501"}
_AUTH_STATUS_RE = re.compile(r"\b(?:401|403)\b")


def _init_client():
    """
    Lazily create a singleton Supabase client.

    Returns:
        client instance or None if disabled / misconfigured.
    """
    global _client
    if _client is not None:
        return _client

    config = get_config()
    if not config.supabase_enabled:
        logger.info("[SUPABASE] disabled via SUPABASE_ENABLED")
        return None

    if not config.supabase_url or not config.supabase_service_role_key:
        logger.warning("[SUPABASE] disabled: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY missing")
        return None

    from supabase import create_client

    _client = create_client(config.supabase_url, config.supabase_service_role_key)
    logger.info(f"[SUPABASE] client initialized for {config.supabase_url}")
    return _client


def get_supabase():
    """Convenience wrapper used by other modules."""
    return _init_client()


def is_auth_rejection(exc: Exception) -> bool:
    """
    True when a Supabase/PostgREST error means the credentials were refused.

    PostgREST errors carry a `code`; HTTP-level failures only show the
    status in their message.
    """
    code = str(getattr(exc, "code", "") or "")
    if code in _AUTH_CODES:
        return True
    details: Optional[Dict[str, Any]] = exc.args[0] if exc.args and isinstance(exc.args[0], dict) else None
    if details and str(details.get("code", "")) in _AUTH_CODES:
        return True
    return bool(_AUTH_STATUS_RE.search(str(exc)))
