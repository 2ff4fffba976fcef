"""
Delivery of scraped candidates.

- Supabase client (shared with the error logger settings)
- Sinks: Supabase upsert, dated JSONL files
"""

from src.db.supabase_client import (
    get_supabase,
    is_auth_rejection,
)

from src.db.sinks import (
    SupabaseCandidateSink,
    JsonlCandidateSink,
    MultiSink,
)

__all__ = [
    # Client functions
    "get_supabase",
    "is_auth_rejection",
    # Sinks
    "SupabaseCandidateSink",
    "JsonlCandidateSink",
    "MultiSink",
]
