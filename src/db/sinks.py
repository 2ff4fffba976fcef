"""
Candidate sinks: where scraped records are delivered.

A sink either stores the record or raises DeliveryFailure. Failures are not
retried here; the item is reported as an error and picked up again by the
next traversal.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from src.core.exceptions import DeliveryFailure
from src.core.logging import get_logger
from src.db.supabase_client import get_supabase, is_auth_rejection
from src.scraping.models import CandidateRecord, CandidateSink

logger = get_logger(__name__)


class SupabaseCandidateSink:
    """
    Upsert candidates into a Supabase table keyed by profile_url.

    Args:
        table: Target table name
        client: Supabase client (default: the shared client from configs/.env)
    """

    def __init__(self, table: str = "candidates", client=None):
        self.table = table
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def deliver(self, record: CandidateRecord) -> None:
        client = self.client
        if client is None:
            raise DeliveryFailure("Supabase is not configured (SUPABASE_ENABLED/URL/KEY)")
        try:
            client.table(self.table).upsert(record.to_row(), on_conflict="profile_url").execute()
        except Exception as e:
            if is_auth_rejection(e):
                raise DeliveryFailure(f"Supabase rejected the credentials: {e}", login_required=True) from e
            raise DeliveryFailure(f"Supabase upsert failed: {e}") from e
        logger.info(f"[SUPABASE] upserted {record.profile_url} into '{self.table}'")


class JsonlCandidateSink:
    """Append candidates to out/candidates_YYYYMMDD.jsonl."""

    def __init__(self, output_dir: Path = Path("out")):
        self.output_dir = Path(output_dir)

    def path_for_today(self) -> Path:
        date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
        return self.output_dir / f"candidates_{date_str}.jsonl"

    def deliver(self, record: CandidateRecord) -> None:
        path = self.path_for_today()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record.to_row(), ensure_ascii=False))
                f.write("\n")
        except OSError as e:
            raise DeliveryFailure(f"Could not write {path}: {e}") from e
        logger.info(f"[jsonl] {record.profile_url} -> {path}")


class MultiSink:
    """Deliver to every sink; the first failure is raised after all were tried."""

    def __init__(self, sinks: List[CandidateSink]):
        self.sinks = sinks

    def deliver(self, record: CandidateRecord) -> None:
        failure: Optional[DeliveryFailure] = None
        for sink in self.sinks:
            try:
                sink.deliver(record)
            except DeliveryFailure as e:
                logger.warning(f"{type(sink).__name__} failed: {e}")
                failure = failure or e
        if failure is not None:
            raise failure
