"""Supabase repository for the application snapshot."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import ValidationError
from supabase import Client

from workshop_manager.adapters.snapshot_codec import decode_state, encode_state
from workshop_manager.domain.models import AppState
from workshop_manager.services.store import (
    EMPTY_SNAPSHOT,
    EmptySnapshot,
    SnapshotRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class SupabaseSnapshotRepository(SnapshotRepository):
    """Stores the whole snapshot as one JSON document row."""

    client: Client
    table: str = "storage"
    row_id: str = "global_state"

    def fetch_snapshot(self) -> AppState | EmptySnapshot | None:
        """Return the stored snapshot.

        A missing row, or one without workshops, yields EMPTY_SNAPSHOT.
        Transport and decoding failures are logged and yield None.
        """
        try:
            response = (
                self.client.table(self.table)
                .select("data")
                .eq("id", self.row_id)
                .limit(1)
                .execute()
            )
        except Exception:
            logger.exception("Failed to fetch snapshot row %s", self.row_id)
            return None
        if not response.data:
            return EMPTY_SNAPSHOT
        payload = response.data[0].get("data")
        if not isinstance(payload, dict) or not payload.get("workshops"):
            return EMPTY_SNAPSHOT
        try:
            return decode_state(payload)
        except ValidationError:
            logger.exception("Stored snapshot %s is malformed", self.row_id)
            return None

    def save_snapshot(self, state: AppState) -> bool:
        """Upsert the snapshot row; return False when the write fails."""
        try:
            self.client.table(self.table).upsert(
                {
                    "id": self.row_id,
                    "data": encode_state(state),
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                }
            ).execute()
        except Exception:
            logger.exception("Failed to save snapshot row %s", self.row_id)
            return False
        return True
