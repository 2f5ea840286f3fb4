from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from lingocards.config import settings
from lingocards.db.database import get_conn
from lingocards.models.entry import DictionaryEntry

logger = logging.getLogger(__name__)


class NotebookCorruptError(Exception):
    pass


class NotebookRepo:
    """Stores the whole notebook as one JSON document in kv_store.

    Reads happen once at startup; every write replaces the document.
    """

    def __init__(self, key: str | None = None, db_path: Path | None = None):
        self.key = key or settings.NOTEBOOK_KEY
        self.db_path = db_path

    def load(self) -> List[DictionaryEntry]:
        with get_conn(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (self.key,)).fetchone()
        if not row:
            return []
        try:
            items = json.loads(row["value"])
            if not isinstance(items, list):
                raise ValueError("Notebook document must be a list.")
            entries = [DictionaryEntry.from_dict(it) for it in items]
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            raise NotebookCorruptError(f"Stored notebook under {self.key!r} is unreadable: {e}") from e
        logger.info("Loaded %d notebook entries", len(entries))
        return entries

    def save(self, entries: List[DictionaryEntry]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        payload = json.dumps([e.to_dict() for e in entries], ensure_ascii=False)
        with get_conn(self.db_path) as conn:
            conn.execute(
                """INSERT INTO kv_store (key, value, updated_at)
                     VALUES (?, ?, ?)
                     ON CONFLICT(key)
                     DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at""",
                (self.key, payload, now),
            )
        logger.debug("Persisted %d notebook entries", len(entries))
