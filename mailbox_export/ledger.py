"""SQLite-backed record of every file an export wrote."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Optional

import sqlite_utils


class ExportLedger:
    """Append one row per written message or attachment file.

    Rows are keyed by path and replaced on re-export, mirroring the silent
    overwrite of the file itself.
    """

    TABLE = "exported_items"

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.db = sqlite_utils.Database(str(db_path))
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        self.db[self.TABLE].create(
            {
                "path": str,
                "owner": str,
                "internet_message_id": str,
                "message_id": str,
                "attachment_name": str,
                "checksum": str,
                "size": int,
                "exported_at": str,
            },
            pk="path",
            if_not_exists=True,
        )

    def record(
        self,
        *,
        path: Path,
        owner: str,
        internet_message_id: str,
        message_id: str,
        checksum: str,
        size: int,
        attachment_name: Optional[str] = None,
    ) -> None:
        self.db[self.TABLE].upsert(
            {
                "path": str(path),
                "owner": owner,
                "internet_message_id": internet_message_id,
                "message_id": message_id,
                "attachment_name": attachment_name,
                "checksum": checksum,
                "size": size,
                "exported_at": datetime.now(tz=UTC).isoformat(),
            },
            pk="path",
        )

    def entries_for(self, internet_message_id: str) -> list[dict]:
        return list(
            self.db[self.TABLE].rows_where(
                "internet_message_id = ?", [internet_message_id], order_by="rowid"
            )
        )
