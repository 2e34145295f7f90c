from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from src.models.document import PolicySummary, StoredPolicy
from src.models.policy import PolicyVariant


class PolicyStore:
    """Persists policy trees (heading plus wire-form sections) in SQLite."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._ensure_parent()
        self._initialize()

    def _ensure_parent(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize(self) -> None:
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS policies (
                    id TEXT PRIMARY KEY,
                    variant TEXT NOT NULL,
                    heading TEXT NOT NULL,
                    sections TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )

    # ------------------------------------------------------------------ policy CRUD
    def upsert_policy(
        self,
        *,
        policy_id: str,
        heading: str,
        sections: Sequence[Dict[str, Any]],
        variant: PolicyVariant = PolicyVariant.SAVED,
        created_at: Optional[datetime] = None,
    ) -> datetime:
        """Insert or replace a policy tree, keeping the original ``created_at``; returns ``updated_at``."""

        now = datetime.now(timezone.utc)
        created = (created_at or now).isoformat(timespec="microseconds")
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO policies(id, variant, heading, sections, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    variant=excluded.variant,
                    heading=excluded.heading,
                    sections=excluded.sections,
                    updated_at=excluded.updated_at
                """,
                (
                    policy_id,
                    variant.value,
                    heading,
                    json.dumps(list(sections), ensure_ascii=False),
                    created,
                    now.isoformat(timespec="microseconds"),
                ),
            )
        return now

    def get_policy(self, policy_id: str) -> Optional[StoredPolicy]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM policies WHERE id = ?",
                (policy_id,),
            ).fetchone()
        if not row:
            return None
        return self._row_to_policy(row)

    def list_policies(self) -> List[PolicySummary]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, variant, created_at, updated_at,
                       json_array_length(sections) AS section_count
                FROM policies
                ORDER BY updated_at DESC, id
                """
            ).fetchall()
        return [
            PolicySummary(
                id=row["id"],
                variant=PolicyVariant(row["variant"]),
                section_count=int(row["section_count"] or 0),
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
            for row in rows
        ]

    def delete_policy(self, policy_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM policies WHERE id = ?", (policy_id,))
        return cursor.rowcount > 0

    def delete_all(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM policies")

    # ------------------------------------------------------------------ helpers
    @staticmethod
    def _row_to_policy(row: sqlite3.Row) -> StoredPolicy:
        return StoredPolicy(
            id=row["id"],
            variant=PolicyVariant(row["variant"]),
            heading=row["heading"],
            sections=json.loads(row["sections"] or "[]"),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


__all__ = ["PolicyStore"]
