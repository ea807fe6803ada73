from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import Database
from app.database.models import HistoryRecord


class HistoryRepository:
    """Database operations for the classification_history table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def add(self, user_id: str, job_id: str, entry: dict[str, Any]) -> int:
        """Insert a history entry and return its id."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO classification_history (user_id, job_id, entry)
                    VALUES (%s, %s, %s)
                    RETURNING id
                    """,
                    (user_id, job_id, Jsonb(entry)),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError(
                f"Insert into classification_history returned no id for job {job_id}"
            )
        return int(row[0])

    def list_for_user(self, user_id: str) -> list[HistoryRecord]:
        """Return a user's history, newest first."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, user_id, job_id, entry, created_at
                    FROM classification_history
                    WHERE user_id = %s
                    ORDER BY created_at DESC, id DESC
                    """,
                    (user_id,),
                )
                rows = cur.fetchall()
        return [
            HistoryRecord(
                id=row["id"],
                user_id=row["user_id"],
                job_id=row["job_id"],
                entry=row["entry"],
                created_at=row["created_at"],
            )
            for row in rows
        ]
