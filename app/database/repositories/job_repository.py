from datetime import datetime
from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.batch.base import BaseJobStore
from app.batch.models import ACTIVE_STATUSES
from app.database.connection import Database
from app.database.models import JobPatch, JobRecord

_JOB_COLUMNS = """
    id, user_id, status, provider_job_id, provider_status, image_url,
    image_name, metadata, result, error, created_at, updated_at,
    processing_started_at, completed_at, failed_at
"""

_STAMP_COLUMNS = frozenset({"processing_started_at", "completed_at", "failed_at"})
_JSON_COLUMNS = frozenset({"result"})


class JobRepository(BaseJobStore):
    """Database operations for the ai_jobs table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def list_active(self) -> list[JobRecord]:
        """Return every queued or processing job, oldest first."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_JOB_COLUMNS}
                    FROM ai_jobs
                    WHERE status = ANY(%s)
                    ORDER BY created_at
                    """,
                    (list(ACTIVE_STATUSES),),
                )
                rows = cur.fetchall()
        return [_to_record(row) for row in rows]

    def find_by_id(self, job_id: str) -> JobRecord | None:
        """Find a job by ID."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_JOB_COLUMNS} FROM ai_jobs WHERE id = %s",
                    (job_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_record(row)

    def update(self, job_id: str, patch: JobPatch) -> None:
        """Apply a partial update. Stamp columns keep their first value."""
        fields = patch.fields()
        if not fields and not patch.clear:
            return

        assignments = [sql.SQL("updated_at = NOW()")]
        params: list[Any] = []
        for column, value in fields.items():
            if column in _STAMP_COLUMNS:
                assignments.append(
                    sql.SQL("{col} = COALESCE({col}, %s)").format(col=sql.Identifier(column))
                )
            else:
                assignments.append(sql.SQL("{col} = %s").format(col=sql.Identifier(column)))
            params.append(Jsonb(value) if column in _JSON_COLUMNS else value)
        for column in sorted(patch.clear):
            assignments.append(sql.SQL("{col} = NULL").format(col=sql.Identifier(column)))
        params.append(job_id)

        query = sql.SQL("UPDATE ai_jobs SET {assignments} WHERE id = %s").format(
            assignments=sql.SQL(", ").join(assignments)
        )
        with self._db.connection() as conn:
            conn.execute(query, params)
            conn.commit()

    def count_by_status_since(self, since: datetime) -> dict[str, int]:
        """Count jobs created at or after `since`, grouped by status."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT status, COUNT(*) AS count
                    FROM ai_jobs
                    WHERE created_at >= %s
                    GROUP BY status
                    """,
                    (since,),
                )
                rows = cur.fetchall()
        return {row["status"]: int(row["count"]) for row in rows}


def _to_record(row: dict[str, Any]) -> JobRecord:
    return JobRecord(
        id=row["id"],
        user_id=row["user_id"],
        status=row["status"],
        provider_job_id=row["provider_job_id"],
        provider_status=row["provider_status"],
        image_url=row["image_url"],
        image_name=row["image_name"],
        metadata=row["metadata"] or {},
        result=row["result"],
        error=row["error"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        processing_started_at=row["processing_started_at"],
        completed_at=row["completed_at"],
        failed_at=row["failed_at"],
    )
