from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

CLEARABLE_COLUMNS = frozenset({"result", "error", "completed_at", "failed_at"})


@dataclass
class JobRecord:
    """Represents a row from the ai_jobs table."""

    id: str
    user_id: str
    status: str
    provider_job_id: str | None = None
    provider_status: str | None = None
    image_url: str | None = None
    image_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    result: dict[str, Any] | None = None
    error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    processing_started_at: datetime | None = None
    completed_at: datetime | None = None
    failed_at: datetime | None = None


@dataclass(frozen=True)
class JobPatch:
    """Partial update for an ai_jobs row. Only fields that are set get written.

    Stamp fields (processing_started_at, completed_at, failed_at) never
    overwrite a value that is already stored. Columns named in `clear` are
    reset to NULL, which is how a retried job drops its earlier failure.
    """

    status: str | None = None
    provider_status: str | None = None
    result: dict[str, Any] | None = None
    error: str | None = None
    processing_started_at: datetime | None = None
    completed_at: datetime | None = None
    failed_at: datetime | None = None
    clear: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        unknown = set(self.clear) - CLEARABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot clear columns: {sorted(unknown)}")
        conflicting = self.clear.intersection(self.fields())
        if conflicting:
            raise ValueError(f"Columns both set and cleared: {sorted(conflicting)}")

    def fields(self) -> dict[str, Any]:
        """Return the set fields keyed by column name."""
        values = {
            "status": self.status,
            "provider_status": self.provider_status,
            "result": self.result,
            "error": self.error,
            "processing_started_at": self.processing_started_at,
            "completed_at": self.completed_at,
            "failed_at": self.failed_at,
        }
        return {name: value for name, value in values.items() if value is not None}


@dataclass
class HistoryRecord:
    """Represents a row from the classification_history table."""

    user_id: str
    job_id: str
    entry: dict[str, Any]
    id: int | None = None
    created_at: datetime | None = None


@dataclass
class NotificationRecord:
    """Represents a row from the notifications table."""

    user_id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    read: bool = False
    id: int | None = None
    created_at: datetime | None = None
