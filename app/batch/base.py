from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from app.batch.models import ProviderBatchStatus
from app.database.models import JobPatch, JobRecord


class BaseProviderClient(ABC):
    """Contract for batch provider adapters."""

    @abstractmethod
    def get_status(self, provider_job_id: str) -> ProviderBatchStatus:
        """Return the provider's current view of a batch.

        Raises:
            ProviderError: on any transport, auth or service failure.
        """

    @abstractmethod
    def fetch_output(self, output_handle: str) -> str:
        """Return the raw newline-delimited output of a finished batch.

        Raises:
            ProviderError: on any transport, auth or service failure.
        """


class BaseJobStore(ABC):
    """Contract for the persistent job ledger."""

    @abstractmethod
    def list_active(self) -> list[JobRecord]:
        """Return every job whose status is queued or processing."""

    @abstractmethod
    def find_by_id(self, job_id: str) -> JobRecord | None:
        """Return one job, or None if it does not exist."""

    @abstractmethod
    def update(self, job_id: str, patch: JobPatch) -> None:
        """Apply a partial update to a job."""

    @abstractmethod
    def count_by_status_since(self, since: datetime) -> dict[str, int]:
        """Count jobs created at or after `since`, grouped by status."""


class BaseResultSink(ABC):
    """Contract for the side effects of a completed job.

    Implementations are best-effort: failures are logged, never raised.
    """

    @abstractmethod
    def append_history(self, user_id: str, job_id: str, entry: dict[str, Any]) -> None:
        """Append a classification to the user's history log."""

    @abstractmethod
    def notify(self, user_id: str, payload: dict[str, Any]) -> None:
        """Emit a notification record for the user."""
