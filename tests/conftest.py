import dataclasses
import json
from datetime import datetime, timezone
from typing import Any

import pytest

from app.batch.base import BaseJobStore, BaseProviderClient, BaseResultSink
from app.batch.models import ProviderBatchStatus
from app.database.models import JobPatch, JobRecord

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

_STAMPS = ("processing_started_at", "completed_at", "failed_at")


class InMemoryJobStore(BaseJobStore):
    """Job store that keeps records in a dict and logs every update."""

    def __init__(self, jobs: list[JobRecord] | None = None) -> None:
        self.jobs: dict[str, JobRecord] = {job.id: job for job in jobs or []}
        self.updates: list[tuple[str, JobPatch]] = []
        self.fail_updates_for: set[str] = set()
        self.list_error: Exception | None = None

    def list_active(self) -> list[JobRecord]:
        if self.list_error is not None:
            raise self.list_error
        return [
            dataclasses.replace(job)
            for job in self.jobs.values()
            if job.status in ("queued", "processing")
        ]

    def find_by_id(self, job_id: str) -> JobRecord | None:
        job = self.jobs.get(job_id)
        return dataclasses.replace(job) if job else None

    def update(self, job_id: str, patch: JobPatch) -> None:
        if job_id in self.fail_updates_for:
            raise RuntimeError(f"store unavailable for {job_id}")
        self.updates.append((job_id, patch))
        job = self.jobs[job_id]
        for name, value in patch.fields().items():
            if name in _STAMPS and getattr(job, name) is not None:
                continue
            setattr(job, name, value)
        for name in patch.clear:
            setattr(job, name, None)
        job.updated_at = FIXED_NOW

    def count_by_status_since(self, since: datetime) -> dict[str, int]:
        counts: dict[str, int] = {}
        for job in self.jobs.values():
            if job.created_at is not None and job.created_at >= since:
                counts[job.status] = counts.get(job.status, 0) + 1
        return counts


class FakeProvider(BaseProviderClient):
    """Provider returning canned statuses and outputs; exceptions are raised."""

    def __init__(self) -> None:
        self.statuses: dict[str, ProviderBatchStatus | Exception] = {}
        self.outputs: dict[str, str | Exception] = {}
        self.status_calls: list[str] = []

    def get_status(self, provider_job_id: str) -> ProviderBatchStatus:
        self.status_calls.append(provider_job_id)
        status = self.statuses[provider_job_id]
        if isinstance(status, Exception):
            raise status
        return status

    def fetch_output(self, output_handle: str) -> str:
        output = self.outputs[output_handle]
        if isinstance(output, Exception):
            raise output
        return output


class RecordingSink(BaseResultSink):
    def __init__(self) -> None:
        self.history: list[tuple[str, str, dict[str, Any]]] = []
        self.notifications: list[tuple[str, dict[str, Any]]] = []

    def append_history(self, user_id: str, job_id: str, entry: dict[str, Any]) -> None:
        self.history.append((user_id, job_id, entry))

    def notify(self, user_id: str, payload: dict[str, Any]) -> None:
        self.notifications.append((user_id, payload))


def _make_output_line(job_id: str, content: object) -> str:
    """Build one batch output line; non-string content is JSON-encoded."""
    if not isinstance(content, str):
        content = json.dumps(content)
    return json.dumps({
        "id": f"batch_req_{job_id}",
        "custom_id": f"job-{job_id}",
        "response": {
            "status_code": 200,
            "body": {"choices": [{"index": 0, "message": {"content": content}}]},
        },
    })


@pytest.fixture()
def job_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture()
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


def _make_job(**overrides: Any) -> JobRecord:
    values: dict[str, Any] = {
        "id": "j1",
        "user_id": "u1",
        "status": "processing",
        "provider_job_id": "b1",
        "image_url": "https://example.com/bottle.jpg",
        "image_name": "bottle.jpg",
        "metadata": {"useSegmentation": True, "segments": [{"x": 1}]},
        "created_at": FIXED_NOW,
    }
    values.update(overrides)
    return JobRecord(**values)


@pytest.fixture()
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture()
def make_job() -> Any:
    return _make_job


@pytest.fixture()
def make_output_line() -> Any:
    return _make_output_line
