"""Reconciles active batch jobs against the provider's reported state.

Overlapping passes are not serialized: two passes may reconcile the same job
at once. Stamp columns are write-once in the store, so the worst case is a
repeated status write or a duplicate history entry for a job completed by
both passes.
"""

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone

from app.batch.base import BaseJobStore, BaseProviderClient, BaseResultSink
from app.batch.exceptions import (
    JobAccessDeniedError,
    JobNotFoundError,
    MissingProviderJobIdError,
)
from app.batch.ingestion import ResultIngestor, retry_clears
from app.batch.models import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PROCESSING,
    PassSummary,
    SingleJobOutcome,
)
from app.batch.status_mapping import map_provider_state
from app.config.settings import Settings
from app.database.models import JobPatch, JobRecord
from app.logging.logger import Log

DEFAULT_FAILURE_MESSAGE = "Batch job failed"
INGESTION_FAILURE_PREFIX = "Failed to process results: "
UNMATCHED_MESSAGE = "Batch completed but no result line matched this job"
UNRESOLVED_MESSAGE = "Batch completed without an output file"

_UNCHANGED = "unchanged"
_UPDATED = "updated"
_COMPLETED = "completed"
_FAILED = "failed"
_UNMATCHED = "unmatched"
_UNRESOLVED = "unresolved"
_STALLED = "stalled"
_ERROR = "error"

_UNSUCCESSFUL = frozenset({_FAILED, _UNMATCHED, _UNRESOLVED})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class _JobOutcome:
    kind: str
    status: str
    provider_status: str = ""
    message: str = ""


class BatchCoordinator:
    """Runs reconciliation passes over active jobs, or over one job on demand."""

    def __init__(
        self,
        provider: BaseProviderClient,
        job_store: BaseJobStore,
        sink: BaseResultSink,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._provider = provider
        self._job_store = job_store
        self._settings = settings
        self._clock = clock
        self._ingestor = ResultIngestor(provider, job_store, sink, clock)

    def run_pass(self) -> PassSummary:
        """Reconcile every queued or processing job.

        Per-job failures are recorded on the job and counted in the summary.
        Only a failure to list active jobs propagates.
        """
        Log.info("Starting batch job processing")
        jobs = self._job_store.list_active()
        summary = PassSummary(total=len(jobs))
        if not jobs:
            Log.info("No active batch jobs found")
            return summary

        Log.info(f"Found {len(jobs)} active batch jobs")
        workers = max(1, min(self._settings.max_concurrent_jobs, len(jobs)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reconcile") as pool:
            outcomes = list(pool.map(self._reconcile_contained, jobs))

        for job, outcome in zip(jobs, outcomes):
            _count(summary, job, outcome)

        if summary.stalled:
            Log.warning(
                f"{summary.stalled} stalled job(s) without a provider batch id: "
                f"{', '.join(summary.stalled_job_ids)}"
            )
        Log.info(
            "Batch job processing completed: "
            f"{summary.updated} updated, {summary.completed} completed, "
            f"{summary.failed} failed, {summary.unmatched} unmatched, "
            f"{summary.errors} errors"
        )
        return summary

    def run_single(self, job_id: str, requesting_user_id: str) -> SingleJobOutcome:
        """Reconcile one job on behalf of its owner.

        Raises:
            JobNotFoundError: if the job does not exist.
            JobAccessDeniedError: if the job belongs to another user.
            MissingProviderJobIdError: if the job has no provider batch id.
        """
        job = self._job_store.find_by_id(job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        if job.user_id != requesting_user_id:
            raise JobAccessDeniedError(f"User {requesting_user_id} does not own job {job_id}")
        if not job.provider_job_id:
            raise MissingProviderJobIdError(f"Job {job_id} missing provider batch id")

        if job.status == STATUS_COMPLETED:
            return SingleJobOutcome(
                success=True,
                status=job.status,
                provider_status=job.provider_status or "",
                message="Job already completed",
            )

        outcome = self._reconcile(job)
        success = outcome.kind not in _UNSUCCESSFUL
        return SingleJobOutcome(
            success=success,
            status=outcome.status,
            provider_status=outcome.provider_status,
            message="Job processed successfully" if success else outcome.message,
        )

    def _reconcile_contained(self, job: JobRecord) -> _JobOutcome:
        try:
            return self._reconcile(job)
        except Exception as exc:
            Log.exception(f"Unhandled error reconciling job {job.id}: {exc}")
            return _JobOutcome(kind=_ERROR, status=job.status, message=str(exc))

    def _reconcile(self, job: JobRecord) -> _JobOutcome:
        if not job.provider_job_id:
            Log.warning(f"Job {job.id} missing provider batch id")
            return _JobOutcome(kind=_STALLED, status=job.status)

        try:
            batch = self._provider.get_status(job.provider_job_id)
        except Exception as exc:
            Log.error(f"Error checking provider status for job {job.id}: {exc}")
            self._mark_failed(job, str(exc), provider_status=None)
            return _JobOutcome(kind=_FAILED, status=STATUS_FAILED, message=str(exc))

        mapped = map_provider_state(batch.state)
        if mapped is None:
            Log.warning(f"Job {job.id}: unmapped provider state '{batch.state}', keeping {job.status}")
            return _JobOutcome(kind=_UNCHANGED, status=job.status, provider_status=batch.state)

        if mapped == STATUS_FAILED:
            error = batch.errors or DEFAULT_FAILURE_MESSAGE
            self._mark_failed(job, error, provider_status=batch.state)
            return _JobOutcome(
                kind=_FAILED, status=STATUS_FAILED, provider_status=batch.state, message=error
            )

        if mapped == STATUS_COMPLETED:
            return self._complete(job, batch.state, batch.output_handle)

        if mapped == job.status:
            return _JobOutcome(kind=_UNCHANGED, status=job.status, provider_status=batch.state)

        started_at = None
        if mapped == STATUS_PROCESSING and job.processing_started_at is None:
            started_at = self._clock()
        self._job_store.update(
            job.id,
            JobPatch(
                status=mapped,
                provider_status=batch.state,
                processing_started_at=started_at,
                clear=retry_clears(job),
            ),
        )
        Log.info(f"Updated job {job.id} status: {job.status} -> {mapped}")
        return _JobOutcome(kind=_UPDATED, status=mapped, provider_status=batch.state)

    def _complete(
        self, job: JobRecord, provider_state: str, output_handle: str | None
    ) -> _JobOutcome:
        if not output_handle:
            Log.warning(f"Job {job.id} completed at provider without an output handle")
            return _JobOutcome(
                kind=_UNRESOLVED,
                status=job.status,
                provider_status=provider_state,
                message=UNRESOLVED_MESSAGE,
            )

        try:
            result = self._ingestor.ingest(job, output_handle)
        except Exception as exc:
            message = f"{INGESTION_FAILURE_PREFIX}{exc}"
            Log.error(f"Error processing completed job {job.id}: {exc}")
            self._mark_failed(job, message, provider_status=provider_state)
            return _JobOutcome(
                kind=_FAILED, status=STATUS_FAILED, provider_status=provider_state, message=message
            )

        if result is None:
            return _JobOutcome(
                kind=_UNMATCHED,
                status=job.status,
                provider_status=provider_state,
                message=UNMATCHED_MESSAGE,
            )
        return _JobOutcome(kind=_COMPLETED, status=STATUS_COMPLETED, provider_status=provider_state)

    def _mark_failed(self, job: JobRecord, error: str, provider_status: str | None) -> None:
        self._job_store.update(
            job.id,
            JobPatch(
                status=STATUS_FAILED,
                provider_status=provider_status,
                error=error,
                failed_at=self._clock(),
            ),
        )
        Log.error(f"Job {job.id} failed: {error}")


def _count(summary: PassSummary, job: JobRecord, outcome: _JobOutcome) -> None:
    if outcome.kind == _STALLED:
        summary.stalled += 1
        summary.stalled_job_ids.append(job.id)
    elif outcome.kind == _UPDATED:
        summary.updated += 1
    elif outcome.kind == _COMPLETED:
        summary.completed += 1
    elif outcome.kind == _FAILED:
        summary.failed += 1
    elif outcome.kind == _UNMATCHED:
        summary.unmatched += 1
    elif outcome.kind == _UNRESOLVED:
        summary.unresolved += 1
    elif outcome.kind == _ERROR:
        summary.errors += 1
