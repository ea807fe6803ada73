import copy
from collections.abc import Callable
from datetime import datetime
from typing import Any

from app.batch.base import BaseJobStore, BaseProviderClient, BaseResultSink
from app.batch.exceptions import IngestionError, ProviderError
from app.batch.models import STATUS_COMPLETED, STATUS_FAILED, ClassificationResult
from app.batch.result_parser import find_result_record, parse_result_line
from app.database.models import JobPatch, JobRecord
from app.logging.logger import Log

NOTIFICATION_TYPE = "batch_job_completed"
NOTIFICATION_TITLE = "Analysis Complete!"
RETRY_CLEARED_COLUMNS = frozenset({"error", "failed_at"})


class ResultIngestor:
    """Downloads a completed batch's output and records the job's result."""

    def __init__(
        self,
        provider: BaseProviderClient,
        job_store: BaseJobStore,
        sink: BaseResultSink,
        clock: Callable[[], datetime],
    ) -> None:
        self._provider = provider
        self._job_store = job_store
        self._sink = sink
        self._clock = clock

    def ingest(self, job: JobRecord, output_handle: str) -> ClassificationResult | None:
        """Complete `job` from the batch output behind `output_handle`.

        Returns the parsed result, or None when the output holds no line for
        this job (the job is left untouched).

        Raises:
            IngestionError: if the output cannot be fetched or the job update fails.
        """
        try:
            raw_output = self._provider.fetch_output(output_handle)
        except ProviderError as exc:
            raise IngestionError(str(exc)) from exc

        record = find_result_record(raw_output, job.id)
        if record is None:
            Log.warning(
                f"No output line for job {job.id} in {output_handle}; job left unchanged"
            )
            return None

        result = parse_result_line(record)
        if result.is_fallback:
            Log.warning(f"Job {job.id} completed with a fallback classification")

        try:
            self._job_store.update(
                job.id,
                JobPatch(
                    status=STATUS_COMPLETED,
                    provider_status="completed",
                    result=result.to_document(),
                    completed_at=self._clock(),
                    clear=retry_clears(job),
                ),
            )
        except Exception as exc:
            raise IngestionError(f"could not store result: {exc}") from exc

        try:
            self._sink.append_history(job.user_id, job.id, _history_entry(job, result))
        except Exception as exc:
            Log.error(f"Error adding history entry for completed job {job.id}: {exc}")
        try:
            self._sink.notify(job.user_id, _notification_payload(job, result))
        except Exception as exc:
            Log.error(f"Error sending completion notification for job {job.id}: {exc}")

        Log.info(f"Successfully processed completed job {job.id}")
        return result


def retry_clears(job: JobRecord) -> frozenset[str]:
    """Columns to reset when a previously failed job moves on."""
    if job.status == STATUS_FAILED:
        return RETRY_CLEARED_COLUMNS
    return frozenset()


def _history_entry(job: JobRecord, result: ClassificationResult) -> dict[str, Any]:
    metadata = copy.deepcopy(job.metadata)
    return {
        **result.to_document(),
        "imageUrl": job.image_url,
        "imageName": job.image_name,
        "useSegmentation": bool(metadata.get("useSegmentation", False)),
        "segments": metadata.get("segments"),
        "jobId": job.id,
    }


def _notification_payload(job: JobRecord, result: ClassificationResult) -> dict[str, Any]:
    return {
        "type": NOTIFICATION_TYPE,
        "title": NOTIFICATION_TITLE,
        "message": f"Your waste classification is ready: {result.item_name}",
        "data": {
            "jobId": job.id,
            "classification": result.to_document(),
        },
        "read": False,
    }
