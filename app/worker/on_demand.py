"""On-demand trigger: reconcile one job for its authenticated owner."""

from enum import Enum
from typing import Any

from app.batch.coordinator import BatchCoordinator
from app.batch.exceptions import (
    JobAccessDeniedError,
    JobNotFoundError,
    MissingProviderJobIdError,
)
from app.logging.logger import Log


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    PERMISSION_DENIED = "permission-denied"
    FAILED_PRECONDITION = "failed-precondition"
    INTERNAL = "internal"


class TriggerError(Exception):
    """Structured error returned to on-demand callers."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.kind.value, "message": self.message}


def process_single_batch_job(
    data: dict[str, Any] | None,
    identity: str | None,
    coordinator: BatchCoordinator,
) -> dict[str, Any]:
    """Reconcile the job named in `data["jobId"]` for the user `identity`.

    Returns {"success", "status", "message"}.

    Raises:
        TriggerError: with the kind matching the failure.
    """
    if not identity:
        raise TriggerError(ErrorKind.UNAUTHENTICATED, "User must be authenticated")

    job_id = (data or {}).get("jobId")
    if not job_id or not isinstance(job_id, str):
        raise TriggerError(ErrorKind.INVALID_ARGUMENT, "Job ID is required")

    try:
        outcome = coordinator.run_single(job_id, identity)
    except JobNotFoundError as exc:
        raise TriggerError(ErrorKind.NOT_FOUND, "Job not found") from exc
    except JobAccessDeniedError as exc:
        raise TriggerError(ErrorKind.PERMISSION_DENIED, "Access denied") from exc
    except MissingProviderJobIdError as exc:
        raise TriggerError(
            ErrorKind.FAILED_PRECONDITION, "Job missing provider batch ID"
        ) from exc
    except Exception as exc:
        Log.error(f"Error processing single job {job_id}: {exc}")
        raise TriggerError(ErrorKind.INTERNAL, str(exc)) from exc

    return {
        "success": outcome.success,
        "status": outcome.status,
        "message": outcome.message,
    }
