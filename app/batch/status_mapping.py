"""Maps provider batch states onto internal job statuses."""

from app.batch.models import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_PROCESSING,
    STATUS_QUEUED,
)

PROVIDER_STATUS_MAP: dict[str, str] = {
    "validating": STATUS_QUEUED,
    "queued": STATUS_QUEUED,
    "in_progress": STATUS_PROCESSING,
    "finalizing": STATUS_PROCESSING,
    "completed": STATUS_COMPLETED,
    "failed": STATUS_FAILED,
    "expired": STATUS_FAILED,
    "cancelled": STATUS_FAILED,
}


def map_provider_state(state: str) -> str | None:
    """Return the job status for a provider state, or None if it is not mapped."""
    return PROVIDER_STATUS_MAP.get(state)
