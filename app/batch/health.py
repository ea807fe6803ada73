from datetime import datetime, timedelta
from typing import Any

from app.batch.base import BaseJobStore
from app.logging.logger import Log

_TRACKED_STATUSES = ("pending", "queued", "processing", "completed", "failed")


def collect_stats(job_store: BaseJobStore, now: datetime, window_hours: int = 24) -> dict[str, Any]:
    """Count recent jobs by status and compute the completion rate."""
    counts = job_store.count_by_status_since(now - timedelta(hours=window_hours))
    stats: dict[str, Any] = {"total": sum(counts.values())}
    for status in _TRACKED_STATUSES:
        stats[status] = counts.get(status, 0)
    total = stats["total"]
    stats["successRate"] = f"{stats['completed'] / total * 100:.2f}" if total else "0.00"
    return stats


def build_health_report(
    job_store: BaseJobStore, now: datetime, window_hours: int = 24
) -> dict[str, Any]:
    """Return a healthy report with stats, or an unhealthy one if the store fails."""
    try:
        stats = collect_stats(job_store, now, window_hours)
    except Exception as exc:
        Log.error(f"Health check failed: {exc}")
        return {"status": "unhealthy", "error": str(exc), "timestamp": now.isoformat()}
    return {"status": "healthy", "timestamp": now.isoformat(), "stats": stats}
