from typing import Any

from app.batch.base import BaseResultSink
from app.database.models import NotificationRecord
from app.database.repositories.history_repository import HistoryRepository
from app.database.repositories.notification_repository import NotificationRepository
from app.logging.logger import Log


class DatabaseResultSink(BaseResultSink):
    """Writes history entries and notifications; failures are logged only."""

    def __init__(
        self,
        history_repo: HistoryRepository,
        notification_repo: NotificationRepository,
    ) -> None:
        self._history_repo = history_repo
        self._notification_repo = notification_repo

    def append_history(self, user_id: str, job_id: str, entry: dict[str, Any]) -> None:
        try:
            self._history_repo.add(user_id, job_id, entry)
            Log.info(f"Added classification to history for user {user_id}")
        except Exception as exc:
            Log.error(f"Error adding to classification history for job {job_id}: {exc}")

    def notify(self, user_id: str, payload: dict[str, Any]) -> None:
        try:
            self._notification_repo.add(
                NotificationRecord(
                    user_id=user_id,
                    type=str(payload["type"]),
                    title=str(payload["title"]),
                    message=str(payload["message"]),
                    data=dict(payload.get("data") or {}),
                    read=bool(payload.get("read", False)),
                )
            )
            Log.info(f"Created notification for user {user_id}")
        except Exception as exc:
            Log.error(f"Error creating notification for user {user_id}: {exc}")
