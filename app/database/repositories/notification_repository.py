from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import Database
from app.database.models import NotificationRecord


class NotificationRepository:
    """Database operations for the notifications table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def add(self, notification: NotificationRecord) -> int:
        """Insert a notification and return its id."""
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO notifications (user_id, type, title, message, data, read)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        notification.user_id,
                        notification.type,
                        notification.title,
                        notification.message,
                        Jsonb(notification.data),
                        notification.read,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError(
                f"Insert into notifications returned no id for user {notification.user_id}"
            )
        return int(row[0])

    def list_for_user(self, user_id: str) -> list[NotificationRecord]:
        """Return a user's notifications, newest first."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, user_id, type, title, message, data, read, created_at
                    FROM notifications
                    WHERE user_id = %s
                    ORDER BY created_at DESC, id DESC
                    """,
                    (user_id,),
                )
                rows = cur.fetchall()
        return [NotificationRecord(**row) for row in rows]
