import os
import uuid
from collections.abc import Generator
from pathlib import Path

import pytest
from psycopg.types.json import Jsonb

from app.config.settings import Settings
from app.database.connection import Database
from app.database.models import JobRecord

_SCHEMA_PATH = Path(__file__).resolve().parents[2] / "app" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "batch_worker_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def database(test_settings: Settings) -> Generator[Database, None, None]:
    db = Database(test_settings)
    try:
        with db.connection() as conn:
            conn.execute(_SCHEMA_PATH.read_text(encoding="utf-8"))
            conn.commit()
    except Exception as e:
        db.close()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def integration_cleanup(database: Database) -> Generator[list[str], None, None]:
    user_ids: list[str] = []
    yield user_ids
    if not user_ids:
        return
    with database.connection() as conn:
        for table in ("notifications", "classification_history", "ai_jobs"):
            conn.execute(f"DELETE FROM {table} WHERE user_id = ANY(%s)", (user_ids,))
        conn.commit()


@pytest.fixture
def seed_job(database: Database, integration_cleanup: list[str]) -> JobRecord:
    job_id = f"job_{uuid.uuid4().hex}"
    user_id = f"user_{uuid.uuid4().hex}"
    with database.connection() as conn:
        conn.execute(
            """
            INSERT INTO ai_jobs (id, user_id, status, provider_job_id, image_url, metadata)
            VALUES (%s, %s, 'queued', %s, %s, %s)
            """,
            (job_id, user_id, "batch_1", "https://example.com/a.jpg", Jsonb({"segments": []})),
        )
        conn.commit()
    integration_cleanup.append(user_id)
    return JobRecord(
        id=job_id,
        user_id=user_id,
        status="queued",
        provider_job_id="batch_1",
        image_url="https://example.com/a.jpg",
        metadata={"segments": []},
    )
