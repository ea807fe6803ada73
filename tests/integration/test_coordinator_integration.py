from unittest.mock import MagicMock

import pytest

from app.batch.coordinator import BatchCoordinator
from app.batch.example_provider_adapter import ExampleProviderAdapter
from app.batch.sink import DatabaseResultSink
from app.database.models import JobRecord
from app.database.repositories.history_repository import HistoryRepository
from app.database.repositories.job_repository import JobRepository
from app.database.repositories.notification_repository import NotificationRepository


@pytest.mark.integration
class TestCoordinatorAgainstDatabase:
    def test_pass_completes_job_and_records_side_effects(
        self, database, seed_job: JobRecord
    ) -> None:
        provider = ExampleProviderAdapter()
        provider.add_job(seed_job.provider_job_id, seed_job.id)
        job_repo = JobRepository(database)
        history_repo = HistoryRepository(database)
        notification_repo = NotificationRepository(database)
        coordinator = BatchCoordinator(
            provider,
            job_repo,
            DatabaseResultSink(history_repo, notification_repo),
            MagicMock(max_concurrent_jobs=2),
        )

        outcome = coordinator.run_single(seed_job.id, seed_job.user_id)

        assert outcome.success is True
        assert outcome.status == "completed"
        job = job_repo.find_by_id(seed_job.id)
        assert job is not None
        assert job.status == "completed"
        assert job.result["itemName"] == "Plastic Bottle"
        assert job.completed_at is not None
        assert len(history_repo.list_for_user(seed_job.user_id)) == 1
        assert len(notification_repo.list_for_user(seed_job.user_id)) == 1
