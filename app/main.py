import argparse
import json

from app.batch.coordinator import BatchCoordinator, utc_now
from app.batch.factory import ProviderFactory
from app.batch.health import build_health_report
from app.batch.sink import DatabaseResultSink
from app.config.settings import Settings
from app.database.connection import Database
from app.database.repositories.history_repository import HistoryRepository
from app.database.repositories.job_repository import JobRepository
from app.database.repositories.notification_repository import NotificationRepository
from app.logging.logger import Log
from app.worker.on_demand import TriggerError, process_single_batch_job
from app.worker.worker import Worker


def build_coordinator(settings: Settings, database: Database) -> BatchCoordinator:
    """Wire the coordinator with the configured provider and database adapters."""
    provider = ProviderFactory.create(settings)
    sink = DatabaseResultSink(HistoryRepository(database), NotificationRepository(database))
    return BatchCoordinator(provider, JobRepository(database), sink, settings)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="batch-worker")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="reconcile active jobs on a fixed interval (default)")
    sub.add_parser("run-once", help="run a single reconciliation pass")
    single = sub.add_parser("process-job", help="reconcile one job for its owner")
    single.add_argument("job_id")
    single.add_argument("--user", required=True, help="id of the requesting user")
    sub.add_parser("health", help="print batch processing stats")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Entry point: load settings -> open database -> build dependencies -> dispatch."""
    args = _parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    database = Database(settings)

    try:
        if args.command == "health":
            report = build_health_report(
                JobRepository(database), utc_now(), settings.stats_window_hours
            )
            print(json.dumps(report, indent=2))
            return 0 if report["status"] == "healthy" else 1

        coordinator = build_coordinator(settings, database)
        if args.command == "run-once":
            coordinator.run_pass()
            return 0
        if args.command == "process-job":
            try:
                response = process_single_batch_job(
                    {"jobId": args.job_id}, args.user, coordinator
                )
            except TriggerError as exc:
                print(json.dumps({"error": exc.to_dict()}, indent=2))
                return 1
            print(json.dumps(response, indent=2))
            return 0

        Worker(coordinator, settings).run()
        return 0
    finally:
        database.close()


if __name__ == "__main__":
    raise SystemExit(main())
