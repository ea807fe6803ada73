import time

from app.batch.coordinator import BatchCoordinator
from app.config.settings import Settings
from app.logging.logger import Log


class Worker:
    """Schedule loop: run a reconciliation pass -> sleep -> repeat."""

    def __init__(self, coordinator: BatchCoordinator, settings: Settings) -> None:
        self._coordinator = coordinator
        self._settings = settings

    def run(self, max_passes: int | None = None) -> None:
        """Main schedule loop. Runs forever until interrupted.

        If max_passes is set, stop after that many passes (for testing).
        """
        Log.info(
            "Worker started, reconciling batch jobs every "
            f"{self._settings.batch_poll_interval_seconds}s"
        )
        passes_done = 0
        try:
            while True:
                self._run_pass()
                passes_done += 1
                if max_passes is not None and passes_done >= max_passes:
                    break
                time.sleep(self._settings.batch_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully")

    def _run_pass(self) -> bool:
        """Run one pass. A pass-level failure is logged and retried next interval."""
        try:
            self._coordinator.run_pass()
            return True
        except Exception as exc:
            Log.error(f"Error in batch job processing, will retry: {exc}")
            return False
