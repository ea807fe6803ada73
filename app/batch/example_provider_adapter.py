"""Example batch provider adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseProviderClient and register the provider in ProviderFactory.
"""

import json
from typing import ClassVar

from app.batch.base import BaseProviderClient
from app.batch.models import ProviderBatchStatus
from app.logging.logger import Log


class ExampleProviderAdapter(BaseProviderClient):
    """Example adapter that reports every batch as completed.

    No network calls. The output handle encodes the batch id, and the output
    holds one well-formed line per job id registered via `add_job`. Call
    `add_job` for every job before reconciling it: a batch with no registered
    jobs has empty output, so its jobs stay unmatched.
    Useful for local development and tests.
    """

    DEFAULT_CLASSIFICATION: ClassVar[dict[str, object]] = {
        "itemName": "Plastic Bottle",
        "category": "recyclable",
        "confidence": 0.9,
        "disposalInstructions": "Rinse and place in the recycling bin",
        "environmentalImpact": "Recycling saves energy and raw materials",
        "tips": ["Remove the cap", "Crush to save space"],
    }

    def __init__(self) -> None:
        self._jobs_by_batch: dict[str, list[str]] = {}

    def add_job(self, provider_job_id: str, job_id: str) -> None:
        """Register a job id so its result line appears in the batch output."""
        self._jobs_by_batch.setdefault(provider_job_id, []).append(job_id)

    def get_status(self, provider_job_id: str) -> ProviderBatchStatus:
        return ProviderBatchStatus(
            state="completed",
            output_handle=f"file-{provider_job_id}",
        )

    def fetch_output(self, output_handle: str) -> str:
        provider_job_id = output_handle.removeprefix("file-")
        job_ids = self._jobs_by_batch.get(provider_job_id, [])
        if not job_ids:
            Log.warning(
                f"Example provider has no jobs registered for batch {provider_job_id}; "
                "call add_job before reconciling"
            )
        return "\n".join(json.dumps(self._result_line(job_id)) for job_id in job_ids)

    def _result_line(self, job_id: str) -> dict[str, object]:
        return {
            "id": f"batch_req_{job_id}",
            "custom_id": f"job-{job_id}",
            "response": {
                "status_code": 200,
                "body": {
                    "choices": [
                        {
                            "index": 0,
                            "message": {
                                "role": "assistant",
                                "content": json.dumps(self.DEFAULT_CLASSIFICATION),
                            },
                        }
                    ]
                },
            },
            "error": None,
        }
