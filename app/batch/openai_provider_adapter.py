from typing import Any

import httpx
import openai

from app.batch.base import BaseProviderClient
from app.batch.exceptions import ProviderError, ProviderNetworkError
from app.batch.models import ProviderBatchStatus


class OpenAIBatchProviderAdapter(BaseProviderClient):
    """Batch provider adapter built on the OpenAI Batch and Files APIs."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._client = openai.OpenAI(
            api_key=api_key or "unset",
            timeout=timeout_seconds,
            base_url=base_url,
        )

    def get_status(self, provider_job_id: str) -> ProviderBatchStatus:
        self._require_api_key()
        try:
            batch = self._client.batches.retrieve(provider_job_id)
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ProviderNetworkError(f"Batch provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ProviderNetworkError(f"Batch provider API error: {exc}") from exc

        return ProviderBatchStatus(
            state=batch.status,
            output_handle=batch.output_file_id,
            errors=_format_errors(batch.errors),
        )

    def fetch_output(self, output_handle: str) -> str:
        self._require_api_key()
        try:
            content = self._client.files.content(output_handle)
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ProviderNetworkError(f"Batch provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ProviderNetworkError(f"Batch provider API error: {exc}") from exc
        return content.text

    def _require_api_key(self) -> None:
        if not self._api_key:
            raise ProviderError("OpenAI API key not configured")


def _format_errors(errors: Any) -> str | None:
    """Flatten the provider's error list into one message."""
    if errors is None:
        return None
    data = getattr(errors, "data", None) or []
    messages = [
        getattr(item, "message", None) or getattr(item, "code", None) or ""
        for item in data
    ]
    joined = "; ".join(message for message in messages if message)
    return joined or None
