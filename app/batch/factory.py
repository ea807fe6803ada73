from app.batch.base import BaseProviderClient
from app.batch.example_provider_adapter import ExampleProviderAdapter
from app.batch.openai_provider_adapter import OpenAIBatchProviderAdapter
from app.config.settings import Settings

SUPPORTED_PROVIDERS = ("example", "openai", "openai_compatible")


class ProviderFactory:
    """Creates the configured batch provider adapter."""

    @classmethod
    def create(cls, settings: Settings) -> BaseProviderClient:
        """Create a configured provider client from application settings.

        The `example` adapter starts with no jobs. Register them with
        `ExampleProviderAdapter.add_job`, or every batch comes back with empty
        output.
        """
        provider = settings.batch_provider.lower()
        if provider == "example":
            return ExampleProviderAdapter()
        if provider == "openai":
            return OpenAIBatchProviderAdapter(
                api_key=settings.openai_api_key,
                timeout_seconds=settings.openai_timeout_seconds,
                base_url=None,
            )
        if provider == "openai_compatible":
            url = (settings.openai_compatible_base_url or "").strip()
            if not url:
                raise ValueError(
                    "openai_compatible_base_url is required for "
                    "batch_provider=openai_compatible"
                )
            return OpenAIBatchProviderAdapter(
                api_key=settings.openai_compatible_api_key,
                timeout_seconds=settings.openai_timeout_seconds,
                base_url=url,
            )
        raise ValueError(
            f"Unknown batch provider '{provider}'. Choose from: {list(SUPPORTED_PROVIDERS)}"
        )
