class BatchError(Exception):
    """Base exception for batch processing errors."""


class ProviderError(BatchError):
    """Raised when the batch provider rejects or fails a request."""


class ProviderNetworkError(ProviderError):
    """Raised when the provider call fails due to network/infrastructure issues."""


class IngestionError(BatchError):
    """Raised when the output of a completed batch cannot be processed."""


class JobNotFoundError(BatchError):
    """Raised when a job cannot be found in the job store."""


class JobAccessDeniedError(BatchError):
    """Raised when a user requests a job they do not own."""


class MissingProviderJobIdError(BatchError):
    """Raised when a job was never assigned a provider batch id."""
