from app.batch.base import BaseJobStore, BaseProviderClient, BaseResultSink
from app.batch.coordinator import BatchCoordinator
from app.batch.factory import ProviderFactory
from app.batch.result_parser import parse_result_line

__all__ = [
    "BaseJobStore",
    "BaseProviderClient",
    "BaseResultSink",
    "BatchCoordinator",
    "ProviderFactory",
    "parse_result_line",
]
