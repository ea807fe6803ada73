from dataclasses import dataclass, field
from typing import Any

STATUS_QUEUED = "queued"
STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"

ACTIVE_STATUSES = (STATUS_QUEUED, STATUS_PROCESSING)

ANALYSIS_METHOD_BATCH = "batch_ai"
ANALYSIS_METHOD_FALLBACK = "batch_ai_fallback"


@dataclass(frozen=True)
class ClassificationResult:
    """Parsed output of a completed batch job."""

    item_name: str
    category: str
    confidence: float
    disposal_instructions: str
    environmental_impact: str
    tips: tuple[str, ...] = ()
    analysis_method: str = ANALYSIS_METHOD_BATCH
    processing_time: int = 0

    @property
    def is_fallback(self) -> bool:
        return self.analysis_method == ANALYSIS_METHOD_FALLBACK

    def to_document(self) -> dict[str, Any]:
        """Serialize to the camelCase document shape stored alongside jobs."""
        return {
            "itemName": self.item_name,
            "category": self.category,
            "confidence": self.confidence,
            "disposalInstructions": self.disposal_instructions,
            "environmentalImpact": self.environmental_impact,
            "tips": list(self.tips),
            "analysisMethod": self.analysis_method,
            "processingTime": self.processing_time,
        }


@dataclass(frozen=True)
class ProviderBatchStatus:
    """Status of a batch as reported by the provider."""

    state: str
    output_handle: str | None = None
    errors: str | None = None


@dataclass
class PassSummary:
    """Counters collected over one reconciliation pass."""

    total: int = 0
    stalled: int = 0
    updated: int = 0
    completed: int = 0
    failed: int = 0
    unmatched: int = 0
    unresolved: int = 0
    errors: int = 0
    stalled_job_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SingleJobOutcome:
    """Result of reconciling one job on demand."""

    success: bool
    status: str
    provider_status: str
    message: str
