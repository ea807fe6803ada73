"""Parses provider batch output lines into classification results."""

import json
from typing import Any

from app.batch.models import (
    ANALYSIS_METHOD_BATCH,
    ANALYSIS_METHOD_FALLBACK,
    ClassificationResult,
)
from app.logging.logger import Log

DEFAULT_ITEM_NAME = "Unknown Item"
DEFAULT_CATEGORY = "general"
DEFAULT_CONFIDENCE = 0.5
DEFAULT_DISPOSAL_INSTRUCTIONS = "Dispose according to local guidelines"
DEFAULT_ENVIRONMENTAL_IMPACT = "Environmental impact information not available"

FALLBACK_RESULT = ClassificationResult(
    item_name="Classification Error",
    category="general",
    confidence=0.1,
    disposal_instructions=(
        "Unable to classify. Please consult local waste management guidelines."
    ),
    environmental_impact="Classification failed",
    tips=(
        "Try taking a clearer photo",
        "Ensure good lighting",
        "Contact support if issue persists",
    ),
    analysis_method=ANALYSIS_METHOD_FALLBACK,
)


class _MalformedResultError(ValueError):
    pass


def correlation_id(job_id: str) -> str:
    """Return the custom id embedded in a job's batch request."""
    return f"job-{job_id}"


def find_result_record(raw_output: str, job_id: str) -> dict[str, Any] | None:
    """Return the output record whose custom_id matches the job, if any.

    Lines that are blank or not JSON objects are skipped.
    """
    wanted = correlation_id(job_id)
    for line in raw_output.splitlines():
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except (json.JSONDecodeError, RecursionError):
            Log.debug(f"Skipping undecodable batch output line for job {job_id}")
            continue
        if isinstance(record, dict) and record.get("custom_id") == wanted:
            return record
    return None


def parse_result_line(raw_line: str | dict[str, Any]) -> ClassificationResult:
    """Parse one provider output record into a ClassificationResult.

    Accepts the raw JSON line or an already decoded record. Never raises:
    any malformed input yields FALLBACK_RESULT.
    """
    try:
        envelope = json.loads(raw_line) if isinstance(raw_line, str) else raw_line
        content = _extract_content(envelope)
        payload = json.loads(content)
        if not isinstance(payload, dict):
            raise _MalformedResultError("classification content must be an object")
        return _build_result(payload)
    except Exception as exc:
        Log.error(f"Error parsing classification result: {exc!r}")
        return FALLBACK_RESULT


def _extract_content(envelope: Any) -> str:
    content = envelope["response"]["body"]["choices"][0]["message"]["content"]
    if not isinstance(content, str):
        raise _MalformedResultError("message content is missing")
    return content


def _build_result(payload: dict[str, Any]) -> ClassificationResult:
    confidence = payload.get("confidence")
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        raise _MalformedResultError(f"confidence must be a number, got {confidence!r}")

    tips = payload.get("tips") or []
    if not isinstance(tips, list):
        raise _MalformedResultError("tips must be a list")

    return ClassificationResult(
        item_name=str(payload.get("itemName") or DEFAULT_ITEM_NAME),
        category=str(payload.get("category") or DEFAULT_CATEGORY),
        confidence=float(confidence),
        disposal_instructions=str(
            payload.get("disposalInstructions") or DEFAULT_DISPOSAL_INSTRUCTIONS
        ),
        environmental_impact=str(
            payload.get("environmentalImpact") or DEFAULT_ENVIRONMENTAL_IMPACT
        ),
        tips=tuple(str(tip) for tip in tips),
        analysis_method=ANALYSIS_METHOD_BATCH,
    )
