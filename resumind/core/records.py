"""Record building - pure transformations producing ResumeRecords."""

import json
from typing import Any

from ..models import ResumeRecord

KEY_PREFIX = "resume:"


def record_key(record_id: str) -> str:
    return f"{KEY_PREFIX}{record_id}"


def result_path(record_id: str) -> str:
    """Path of the result view for a record."""
    return f"/resume/{record_id}"


def build_record(
    record_id: str,
    resume_path: str,
    image_path: str,
    company_name: str,
    job_title: str,
    job_description: str
) -> ResumeRecord:
    """Assemble a record that has not been analyzed yet.

    ``feedback`` is set to the empty string, the "not yet analyzed" marker.
    """
    return ResumeRecord(
        id=record_id,
        resume_path=resume_path,
        image_path=image_path,
        company_name=company_name,
        job_title=job_title,
        job_description=job_description,
        feedback="",
    )


def with_feedback(record: ResumeRecord, record_id: str, feedback: Any) -> ResumeRecord:
    """Return a copy of ``record`` with only ``feedback`` replaced.

    Raises:
        ValueError: If ``record_id`` does not identify ``record``
    """
    if record.id != record_id:
        raise ValueError(f"Record id mismatch: {record.id} != {record_id}")
    return record.model_copy(update={"feedback": feedback})


class MalformedAnalysisResponse(ValueError):
    """Raised when the model's feedback text is not valid JSON."""

    def __init__(self, text: str, error: json.JSONDecodeError):
        super().__init__(f"Feedback is not valid JSON: {error}")
        self.text = text
        self.error = error


def parse_feedback(text: str) -> Any:
    """Parse feedback text as JSON."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedAnalysisResponse(text, e) from e
