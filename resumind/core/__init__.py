"""Core pipeline logic for Resumind."""

from .status import Stage, PipelineStatus, StatusReporter
from .validation import (
    RejectedInput,
    ValidationResult,
    validate_candidate,
    check_file,
    format_size,
)
from .records import (
    build_record,
    with_feedback,
    record_key,
    result_path,
    parse_feedback,
    MalformedAnalysisResponse,
)
from .context import PipelineContext, SessionLocks, PipelineBusyError, generate_uuid
from .pipeline import ResumeOrchestrator, PipelineResult, analyze_resume
from .repository import ResumeRepository, ResumeNotFoundError

__all__ = [
    "Stage",
    "PipelineStatus",
    "StatusReporter",
    "RejectedInput",
    "ValidationResult",
    "validate_candidate",
    "check_file",
    "format_size",
    "build_record",
    "with_feedback",
    "record_key",
    "result_path",
    "parse_feedback",
    "MalformedAnalysisResponse",
    "PipelineContext",
    "SessionLocks",
    "PipelineBusyError",
    "generate_uuid",
    "ResumeOrchestrator",
    "PipelineResult",
    "analyze_resume",
    "ResumeRepository",
    "ResumeNotFoundError",
]
