"""Input validation - the gate a candidate file must pass before a run starts."""

import logging
from typing import Optional, Sequence

from pydantic import BaseModel

from ..models import CandidateFile, MAX_FILE_SIZE, PDF_MIME_TYPE

logger = logging.getLogger(__name__)

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


class RejectedInput(ValueError):
    """Raised when a submission is made with a file that failed validation."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ValidationResult(BaseModel):
    """Either an accepted file or the reason nothing was accepted."""
    accepted: Optional[CandidateFile] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.accepted is not None


def format_size(num_bytes: int) -> str:
    """Human-readable size using 1024-based units, e.g. ``20 MB`` or ``1.5 KB``."""
    if num_bytes <= 0:
        return "0 Bytes"

    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1

    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


def check_file(
    file: CandidateFile,
    max_file_size: int = MAX_FILE_SIZE,
    accepted_mime_type: str = PDF_MIME_TYPE
) -> Optional[str]:
    """Return a rejection reason for a single file, or None if it is acceptable."""
    if file.mime_type != accepted_mime_type:
        return f"{file.name}: unsupported file type {file.mime_type or 'unknown'} (PDF only)"
    # The declared size comes from the caller; the payload is what gets uploaded
    size = max(file.size, len(file.content))
    if size > max_file_size:
        return (
            f"{file.name}: file is {format_size(size)}, "
            f"larger than the {format_size(max_file_size)} limit"
        )
    return None


def validate_candidate(
    files: Sequence[CandidateFile],
    max_file_size: int = MAX_FILE_SIZE,
    accepted_mime_type: str = PDF_MIME_TYPE
) -> ValidationResult:
    """Validate a file selection.

    Exactly one file may be selected. A selection of several files is rejected
    as a whole rather than silently keeping the first one.

    Args:
        files: The selected files (possibly empty)
        max_file_size: Upper bound in bytes, inclusive
        accepted_mime_type: The only MIME type accepted

    Returns:
        ValidationResult with ``accepted`` set, or ``reason`` on rejection
    """
    if not files:
        return ValidationResult(reason="No file selected")

    if len(files) > 1:
        logger.info(f"Rejected selection of {len(files)} files")
        return ValidationResult(reason=f"Too many files: select a single PDF (got {len(files)})")

    file = files[0]
    reason = check_file(file, max_file_size, accepted_mime_type)
    if reason:
        logger.info(f"Rejected {file.name}: {reason}")
        return ValidationResult(reason=reason)

    return ValidationResult(accepted=file)
