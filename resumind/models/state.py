import json
import mimetypes
from pathlib import Path
from pydantic import BaseModel, Field
from typing import Any, List, Optional

from .analysis import AnalysisResponse


class CandidateFile(BaseModel):
    """A user-selected document before any pipeline processing.

    Held only in transient pipeline state and discarded after upload.
    """
    name: str
    size: int = Field(ge=0, description="Size in bytes")
    mime_type: str = Field(description="e.g. application/pdf")
    content: bytes = Field(default=b"", repr=False)

    @classmethod
    def from_bytes(
        cls,
        name: str,
        content: bytes,
        mime_type: Optional[str] = None
    ) -> "CandidateFile":
        """Wrap raw bytes, guessing the MIME type from the name when not given."""
        if mime_type is None:
            mime_type = mimetypes.guess_type(name)[0] or "application/octet-stream"
        return cls(name=name, size=len(content), mime_type=mime_type, content=content)

    @classmethod
    def from_path(cls, path: Path) -> "CandidateFile":
        path = Path(path)
        return cls.from_bytes(path.name, path.read_bytes())


class ImageFile(BaseModel):
    """Preview image produced from the first page of a resume."""
    name: str
    mime_type: str = "image/png"
    content: bytes = Field(default=b"", repr=False)
    width: int = 0
    height: int = 0

    @property
    def size(self) -> int:
        return len(self.content)


class UploadedFile(BaseModel):
    """Handle returned by the storage service for a stored blob."""
    path: str
    name: str = ""
    size: int = 0


class AnalysisRequest(BaseModel):
    """Free-text job details supplied alongside the resume."""
    company_name: str = ""
    job_title: str = ""
    job_description: str = ""


class ResumeRecord(BaseModel):
    """The persisted result of one pipeline run.

    Serialized with camelCase keys, which is the shape stored under
    ``resume:<id>`` and read back by the result view. ``feedback`` stays the
    empty string until a successful analysis replaces it with parsed JSON.
    """
    id: str
    resume_path: str = Field(alias="resumePath")
    image_path: str = Field(alias="imagePath")
    company_name: str = Field(default="", alias="companyName")
    job_title: str = Field(default="", alias="jobTitle")
    job_description: str = Field(default="", alias="jobDescription")
    feedback: Any = ""

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def is_analyzed(self) -> bool:
        return self.feedback != ""

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True))

    @classmethod
    def from_json(cls, raw: str) -> "ResumeRecord":
        return cls.model_validate(json.loads(raw))


class PipelineState(BaseModel):
    """Central state object passed through the pipeline.

    Accumulates collaborator outputs as it flows through the stages:
    UPLOADING → CONVERTING_TO_IMAGE → UPLOADING_IMAGE → PREPARING_RECORD →
    PERSISTING_INITIAL_RECORD → REQUESTING_ANALYSIS → PERSISTING_FINAL_RECORD.
    """
    # === Input ===
    file: CandidateFile
    request: AnalysisRequest = Field(default_factory=AnalysisRequest)

    # === Storage ===
    uploaded_file: Optional[UploadedFile] = None
    image_file: Optional[ImageFile] = None
    uploaded_image: Optional[UploadedFile] = None

    # === Record ===
    record: Optional[ResumeRecord] = None
    checkpoint_saved: Optional[bool] = Field(
        default=None,
        description="Outcome of the initial record write (None until attempted)"
    )

    # === Analysis ===
    analysis: Optional[AnalysisResponse] = None


class PipelineStage(BaseModel):
    """Tracks the current stage of the pipeline for state machine logic."""
    current: str = "IDLE"
    status: str = ""
    completed: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
