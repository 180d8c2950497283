"""Pydantic models for Resumind."""

from .analysis import (
    AnalysisResponse,
    AnalysisMessage,
    TextContent,
    BlockContent,
    ContentBlock,
    EmptyAnalysisContent,
    resolve_content,
)
from .state import (
    CandidateFile,
    ImageFile,
    UploadedFile,
    AnalysisRequest,
    ResumeRecord,
    PipelineState,
    PipelineStage,
)
from .feedback import Feedback
from .config import (
    AppConfig,
    LLMConfig,
    UploadConfig,
    ConversionConfig,
    StorageConfig,
    KVConfig,
    PipelineConfig,
    MAX_FILE_SIZE,
    PDF_MIME_TYPE,
)

__all__ = [
    "AnalysisResponse",
    "AnalysisMessage",
    "TextContent",
    "BlockContent",
    "ContentBlock",
    "EmptyAnalysisContent",
    "resolve_content",
    "CandidateFile",
    "ImageFile",
    "UploadedFile",
    "AnalysisRequest",
    "ResumeRecord",
    "PipelineState",
    "PipelineStage",
    "Feedback",
    "AppConfig",
    "LLMConfig",
    "UploadConfig",
    "ConversionConfig",
    "StorageConfig",
    "KVConfig",
    "PipelineConfig",
    "MAX_FILE_SIZE",
    "PDF_MIME_TYPE",
]
