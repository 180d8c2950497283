from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from typing import Literal, Optional
from pathlib import Path


MAX_FILE_SIZE = 20 * 1024 * 1024  # 20 MiB
PDF_MIME_TYPE = "application/pdf"


class LLMConfig(BaseModel):
    """LLM provider configuration."""
    provider: Literal["openai", "ollama", "groq"] = Field(
        default="openai",
        description="Which LLM backend to use"
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model identifier"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for cloud providers (not needed for Ollama)"
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Custom API endpoint (e.g., for Ollama: http://localhost:11434)"
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=2.0,
        description="Lower = more deterministic outputs"
    )


class UploadConfig(BaseModel):
    """Constraints applied to a candidate file before it enters the pipeline."""
    max_file_size: int = Field(
        default=MAX_FILE_SIZE,
        ge=1,
        description="Maximum accepted document size in bytes"
    )
    accepted_mime_type: str = Field(
        default=PDF_MIME_TYPE,
        description="The only MIME type accepted by the uploader"
    )


class ConversionConfig(BaseModel):
    """PDF-to-image preview settings."""
    scale: float = Field(
        default=4.0,
        gt=0.0,
        le=8.0,
        description="Render zoom factor relative to 72 DPI"
    )
    image_format: Literal["png"] = Field(
        default="png",
        description="Output format of the preview image"
    )


class StorageConfig(BaseModel):
    """Object storage configuration."""
    root_dir: Path = Field(
        default=Path("data/uploads"),
        description="Directory used by the filesystem storage backend"
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Storage API endpoint; when set the HTTP backend is used"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the storage API"
    )


class KVConfig(BaseModel):
    """Key-value persistence configuration."""
    path: Path = Field(
        default=Path("data/kv.json"),
        description="JSON file backing the key-value store"
    )


class PipelineConfig(BaseModel):
    """Orchestrator behaviour switches."""
    require_checkpoint: bool = Field(
        default=False,
        description=(
            "Fail the run when the initial record write is rejected "
            "instead of logging a warning and continuing"
        )
    )


class AppConfig(BaseSettings):
    """Root application configuration.

    Loads from environment variables with the RESUMIND_ prefix.
    Example: RESUMIND_LLM__API_KEY for llm.api_key
    """
    llm: LLMConfig = Field(default_factory=LLMConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    kv: KVConfig = Field(default_factory=KVConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    debug: bool = Field(
        default=False,
        description="Enable verbose logging"
    )

    class Config:
        env_prefix = "RESUMIND_"
        env_nested_delimiter = "__"
