"""External service integrations."""

from .storage_service import (
    StorageService,
    FileStorageService,
    HttpStorageService,
    StorageServiceError,
)
from .kv_service import KVStore, InMemoryKVStore, JsonFileKVStore, KVStoreError
from .converter_service import (
    Converter,
    ConversionResult,
    PdfImageConverter,
    convert_pdf_to_image,
    extract_pdf_text,
)
from .llm_service import (
    AnalysisService,
    LLMService,
    LLMServiceError,
    prepare_instructions,
)

__all__ = [
    "StorageService",
    "FileStorageService",
    "HttpStorageService",
    "StorageServiceError",
    "KVStore",
    "InMemoryKVStore",
    "JsonFileKVStore",
    "KVStoreError",
    "Converter",
    "ConversionResult",
    "PdfImageConverter",
    "convert_pdf_to_image",
    "extract_pdf_text",
    "AnalysisService",
    "LLMService",
    "LLMServiceError",
    "prepare_instructions",
]
