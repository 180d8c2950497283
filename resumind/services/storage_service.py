"""Object storage backends for uploaded resumes and preview images.

Two implementations share the same interface:
- FileStorageService writes blobs under a local directory.
- HttpStorageService talks to a storage API over httpx.

Both report an expected failure (I/O error, HTTP error, empty response) by
returning None so the pipeline can short-circuit on the outcome.
"""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional, Protocol, Union

import httpx

from ..models import CandidateFile, ImageFile, UploadedFile, StorageConfig

logger = logging.getLogger(__name__)

Blob = Union[CandidateFile, ImageFile]


class StorageServiceError(Exception):
    """Raised when a storage backend is used incorrectly."""
    pass


class StorageService(Protocol):
    """Protocol defining the storage collaborator."""

    async def upload(self, blob: Blob) -> Optional[UploadedFile]:
        """Store a blob and return its handle, or None on failure."""
        ...

    async def read(self, path: str) -> Optional[bytes]:
        """Return the bytes stored under a handle, or None if unavailable."""
        ...


class FileStorageService:
    """Stores blobs on the local filesystem.

    Each upload lands in its own random subdirectory so two files with the
    same name never overwrite each other. Handles are POSIX paths relative to
    the storage root.
    """

    def __init__(self, config: StorageConfig):
        self.config = config
        self.root = Path(config.root_dir)

    def _resolve(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StorageServiceError(f"Path escapes storage root: {path}")
        return target

    def _write(self, blob: Blob) -> UploadedFile:
        token = uuid.uuid4().hex
        relative = Path(token) / Path(blob.name).name
        target = self.root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(blob.content)
        return UploadedFile(
            path=relative.as_posix(),
            name=blob.name,
            size=len(blob.content),
        )

    async def upload(self, blob: Blob) -> Optional[UploadedFile]:
        try:
            uploaded = await asyncio.to_thread(self._write, blob)
        except OSError as e:
            logger.error(f"Failed to store {blob.name}: {e}")
            return None

        logger.info(f"Stored {uploaded.name} at {uploaded.path} ({uploaded.size} bytes)")
        return uploaded

    async def read(self, path: str) -> Optional[bytes]:
        target = self._resolve(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None


class HttpStorageService:
    """Async client for an HTTP object storage API.

    Expects ``POST /files`` to accept a multipart upload and answer with
    ``{"path": "..."}``, and ``GET /files/{path}`` to return the raw bytes.

    Usage:
        async with HttpStorageService(config) as storage:
            uploaded = await storage.upload(candidate)
    """

    def __init__(
        self,
        config: StorageConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not config.base_url:
            raise StorageServiceError("HttpStorageService requires storage.base_url")
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HttpStorageService":
        headers = {}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            headers=headers,
            timeout=60.0,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def upload(self, blob: Blob) -> Optional[UploadedFile]:
        if not self._client:
            raise StorageServiceError("Service not initialized. Use async context manager.")

        try:
            response = await self._client.post(
                "/files",
                files={"file": (blob.name, blob.content, blob.mime_type)},
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Upload of {blob.name} failed: {e}")
            return None

        path = payload.get("path") if isinstance(payload, dict) else None
        if not path:
            logger.error(f"Storage API returned no path for {blob.name}")
            return None

        return UploadedFile(path=path, name=blob.name, size=len(blob.content))

    async def read(self, path: str) -> Optional[bytes]:
        if not self._client:
            raise StorageServiceError("Service not initialized. Use async context manager.")

        try:
            response = await self._client.get(f"/files/{path.lstrip('/')}")
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None
        return response.content
