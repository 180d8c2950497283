"""Key-value persistence for resume records.

Values are opaque strings (JSON-serialized records); keys follow the
``resume:<id>`` convention. ``set`` reports its outcome as a bool so callers
can decide what a rejected write means for them.
"""

import asyncio
import fnmatch
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from ..models import KVConfig

logger = logging.getLogger(__name__)


class KVStoreError(Exception):
    """Raised when the backing file cannot be interpreted as a KV store."""
    pass


class KVStore(Protocol):
    """Protocol defining the key-value collaborator."""

    async def set(self, key: str, value: str) -> bool:
        ...

    async def get(self, key: str) -> Optional[str]:
        ...

    async def list(self, pattern: str = "*") -> List[str]:
        """Return keys matching a glob pattern, sorted."""
        ...


class InMemoryKVStore:
    """Process-local store, useful for tests and one-off runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def list(self, pattern: str = "*") -> List[str]:
        return sorted(k for k in self._data if fnmatch.fnmatchcase(k, pattern))


class JsonFileKVStore:
    """Persists all keys in a single JSON object on disk.

    Writes go through a temporary file and a rename so a crash never leaves a
    truncated store behind. An asyncio lock serializes writers within the
    process.
    """

    def __init__(self, config: KVConfig):
        self.path = Path(config.path)
        self._lock = asyncio.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise KVStoreError(f"Corrupt KV file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise KVStoreError(f"KV file {self.path} must contain a JSON object")
        return data

    def _write(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    async def set(self, key: str, value: str) -> bool:
        async with self._lock:
            try:
                await asyncio.to_thread(self._write, key, value)
            except (OSError, KVStoreError) as e:
                logger.error(f"KV write for {key} failed: {e}")
                return False
        logger.debug(f"KV set {key} ({len(value)} chars)")
        return True

    async def get(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._load)
        return data.get(key)

    async def list(self, pattern: str = "*") -> List[str]:
        data = await asyncio.to_thread(self._load)
        return sorted(k for k in data if fnmatch.fnmatchcase(k, pattern))
