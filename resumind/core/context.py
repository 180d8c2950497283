"""Capability bundle handed to the orchestrator, and per-session run locks."""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict

from ..models import AppConfig
from ..services import AnalysisService, Converter, KVStore, StorageService

logger = logging.getLogger(__name__)


class PipelineBusyError(RuntimeError):
    """Raised when a session already has a run in flight."""

    def __init__(self, session_id: str):
        super().__init__(f"A resume analysis is already running for session {session_id}")
        self.session_id = session_id


class SessionLocks:
    """One lock per session; a second run for the same session is refused.

    Locks are created lazily and dropped once released so the registry does
    not grow with every session ever seen.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def is_running(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock for the duration of a run.

        Raises:
            PipelineBusyError: If the session already holds its lock
        """
        if self.is_running(session_id):
            raise PipelineBusyError(session_id)

        lock = self._locks.setdefault(session_id, asyncio.Lock())
        await lock.acquire()
        try:
            yield
        finally:
            lock.release()
            if not lock.locked() and self._locks.get(session_id) is lock:
                del self._locks[session_id]


def generate_uuid() -> str:
    return str(uuid.uuid4())


@dataclass
class PipelineContext:
    """Collaborators and settings for a pipeline run.

    Passed explicitly so any collaborator can be swapped for a test double.
    """
    storage: StorageService
    kv: KVStore
    ai: AnalysisService
    converter: Converter
    config: AppConfig = field(default_factory=AppConfig)
    id_factory: Callable[[], str] = generate_uuid
    locks: SessionLocks = field(default_factory=SessionLocks)
