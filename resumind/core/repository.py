"""Read access to stored resume records (result view and history listing)."""

import logging
from typing import List

from pydantic import ValidationError

from ..models import ResumeRecord
from ..services import KVStore
from .records import KEY_PREFIX, record_key

logger = logging.getLogger(__name__)


class ResumeNotFoundError(KeyError):
    """Raised when no record is stored under the requested id."""
    pass


class ResumeRepository:
    """Loads ResumeRecords back out of the key-value store.

    Usage:
        repo = ResumeRepository(kv)
        record = await repo.get(record_id)
        history = await repo.list()
    """

    def __init__(self, kv: KVStore):
        self.kv = kv

    async def get(self, record_id: str) -> ResumeRecord:
        raw = await self.kv.get(record_key(record_id))
        if raw is None:
            raise ResumeNotFoundError(record_id)
        return ResumeRecord.from_json(raw)

    async def list(self, analyzed_only: bool = False) -> List[ResumeRecord]:
        """Return every stored record, skipping entries that fail to parse.

        Args:
            analyzed_only: Drop records whose feedback is still empty
        """
        records: List[ResumeRecord] = []
        for key in await self.kv.list(f"{KEY_PREFIX}*"):
            raw = await self.kv.get(key)
            if raw is None:
                continue
            try:
                record = ResumeRecord.from_json(raw)
            except (ValueError, ValidationError) as e:
                logger.warning(f"Skipping unreadable record {key}: {e}")
                continue
            if analyzed_only and not record.is_analyzed:
                continue
            records.append(record)

        logger.debug(f"Loaded {len(records)} records")
        return records
