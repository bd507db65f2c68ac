"""Capped, newest-first log of fill executions."""

from typing import List, Optional

from apply_autofill.config import settings
from apply_autofill.core.models import FillLogEntry
from apply_autofill.storage.store import KeyValueStore
from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)

FILL_LOG_KEY = "autoFillLog"


class FillLog:
    """Audit log persisted under one store key; the oldest entries drop off silently."""

    def __init__(self, store: KeyValueStore, capacity: Optional[int] = None, key: str = FILL_LOG_KEY):
        self.store = store
        self.capacity = capacity or settings.audit_log_capacity
        if self.capacity < 1:
            raise ValueError("capacity must be positive")
        self.key = key
        self.logger = logger.bind(component="fill_log")

    async def _load_raw(self) -> list:
        raw = await self.store.get(self.key)
        return raw if isinstance(raw, list) else []

    async def append(self, entry: FillLogEntry) -> None:
        """Insert an entry at the front, keeping at most `capacity` entries."""
        raw = await self._load_raw()
        raw.insert(0, entry.model_dump(mode="json"))
        del raw[self.capacity:]
        await self.store.set(self.key, raw)
        self.logger.debug("Fill log entry recorded", entries=len(raw), success=entry.success)

    async def entries(self, limit: Optional[int] = None) -> List[FillLogEntry]:
        """Entries newest first."""
        raw = await self._load_raw()
        if limit is not None:
            raw = raw[:limit]
        return [FillLogEntry.model_validate(item) for item in raw]

    async def clear(self) -> None:
        await self.store.remove(self.key)
        self.logger.info("Fill log cleared")
