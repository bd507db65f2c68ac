"""Key-value stores backing the profile cache and the audit log."""

import asyncio
import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from apply_autofill.utils.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    """Async persistent key-value store holding JSON-compatible values."""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def remove(self, key: str) -> None:
        ...


class MemoryStore:
    """In-process store, used by tests and one-shot runs."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    async def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """
    Store kept as a single JSON document on disk.

    Every write rewrites the whole document. File access runs in a worker
    thread so the event loop keeps pacing form input.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = logger.bind(component="json_file_store")

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            text = f.read()
        if not text.strip():
            return {}
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError(f"Store file {self.path} does not hold a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str, ensure_ascii=False)
        tmp_path.replace(self.path)

    async def get(self, key: str) -> Optional[Any]:
        data = await asyncio.to_thread(self._read)
        return data.get(key)

    async def set(self, key: str, value: Any) -> None:
        def update() -> None:
            data = self._read()
            data[key] = value
            self._write(data)

        await asyncio.to_thread(update)
        self.logger.debug("Stored key", key=key)

    async def remove(self, key: str) -> None:
        def update() -> None:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)

        await asyncio.to_thread(update)
