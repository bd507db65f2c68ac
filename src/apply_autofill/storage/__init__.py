"""Local persistence for the cached profile and the fill audit log."""

from apply_autofill.storage.audit import FillLog
from apply_autofill.storage.store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = ["FillLog", "JsonFileStore", "KeyValueStore", "MemoryStore"]
