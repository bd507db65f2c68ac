"""Property-based tests for the key-value stores and the fill audit log."""

import asyncio
import json

import pytest
from hypothesis import given, settings, strategies as st

from apply_autofill.core.models import FillLogEntry, FillOptions
from apply_autofill.storage.audit import FILL_LOG_KEY, FillLog
from apply_autofill.storage.store import JsonFileStore, MemoryStore


def entry(n: int) -> FillLogEntry:
    return FillLogEntry(
        url=f"https://jobs.example.com/apply/{n}",
        domain="jobs.example.com",
        filled_count=n,
        error_count=0,
        success=True,
    )


async def append_many(log: FillLog, count: int) -> None:
    for n in range(count):
        await log.append(entry(n))


class TestFillLogProperties:
    """Capacity and ordering of the audit log."""

    @given(count=st.integers(min_value=0, max_value=120))
    @settings(max_examples=30, deadline=None)
    def test_log_never_exceeds_capacity(self, count):
        log = FillLog(MemoryStore(), capacity=50)

        asyncio.run(append_many(log, count))
        entries = asyncio.run(log.entries())

        assert len(entries) == min(count, 50)
        assert [e.filled_count for e in entries] == list(range(count - 1, max(count - 51, -1), -1))

    @pytest.mark.asyncio
    async def test_oldest_entry_evicted_after_capacity(self):
        log = FillLog(MemoryStore(), capacity=50)

        await append_many(log, 51)
        entries = await log.entries()

        assert len(entries) == 50
        assert entries[0].filled_count == 50
        assert entries[-1].filled_count == 1

    @pytest.mark.asyncio
    async def test_entries_limit_and_clear(self):
        store = MemoryStore()
        log = FillLog(store, capacity=5)
        await append_many(log, 3)

        assert [e.filled_count for e in await log.entries(limit=2)] == [2, 1]

        await log.clear()
        assert await log.entries() == []
        assert await store.get(FILL_LOG_KEY) is None

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            FillLog(MemoryStore(), capacity=-1)

    @pytest.mark.asyncio
    async def test_entry_round_trips_options(self):
        log = FillLog(MemoryStore())
        original = entry(3).model_copy(update={"options": FillOptions(skip_optional=True)})

        await log.append(original)
        stored = (await log.entries())[0]

        assert stored.options.skip_optional is True
        assert stored.timestamp == original.timestamp


class TestStores:
    """Memory and JSON file stores."""

    @pytest.mark.asyncio
    async def test_memory_store_copies_values(self):
        store = MemoryStore()
        value = {"autoFillEnabled": True}
        await store.set("settings", value)
        value["autoFillEnabled"] = False

        assert await store.get("settings") == {"autoFillEnabled": True}
        await store.remove("settings")
        assert await store.get("settings") is None
        await store.remove("settings")

    @pytest.mark.asyncio
    async def test_json_file_store_persists(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        store = JsonFileStore(path)

        assert await store.get("userData") is None

        await store.set("userData", {"firstName": "Jane"})
        await store.set("settings", {"autoFillEnabled": False})

        reopened = JsonFileStore(path)
        assert await reopened.get("userData") == {"firstName": "Jane"}
        assert json.loads(path.read_text(encoding="utf-8"))["settings"] == {"autoFillEnabled": False}

        await reopened.remove("userData")
        assert await store.get("userData") is None
        assert await store.get("settings") == {"autoFillEnabled": False}

    @pytest.mark.asyncio
    async def test_json_file_store_rejects_non_object(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(ValueError):
            await JsonFileStore(path).get("userData")

    @pytest.mark.asyncio
    async def test_fill_log_on_json_file(self, tmp_path):
        log = FillLog(JsonFileStore(tmp_path / "store.json"), capacity=3)

        await append_many(log, 5)

        assert [e.filled_count for e in await log.entries()] == [4, 3, 2]
