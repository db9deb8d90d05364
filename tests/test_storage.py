"""
Wayfinder API — Collection Storage Tests
=========================================

What:  Tests for JsonFileStore and MemoryStore.
How:   JsonFileStore runs against real files under pytest's tmp_path; no
       mocking of the filesystem.
"""

import asyncio
import json

import pytest

from wayfinder.exceptions import StorageError
from wayfinder.storage import JsonFileStore, MemoryStore


class TestJsonFileStoreRead:
    """Unusable content must read as an empty collection."""

    @pytest.mark.asyncio
    async def test_missing_file_reads_empty(self, tmp_path):
        """A collection that was never written is empty, not an error."""
        store = JsonFileStore(tmp_path / "routes.json")
        assert await store.read_all() == []
        assert store.exists() is False

    @pytest.mark.asyncio
    async def test_malformed_json_reads_empty(self, tmp_path):
        """Truncated or hand-broken JSON degrades to no data."""
        path = tmp_path / "routes.json"
        path.write_text("[{not json", encoding="utf-8")
        assert await JsonFileStore(path).read_all() == []

    @pytest.mark.asyncio
    async def test_non_list_top_level_reads_empty(self, tmp_path):
        """Only a top-level JSON array is a collection."""
        path = tmp_path / "routes.json"
        path.write_text(json.dumps({"routes": []}), encoding="utf-8")
        assert await JsonFileStore(path).read_all() == []

    @pytest.mark.asyncio
    async def test_utf8_bom_is_tolerated(self, tmp_path):
        """Files saved by Windows editors start with a BOM."""
        path = tmp_path / "pois.json"
        path.write_bytes(b"\xef\xbb\xbf" + json.dumps([{"id": "p1"}]).encode("utf-8"))
        assert await JsonFileStore(path).read_all() == [{"id": "p1"}]


class TestJsonFileStoreWrite:
    """Whole-collection writes through a temp file and atomic replace."""

    @pytest.mark.asyncio
    async def test_written_records_read_back(self, tmp_path):
        """What was written is exactly what is read."""
        store = JsonFileStore(tmp_path / "routes.json")
        records = [{"id": "route_1", "name": "Καλημέρα"}, {"id": "route_2", "name": "B"}]

        await store.write_all(records)

        assert await store.read_all() == records
        assert store.exists() is True

    @pytest.mark.asyncio
    async def test_non_ascii_is_written_verbatim(self, tmp_path):
        """Greek names stay readable in the file instead of \\u escapes."""
        path = tmp_path / "routes.json"
        await JsonFileStore(path).write_all([{"name": "Ακρόπολη"}])
        assert "Ακρόπολη" in path.read_text(encoding="utf-8")

    @pytest.mark.asyncio
    async def test_creates_parent_directories(self, tmp_path):
        """A fresh data directory is created on the first write."""
        path = tmp_path / "nested" / "data" / "routes.json"
        await JsonFileStore(path).write_all([])
        assert path.is_file()

    @pytest.mark.asyncio
    async def test_leaves_no_temp_files(self, tmp_path):
        """Every temp file is swapped into place, none are left behind."""
        store = JsonFileStore(tmp_path / "routes.json")
        for i in range(3):
            await store.write_all([{"id": f"route_{i}"}])

        assert [p.name for p in tmp_path.iterdir()] == ["routes.json"]

    @pytest.mark.asyncio
    async def test_unwritable_target_raises_storage_error(self, tmp_path):
        """A directory where the file should be makes the replace fail."""
        path = tmp_path / "routes.json"
        path.mkdir()
        (path / "occupied").write_text("x")

        with pytest.raises(StorageError):
            await JsonFileStore(path).write_all([{"id": "route_1"}])

        assert not any(p.name.endswith(".tmp") for p in tmp_path.iterdir())


class TestStoreLock:
    """Stores are built at import time, before any event loop runs."""

    def test_store_built_outside_a_loop_serves_contended_writers(self, tmp_path):
        """The lock works under the loop that later runs the app."""
        store = JsonFileStore(tmp_path / "routes.json")

        async def append(i):
            async with store.lock:
                records = await store.read_all()
                records.append({"id": f"route_{i}"})
                await store.write_all(records)

        async def main():
            await asyncio.gather(*(append(i) for i in range(10)))
            return await store.read_all()

        records = asyncio.run(main())

        assert sorted(r["id"] for r in records) == sorted(f"route_{i}" for i in range(10))


class TestMemoryStore:
    """In-process store used by the rest of the suite."""

    @pytest.mark.asyncio
    async def test_callers_cannot_mutate_stored_snapshot(self):
        """Reads hand out deep copies."""
        store = MemoryStore([{"id": "p1", "tags": ["a"]}])

        records = await store.read_all()
        records[0]["tags"].append("b")
        records.append({"id": "p2"})

        assert await store.read_all() == [{"id": "p1", "tags": ["a"]}]

    @pytest.mark.asyncio
    async def test_write_replaces_collection(self):
        """Writes copy too, so the caller's list stays theirs."""
        store = MemoryStore([{"id": "p1"}])
        written = [{"id": "p2"}]

        await store.write_all(written)
        written[0]["id"] = "changed"

        assert await store.read_all() == [{"id": "p2"}]
