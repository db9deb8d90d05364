"""
Wayfinder API — Collection Storage
===================================

What:  Whole-collection persistence for JSON-encoded record lists.
Why:   POIs, routes and API users each live in one JSON document holding a
       list of records. Every operation reads or writes the full list.
How:   CollectionStore defines the contract; JsonFileStore keeps the list in
       a file on disk, MemoryStore keeps it in process memory (tests).

Consistency Model:
    ┌──────────┐  read_all()  ┌──────────────┐
    │ service  │◀────────────│  snapshot N   │
    │          │  write_all() │              │
    │          │────────────▶│  snapshot N+1 │  (tmp file + atomic replace)
    └──────────┘              └──────────────┘

    - Readers see the old or the new snapshot, never a half-written file:
      writes go to a sibling temp file which is then swapped in with
      os.replace (atomic on POSIX and Windows within one filesystem).
    - Each store owns one asyncio.Lock. Callers that read-modify-write MUST
      hold it for the whole sequence, otherwise two concurrent mutations
      can silently lose one update (last write wins).
    - Missing file, invalid JSON, or a non-list top level all read as an
      empty collection. The API degrades to "no data" instead of failing.
"""

import asyncio
import copy
import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiofiles
import aiofiles.os

from wayfinder.exceptions import StorageError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class CollectionStore(ABC):
    """
    Abstract interface for a single JSON collection.

    Contract:
        - read_all() never raises; unusable content reads as []
        - write_all() replaces the entire collection or raises StorageError
        - `lock` serializes read-modify-write sequences on this collection
    """

    def __init__(self) -> None:
        self.lock = asyncio.Lock()

    @abstractmethod
    async def read_all(self) -> List[Record]:
        """Return every record in the collection, in stored order."""
        ...

    @abstractmethod
    async def write_all(self, records: List[Record]) -> None:
        """Overwrite the collection with `records`."""
        ...

    @abstractmethod
    def exists(self) -> bool:
        """Whether the backing medium is present (used by /health)."""
        ...


class JsonFileStore(CollectionStore):
    """
    Collection stored as a pretty-printed JSON array in a single file.

    Args:
        path: Location of the JSON document. Parent directories are
              created on the first write.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    async def read_all(self) -> List[Record]:
        if not self.path.exists():
            return []
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8-sig") as f:
                raw = await f.read()
        except OSError as e:
            logger.warning("Could not read %s: %s", self.path, e)
            return []

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Malformed JSON in %s — treating as empty collection", self.path)
            return []

        if not isinstance(data, list):
            logger.warning("%s does not hold a JSON array — treating as empty collection", self.path)
            return []
        return data

    async def write_all(self, records: List[Record]) -> None:
        payload = json.dumps(records, ensure_ascii=False, indent=4)
        # Temp file lives next to the target so os.replace stays on one filesystem
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex[:8]}.tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
                await f.flush()
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.path, e)
            self._discard(tmp_path)
            raise StorageError(context={"path": str(self.path), "os_error": str(e)})

        logger.debug("Wrote %d records to %s", len(records), self.path)

    @staticmethod
    def _discard(tmp_path: Path) -> None:
        try:
            os.remove(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to clean up temp file %s: %s", tmp_path, e)


class MemoryStore(CollectionStore):
    """
    Collection held in process memory.

    Records are deep-copied in both directions so callers can never mutate
    the stored snapshot through a reference they hold.
    """

    def __init__(self, records: Optional[List[Record]] = None):
        super().__init__()
        self._records: List[Record] = copy.deepcopy(records or [])

    def exists(self) -> bool:
        return True

    async def read_all(self) -> List[Record]:
        return copy.deepcopy(self._records)

    async def write_all(self, records: List[Record]) -> None:
        self._records = copy.deepcopy(list(records))
