"""
Wayfinder API — Route Repository
=================================

What:  Record-level operations on the route collection.
How:   Every operation is "load full collection, touch one element, persist
       full collection". Mutations hold the store's lock for the whole
       sequence so concurrent requests cannot overwrite each other's changes.

Transaction shape (insert/update/delete):
    async with store.lock:
        records = read_all()
        ... change one record ...
        write_all(records)

If the callback passed to insert()/update() raises, nothing is written.
"""

import logging
from typing import Callable, List, Optional, Set

from wayfinder.storage import CollectionStore, Record

logger = logging.getLogger(__name__)


def _index_of(records: List[Record], route_id: str) -> Optional[int]:
    for i, record in enumerate(records):
        if isinstance(record, dict) and record.get("id") == route_id:
            return i
    return None


class RouteRepository:
    """Insertion-ordered route records backed by a CollectionStore."""

    def __init__(self, store: CollectionStore):
        self.store = store

    async def all(self) -> List[Record]:
        return [r for r in await self.store.read_all() if isinstance(r, dict)]

    async def find(self, route_id: str) -> Optional[Record]:
        records = await self.store.read_all()
        i = _index_of(records, route_id)
        return None if i is None else records[i]

    async def insert(self, build: Callable[[Set[str]], Record]) -> Record:
        """
        Append a new record.

        Args:
            build: Receives the ids already in use and returns the record
                   to append. Runs under the lock so the id check and the
                   write are one step.
        """
        async with self.store.lock:
            records = await self.store.read_all()
            taken = {r.get("id") for r in records if isinstance(r, dict)}
            record = build(taken)
            records.append(record)
            await self.store.write_all(records)
        return record

    async def update(
        self, route_id: str, mutate: Callable[[Record], Record]
    ) -> Optional[Record]:
        """
        Replace one record in place with mutate(current).

        Returns the new record, or None when `route_id` is absent (mutate
        is not called in that case). Position in the collection is kept.
        """
        async with self.store.lock:
            records = await self.store.read_all()
            i = _index_of(records, route_id)
            if i is None:
                return None
            updated = mutate(dict(records[i]))
            records[i] = updated
            await self.store.write_all(records)
        return updated

    async def delete(self, route_id: str) -> bool:
        async with self.store.lock:
            records = await self.store.read_all()
            i = _index_of(records, route_id)
            if i is None:
                return False
            del records[i]
            await self.store.write_all(records)
        return True
