from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import IdAllocationError, IdentifierExhaustedError
from .gate import ConcurrencyGate
from .ids import IdAllocator, generate_token, group_ids_by_segment, segment_index_from_id
from .merge import deep_merge
from .query import FilterOverride, Normaliser, QueryEngine
from .segments import SegmentStore, encoded_size

logger = logging.getLogger(__name__)


class Segmon:
    """
    Segmented JSON document store.

    Each collection is a directory of `segment_<N>.json` files. New documents
    go to the tail segment until it reaches `segment_size` bytes or
    `max_items_per_segment` documents, then a new segment is started. Ids are
    `<segment>_<token>`, so a lookup by id reads exactly one file.

    Writes to one collection are serialized; reads take no lock.
    """

    def __init__(
        self,
        base_path: Path | str = "./segmon-data",
        segment_size: int | None = 50 * 1024,
        max_items_per_segment: int | None = None,
        on_filter: Optional[FilterOverride] = None,
        id_length: int = 6,
        id_generator: Callable[[int], str] = generate_token,
        normalise_document: Optional[Normaliser] = None,
        atomic_writes: bool = False,
    ):
        self.segments = SegmentStore(
            base_path,
            segment_size=segment_size,
            max_items_per_segment=max_items_per_segment,
            atomic_writes=atomic_writes,
        )
        self.ids = IdAllocator(token_generator=id_generator, token_length=id_length)
        self.query = QueryEngine(normalise_document=normalise_document, on_filter=on_filter)
        self.gate = ConcurrencyGate()

    @property
    def base_path(self) -> Path:
        return self.segments.base_path

    def list_collections(self) -> List[str]:
        return self.segments.list_collections()

    # --- writes ---

    async def create(self, collection: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        async with self.gate.hold(collection):
            seg = await self.segments.writable_segment(collection)
            records = await self.segments.read_segment(collection, seg)
            try:
                doc_id = self.ids.allocate(seg, records)
            except IdAllocationError as e:
                raise IdentifierExhaustedError(collection, str(e)) from e

            doc = {**data, "id": doc_id}
            records[doc_id] = doc
            await self.segments.write_segment(collection, seg, records)
            return doc

    async def bulk_create(self, collection: str, docs: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """
        Create many documents, writing each segment once. The running size and
        count are tracked so the batch rolls over to a fresh segment as soon as
        either limit is met.
        """
        if not isinstance(docs, (list, tuple)):
            return []

        async with self.gate.hold(collection):
            created = []
            seg = await self.segments.writable_segment(collection)
            records = await self.segments.read_segment(collection, seg)
            size = encoded_size(records)
            count = len(records)

            for data in docs:
                try:
                    doc_id = self.ids.allocate(seg, records)
                except IdAllocationError as e:
                    raise IdentifierExhaustedError(collection, str(e)) from e

                doc = {**data, "id": doc_id}
                records[doc_id] = doc
                created.append(doc)
                size += encoded_size({doc_id: doc})
                count += 1

                if self.segments.is_full(size, count):
                    await self.segments.write_segment(collection, seg, records)
                    seg += 1
                    records = {}
                    # an empty segment still encodes as "{}"
                    size = encoded_size(records)
                    count = 0

            if records:
                await self.segments.write_segment(collection, seg, records)
            return created

    async def update(self, collection: str, doc_id: str, updates: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        seg = segment_index_from_id(doc_id)
        if seg is None:
            return None

        async with self.gate.hold(collection):
            records = await self.segments.read_segment(collection, seg)
            if doc_id not in records:
                return None

            records[doc_id] = self._merge(records[doc_id], updates, doc_id)
            await self.segments.write_segment(collection, seg, records)
            return records[doc_id]

    async def bulk_update(self, collection: str, updates: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Apply `{"id", "data"}` entries; ids that do not exist are skipped."""
        grouped: Dict[int, list] = {}
        for entry in updates or []:
            seg = segment_index_from_id(entry.get("id"))
            if seg is not None:
                grouped.setdefault(seg, []).append(entry)

        async with self.gate.hold(collection):
            updated = []
            for seg, items in grouped.items():
                records = await self.segments.read_segment(collection, seg)
                changed = False
                for item in items:
                    doc_id = item["id"]
                    if doc_id not in records:
                        continue
                    records[doc_id] = self._merge(records[doc_id], item.get("data"), doc_id)
                    updated.append(records[doc_id])
                    changed = True
                if changed:
                    await self.segments.write_segment(collection, seg, records)
            return updated

    async def delete(self, collection: str, doc_id: str) -> bool:
        seg = segment_index_from_id(doc_id)
        if seg is None:
            return False

        async with self.gate.hold(collection):
            records = await self.segments.read_segment(collection, seg)
            if doc_id not in records:
                return False
            del records[doc_id]
            await self.segments.write_segment(collection, seg, records)
            return True

    async def bulk_delete(self, collection: str, ids: Iterable[str]) -> int:
        grouped = group_ids_by_segment(ids or [])
        deleted = 0

        async with self.gate.hold(collection):
            for seg, id_list in grouped.items():
                records = await self.segments.read_segment(collection, seg)
                removed = 0
                for doc_id in id_list:
                    if records.pop(doc_id, None) is not None:
                        removed += 1
                if removed:
                    await self.segments.write_segment(collection, seg, records)
                    deleted += removed
        logger.debug("bulk_delete %s: %d removed", collection, deleted)
        return deleted

    # --- reads (no gate) ---

    async def find(
        self,
        collection: str,
        filter: Mapping[str, Any] | None = None,
        *,
        limit: int | None = None,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Full scan in segment then insertion order; offset/limit count matches only."""
        results = []
        if limit is not None and limit <= 0:
            return results
        skipped = 0

        for seg in await self.segments.list_segments(collection):
            records = await self.segments.read_segment(collection, seg)
            for doc in records.values():
                if not self.query.matches(doc, filter):
                    continue
                if skipped < offset:
                    skipped += 1
                    continue
                results.append(doc)
                if limit is not None and len(results) >= limit:
                    return results
        return results

    async def find_by_id(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        seg = segment_index_from_id(doc_id)
        if seg is None:
            return None
        records = await self.segments.read_segment(collection, seg)
        return records.get(doc_id)

    async def bulk_find_by_ids(self, collection: str, ids: Iterable[str]) -> List[Dict[str, Any]]:
        """Found documents only, grouped by segment rather than in input order."""
        results = []
        for seg, id_list in group_ids_by_segment(ids or []).items():
            records = await self.segments.read_segment(collection, seg)
            results.extend(records[doc_id] for doc_id in id_list if doc_id in records)
        return results

    @staticmethod
    def _merge(doc: Dict[str, Any], updates: Any, doc_id: str) -> Dict[str, Any]:
        merged = deep_merge(doc, updates)
        # the id is tied to the segment; a partial cannot move or rename it
        merged["id"] = doc_id
        return merged
