from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

SEGMENT_RE = re.compile(r"^segment_(\d+)\.json$")


def segment_file(index: int) -> str:
    return f"segment_{index}.json"


def encode(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def encoded_size(obj: Any) -> int:
    """Byte length of `obj` as it would be written to a segment file."""
    return len(encode(obj).encode("utf-8"))


class SegmentStore:
    """
    JSON-on-disk segments: one directory per collection, one file per segment.

    Every write rewrites the whole segment, so the size/count limits are what
    keep the cost of a single write bounded.
    """

    def __init__(
        self,
        base_path: Path | str,
        segment_size: int | None = 50 * 1024,
        max_items_per_segment: int | None = None,
        atomic_writes: bool = False,
    ):
        self.base_path = Path(base_path)
        self.segment_size = segment_size
        self.max_items_per_segment = max_items_per_segment
        self.atomic_writes = atomic_writes

    # --- paths ---

    def collection_path(self, collection: str) -> Path:
        p = self.base_path / collection
        p.mkdir(parents=True, exist_ok=True)
        return p

    def _segment_path(self, collection: str, index: int) -> Path:
        return self.collection_path(collection) / segment_file(index)

    def list_collections(self) -> List[str]:
        if not self.base_path.is_dir():
            return []
        return sorted(p.name for p in self.base_path.iterdir() if p.is_dir())

    # --- sync primitives (run in a worker thread by the async wrappers) ---

    def _list_segments(self, collection: str) -> List[int]:
        indexes = []
        for entry in self.collection_path(collection).iterdir():
            m = SEGMENT_RE.match(entry.name)
            if m:
                indexes.append(int(m.group(1)))
        return sorted(indexes)

    def _read(self, collection: str, index: int) -> Dict[str, Any]:
        p = self._segment_path(collection, index)
        try:
            with p.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return {}

    def _write(self, collection: str, index: int, records: Dict[str, Any]):
        p = self._segment_path(collection, index)
        payload = encode(records)
        if not self.atomic_writes:
            with p.open("w", encoding="utf-8") as f:
                f.write(payload)
            return
        fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=p.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, p)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def _size(self, collection: str, index: int) -> int:
        return self._segment_path(collection, index).stat().st_size

    # --- async API ---

    async def list_segments(self, collection: str) -> List[int]:
        """Segment indexes of `collection`, ascending."""
        return await asyncio.to_thread(self._list_segments, collection)

    async def read_segment(self, collection: str, index: int) -> Dict[str, Any]:
        """Record map of a segment; a segment that was never written is empty."""
        return await asyncio.to_thread(self._read, collection, index)

    async def write_segment(self, collection: str, index: int, records: Dict[str, Any]):
        await asyncio.to_thread(self._write, collection, index, records)
        logger.debug("wrote %s/%s (%d records)", collection, segment_file(index), len(records))

    def is_full(self, size: int, count: int) -> bool:
        if self.segment_size is not None and size >= self.segment_size:
            return True
        return bool(self.max_items_per_segment) and count >= self.max_items_per_segment

    async def writable_segment(self, collection: str) -> int:
        """
        Index new documents should go to. Only the tail segment is considered:
        once it meets either limit the next index is returned, earlier segments
        are never backfilled.
        """
        segments = await self.list_segments(collection)
        if not segments:
            return 0

        last = segments[-1]
        size = await asyncio.to_thread(self._size, collection, last)
        records = await self.read_segment(collection, last)

        if self.is_full(size, len(records)):
            logger.debug("%s/%s is full, rolling to segment %d", collection, segment_file(last), last + 1)
            return last + 1
        return last
