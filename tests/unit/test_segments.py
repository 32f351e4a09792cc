"""
Unit tests for the segment file layer.
"""
import asyncio
import json

import pytest

from segmon.storage.segments import SegmentStore, encoded_size, segment_file


@pytest.fixture
def segments(temp_data_dir):
    return SegmentStore(temp_data_dir, segment_size=1024)


@pytest.mark.unit
class TestSegmentStore:
    """Tests for SegmentStore."""

    def test_segment_file_name(self):
        """Test the on-disk segment file name."""
        assert segment_file(0) == "segment_0.json"
        assert segment_file(12) == "segment_12.json"

    def test_list_creates_collection_directory(self, segments, temp_data_dir):
        """Test that listing a new collection creates its directory."""
        result = asyncio.run(segments.list_segments("users"))

        assert result == []
        assert (temp_data_dir / "users").is_dir()

    def test_list_sorted_numerically(self, segments, temp_data_dir):
        """Test that segment 10 sorts after segment 2."""
        coll = temp_data_dir / "users"
        coll.mkdir()
        for i in (10, 2, 0, 1):
            (coll / f"segment_{i}.json").write_text("{}")
        (coll / "notes.txt").write_text("ignored")
        (coll / "segment_x.json").write_text("{}")

        assert asyncio.run(segments.list_segments("users")) == [0, 1, 2, 10]

    def test_read_missing_segment_is_empty(self, segments):
        """Test that a segment that was never written reads as empty."""
        assert asyncio.run(segments.read_segment("users", 3)) == {}

    def test_read_corrupt_segment_raises(self, segments, temp_data_dir):
        """Test that decode failures are not swallowed."""
        coll = temp_data_dir / "users"
        coll.mkdir()
        (coll / "segment_0.json").write_text("{not json")

        with pytest.raises(json.JSONDecodeError):
            asyncio.run(segments.read_segment("users", 0))

    def test_write_then_read(self, segments, temp_data_dir):
        """Test that a written record map reads back and is indented JSON."""
        records = {"0_a": {"id": "0_a", "name": "Zoë"}}

        asyncio.run(segments.write_segment("users", 0, records))

        assert asyncio.run(segments.read_segment("users", 0)) == records
        content = (temp_data_dir / "users" / "segment_0.json").read_text(encoding="utf-8")
        assert "\n  " in content
        assert "Zoë" in content

    def test_write_replaces_whole_file(self, segments):
        """Test that a write overwrites the previous contents."""
        asyncio.run(segments.write_segment("users", 0, {"0_a": {"id": "0_a"}, "0_b": {"id": "0_b"}}))
        asyncio.run(segments.write_segment("users", 0, {}))

        assert asyncio.run(segments.read_segment("users", 0)) == {}

    def test_atomic_write_leaves_no_temp_files(self, temp_data_dir):
        """Test the opt-in temp-file-and-rename write path."""
        segments = SegmentStore(temp_data_dir, atomic_writes=True)

        asyncio.run(segments.write_segment("users", 0, {"0_a": {"id": "0_a"}}))

        files = sorted(p.name for p in (temp_data_dir / "users").iterdir())
        assert files == ["segment_0.json"]
        assert asyncio.run(segments.read_segment("users", 0)) == {"0_a": {"id": "0_a"}}

    def test_atomic_write_failure_cleans_up(self, temp_data_dir, mocker):
        """Test that a failed atomic write removes its temp file and propagates."""
        segments = SegmentStore(temp_data_dir, atomic_writes=True)
        mocker.patch("segmon.storage.segments.os.replace", side_effect=OSError("disk full"))

        with pytest.raises(OSError, match="disk full"):
            asyncio.run(segments.write_segment("users", 0, {}))

        assert list((temp_data_dir / "users").iterdir()) == []

    def test_writable_segment_empty_collection(self, segments):
        """Test that an empty collection writes to segment 0."""
        assert asyncio.run(segments.writable_segment("users")) == 0

    def test_writable_segment_under_limit(self, segments):
        """Test that the tail segment is reused while under both limits."""
        asyncio.run(segments.write_segment("users", 0, {"0_a": {"id": "0_a"}}))

        assert asyncio.run(segments.writable_segment("users")) == 0

    def test_writable_segment_rolls_on_size(self, segments):
        """Test that a tail segment at the size limit rolls to the next index."""
        records = {f"0_{i}": {"id": f"0_{i}", "pad": "x" * 100} for i in range(10)}
        assert encoded_size(records) >= 1024
        asyncio.run(segments.write_segment("users", 0, records))

        assert asyncio.run(segments.writable_segment("users")) == 1

    def test_writable_segment_rolls_on_count(self, temp_data_dir):
        """Test that a tail segment at the item limit rolls to the next index."""
        segments = SegmentStore(temp_data_dir, segment_size=10**9, max_items_per_segment=2)
        asyncio.run(segments.write_segment("users", 0, {"0_a": {}, "0_b": {}}))

        assert asyncio.run(segments.writable_segment("users")) == 1

    def test_is_full_with_limits_switched_off(self, temp_data_dir):
        """Test that a None limit never counts as reached."""
        neither = SegmentStore(temp_data_dir, segment_size=None)
        count_only = SegmentStore(temp_data_dir, segment_size=None, max_items_per_segment=3)

        assert not neither.is_full(10**9, 10**6)
        assert not count_only.is_full(10**9, 2)
        assert count_only.is_full(0, 3)

    def test_only_tail_segment_is_considered(self, segments):
        """Test that a half-empty earlier segment is never backfilled."""
        asyncio.run(segments.write_segment("users", 0, {}))
        asyncio.run(segments.write_segment("users", 3, {"3_a": {"id": "3_a"}}))

        assert asyncio.run(segments.writable_segment("users")) == 3

    def test_stat_failure_propagates(self, segments, mocker):
        """Test that I/O errors other than a missing file reach the caller."""
        asyncio.run(segments.write_segment("users", 0, {}))
        mocker.patch.object(SegmentStore, "_size", side_effect=PermissionError("denied"))

        with pytest.raises(PermissionError):
            asyncio.run(segments.writable_segment("users"))

    def test_list_collections(self, segments):
        """Test listing collection directories."""
        asyncio.run(segments.list_segments("b"))
        asyncio.run(segments.list_segments("a"))

        assert segments.list_collections() == ["a", "b"]
