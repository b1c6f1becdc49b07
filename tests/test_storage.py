"""
Tests for JSON storage helpers and the background write queue
"""
import json
import pytest

from storage import WriteQueue, load_json, save_json


class TestJsonHelpers:
    """Tests for load_json / save_json"""

    def test_missing_file_returns_default(self, tmp_path):
        assert load_json(str(tmp_path / "missing.json")) == {}
        assert load_json(str(tmp_path / "missing.json"), default=[]) == []

    def test_invalid_json_returns_default(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        assert load_json(str(path)) == {}

    def test_save_creates_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "data.json"
        save_json(str(path), {"name": "Paco", "emoji": "🎯"})

        assert load_json(str(path)) == {"name": "Paco", "emoji": "🎯"}
        assert not (tmp_path / "nested" / "dir" / "data.json.tmp").exists()


class TestWriteQueue:
    """Tests for WriteQueue"""

    def test_writes_inline_without_event_loop(self, tmp_path):
        """Test submit outside a running loop writes immediately"""
        queue = WriteQueue()
        path = tmp_path / "inline.json"

        queue.submit("inline", str(path), {"a": 1})

        assert json.loads(path.read_text(encoding="utf-8")) == {"a": 1}
        assert queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_last_write_wins(self, tmp_path):
        """Test rapid writes for one key land in order with the newest data"""
        queue = WriteQueue()
        path = tmp_path / "data.json"

        for i in range(10):
            queue.submit("data", str(path), {"version": i})
        assert queue.has_pending("data") is True

        await queue.flush()

        assert json.loads(path.read_text(encoding="utf-8")) == {"version": 9}
        assert queue.has_pending("data") is False
        assert queue.pending_count == 0

    @pytest.mark.asyncio
    async def test_submit_snapshots_data(self, tmp_path):
        """Test later mutations don't leak into an already-queued write"""
        queue = WriteQueue()
        path = tmp_path / "snap.json"
        data = {"count": 1}

        queue.submit("snap", str(path), data)
        data["count"] = 99
        await queue.flush()

        assert json.loads(path.read_text(encoding="utf-8")) == {"count": 1}

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, tmp_path):
        queue = WriteQueue()
        queue.submit("a", str(tmp_path / "a.json"), {"key": "a"})
        queue.submit("b", str(tmp_path / "b.json"), {"key": "b"})

        await queue.flush()

        assert load_json(str(tmp_path / "a.json")) == {"key": "a"}
        assert load_json(str(tmp_path / "b.json")) == {"key": "b"}

    def test_failed_write_is_counted(self, tmp_path):
        """Test a write into an unusable path is logged and counted, not raised"""
        blocker = tmp_path / "blocker"
        blocker.write_text("i am a file", encoding="utf-8")
        queue = WriteQueue()

        queue.submit("bad", str(blocker / "data.json"), {"a": 1})

        assert queue.failures == 1
