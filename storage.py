"""
CommunityOS Bot - Storage
JSON file helpers and a per-key serialized background write queue.
"""

import asyncio
import json
import os
from collections import defaultdict
from typing import Dict, List, Set, Tuple

import logger as log


def ensure_dir(path: str):
    """Create a directory if it doesn't exist."""
    if path and not os.path.exists(path):
        os.makedirs(path, exist_ok=True)


def load_json(filepath: str, default=None):
    """Load a JSON file, returning default when missing or unreadable."""
    if default is None:
        default = {}
    if os.path.exists(filepath):
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            log.warn(f"Could not read {filepath}: {e}")
            return default
    return default


def save_json(filepath: str, data):
    """Write data as JSON, replacing the file in one step."""
    write_text(filepath, json.dumps(data, indent=2, ensure_ascii=False))


def write_text(filepath: str, payload: str):
    ensure_dir(os.path.dirname(filepath))
    tmp_path = f"{filepath}.tmp"
    with open(tmp_path, 'w', encoding='utf-8') as f:
        f.write(payload)
    os.replace(tmp_path, filepath)


class WriteQueue:
    """Serializes file writes per key without blocking the caller.

    Each submit snapshots the data immediately. Writes for the same key run
    one at a time in submission order, and a backlog collapses to its newest
    snapshot since every payload is a whole file.
    """

    def __init__(self):
        self.queues: Dict[str, List[Tuple[str, str]]] = defaultdict(list)
        self.processing: Dict[str, bool] = defaultdict(bool)
        self._tasks: Set[asyncio.Task] = set()
        self.failures = 0

    def submit(self, key: str, filepath: str, data):
        """Queue a write of data to filepath under key."""
        payload = json.dumps(data, indent=2, ensure_ascii=False)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (startup / scripts): write inline
            self._write(key, filepath, payload)
            return

        self.queues[key].append((filepath, payload))
        if not self.processing[key]:
            self.processing[key] = True
            task = loop.create_task(self._process_queue(key))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def has_pending(self, key: str) -> bool:
        return bool(self.queues.get(key)) or self.processing.get(key, False)

    async def _process_queue(self, key: str):
        try:
            while self.queues[key]:
                filepath, payload = self.queues[key][-1]
                self.queues[key].clear()
                await asyncio.to_thread(self._write, key, filepath, payload)
        finally:
            self.processing[key] = False
            # New writes may have arrived while the last one was finishing
            if self.queues[key]:
                self.processing[key] = True
                task = asyncio.get_running_loop().create_task(self._process_queue(key))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

    def _write(self, key: str, filepath: str, payload: str):
        try:
            write_text(filepath, payload)
        except OSError as e:
            self.failures += 1
            log.error(f"Background save failed for {key}: {e}")

    async def flush(self):
        """Wait until every queued write has landed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @property
    def pending_count(self) -> int:
        return sum(len(q) for q in self.queues.values()) + sum(1 for v in self.processing.values() if v)
