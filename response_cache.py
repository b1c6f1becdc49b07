"""
CommunityOS Bot - Response Cache
Short-lived memo of backend answers keyed by agent, channel and prompt.
"""

import time
from typing import Callable, Dict, Optional

from constants import RESPONSE_CACHE_TTL, RESPONSE_CACHE_SWEEP_SIZE, CACHE_KEY_PROMPT_LENGTH


def make_cache_key(agent_id: str, channel_name: str, prompt: str) -> str:
    """Lowercased, trimmed prompt prefix under the agent and channel.

    Only the first CACHE_KEY_PROMPT_LENGTH characters take part, so two long
    prompts sharing that prefix share an entry.
    """
    normalized = prompt.lower().strip()[:CACHE_KEY_PROMPT_LENGTH]
    return f"{agent_id}:{channel_name}:{normalized}"


class ResponseCache:
    """TTL cache with lazy eviction on read and a sweep once it grows large."""

    def __init__(
        self,
        ttl: float = RESPONSE_CACHE_TTL,
        sweep_size: int = RESPONSE_CACHE_SWEEP_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.sweep_size = sweep_size
        self._clock = clock
        self._entries: Dict[str, dict] = {}  # key -> {response, timestamp}
        self.hits = 0
        self.misses = 0

    def get(self, agent_id: str, channel_name: str, prompt: str) -> Optional[str]:
        key = make_cache_key(agent_id, channel_name, prompt)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if self._clock() - entry["timestamp"] >= self.ttl:
            del self._entries[key]
            self.misses += 1
            return None

        self.hits += 1
        return entry["response"]

    def put(self, agent_id: str, channel_name: str, prompt: str, response: str):
        key = make_cache_key(agent_id, channel_name, prompt)
        self._entries[key] = {"response": response, "timestamp": self._clock()}

        if len(self._entries) > self.sweep_size:
            self._sweep()

    def _sweep(self):
        now = self._clock()
        expired = [k for k, v in self._entries.items() if now - v["timestamp"] >= self.ttl]
        for key in expired:
            del self._entries[key]

    def clear(self) -> int:
        """Drop everything. Returns how many entries were removed."""
        count = len(self._entries)
        self._entries.clear()
        return count

    def stats(self) -> dict:
        return {"size": len(self._entries), "hits": self.hits, "misses": self.misses}

    def __len__(self):
        return len(self._entries)
