"""
CommunityOS Bot - Conversation Memory
Bounded per-channel history and per-user profiles backed by JSON files.
"""

import os
import re
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from config import CHANNEL_MEMORY_DIR, USER_MEMORY_DIR
from constants import (
    MAX_CHANNEL_MESSAGES, MAX_CHANNEL_TOPICS, MAX_USER_INTERACTIONS,
    MAX_USER_TOPICS, MAX_RECENT_CHANNELS, MEMORY_CACHE_TTL
)
from models import IncomingMessage
from storage import WriteQueue, load_json

# Channel topic -> indicator phrases
CHANNEL_TOPIC_KEYWORDS = {
    "code": ["code", "function", "bug", "error", "typescript", "javascript", "python", "api", "database"],
    "support": ["help", "issue", "problem", "fix", "broken", "not working", "error"],
    "ideas": ["idea", "suggestion", "what if", "could we", "feature", "improve"],
    "stream": ["stream", "live", "youtube", "twitch", "broadcast", "show"],
    "general": ["hey", "hello", "hi", "thanks", "cool", "nice"],
    "agent": ["agent", "paco", "bot", "ai", "assistant"],
    "project": ["project", "roadmap", "milestone", "deadline", "task"],
}

# User interest -> indicator phrases
USER_TOPIC_KEYWORDS = {
    "development": ["code", "programming", "dev", "build", "api", "database"],
    "streaming": ["stream", "live", "youtube", "twitch", "content"],
    "support": ["help", "support", "issue", "bug", "problem"],
    "career": ["job", "career", "resume", "cv", "interview"],
    "product": ["feature", "product", "roadmap", "design", "ux"],
}

_SAFE_ID = re.compile(r'[^A-Za-z0-9_-]')


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _track_topics(topics: List[str], content: str, keyword_map: Dict[str, List[str]], limit: int):
    """Append newly seen topics, dropping the oldest beyond limit."""
    content_lower = content.lower()
    for topic, keywords in keyword_map.items():
        if any(kw in content_lower for kw in keywords) and topic not in topics:
            topics.append(topic)
            if len(topics) > limit:
                topics.pop(0)


def empty_channel_memory(channel_id: str) -> dict:
    return {
        "channelId": channel_id,
        "channelName": "",
        "messages": [],
        "topics": [],
        "lastActivity": None,
        "conversationSummary": None,
    }


def empty_user_memory(user_id: str) -> dict:
    now = _now_iso()
    return {
        "userId": user_id,
        "userName": "",
        "firstSeen": now,
        "lastSeen": now,
        "messageCount": 0,
        "preferredTopics": [],
        "preferences": {
            "responseStyle": "normal",  # brief, normal, detailed
            "notifyOnMention": True,
        },
        "recentChannels": [],
        "interactions": [],
    }


class ConversationMemory:
    """Channel and user memory with an in-process cache over per-id files.

    Cached entries untouched for longer than cache_ttl are re-read from disk on
    next access, unless a background write for them is still pending.
    """

    def __init__(
        self,
        write_queue: WriteQueue,
        channel_dir: str = CHANNEL_MEMORY_DIR,
        user_dir: str = USER_MEMORY_DIR,
        cache_ttl: float = MEMORY_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.write_queue = write_queue
        self.channel_dir = channel_dir
        self.user_dir = user_dir
        self.cache_ttl = cache_ttl
        self._clock = clock
        self.channels: Dict[str, dict] = {}
        self.users: Dict[str, dict] = {}
        self._touched: Dict[str, float] = {}  # cache key -> last access

    # --- Paths / cache ---

    def _channel_path(self, channel_id: str) -> str:
        return os.path.join(self.channel_dir, f"{_SAFE_ID.sub('_', channel_id)}.json")

    def _user_path(self, user_id: str) -> str:
        return os.path.join(self.user_dir, f"{_SAFE_ID.sub('_', user_id)}.json")

    def _cached(self, cache: Dict[str, dict], key: str, entry_id: str) -> Optional[dict]:
        now = self._clock()
        if entry_id in cache:
            last = self._touched.get(key, now)
            if now - last < self.cache_ttl or self.write_queue.has_pending(key):
                self._touched[key] = now
                return cache[entry_id]
            del cache[entry_id]
        return None

    # --- Channel memory ---

    def load_channel(self, channel_id: str) -> dict:
        channel_id = str(channel_id)
        key = f"channel:{channel_id}"
        memory = self._cached(self.channels, key, channel_id)
        if memory is not None:
            return memory

        memory = empty_channel_memory(channel_id)
        saved = load_json(self._channel_path(channel_id))
        if isinstance(saved, dict) and saved:
            memory.update(saved)

        self.channels[channel_id] = memory
        self._touched[key] = self._clock()
        return memory

    def save_channel(self, channel_id: str):
        memory = self.channels.get(str(channel_id))
        if memory is not None:
            self.write_queue.submit(f"channel:{channel_id}", self._channel_path(str(channel_id)), memory)

    def add_channel_message(self, message: IncomingMessage) -> dict:
        """Store a message, keeping only the newest MAX_CHANNEL_MESSAGES."""
        memory = self.load_channel(message.channel_id)
        memory["channelName"] = message.channel_name
        memory["lastActivity"] = _now_iso()

        memory["messages"].append({
            "id": message.id,
            "userId": message.author_id,
            "userName": message.author_name,
            "content": message.content,
            "timestamp": message.created_at.isoformat(),
            "isBot": message.author_is_bot,
            "replyToId": message.reply_to_id,
        })
        if len(memory["messages"]) > MAX_CHANNEL_MESSAGES:
            memory["messages"] = memory["messages"][-MAX_CHANNEL_MESSAGES:]

        _track_topics(memory["topics"], message.content, CHANNEL_TOPIC_KEYWORDS, MAX_CHANNEL_TOPICS)

        self.save_channel(message.channel_id)
        return memory

    def get_recent_messages(self, channel_id: str, count: int = 10) -> List[dict]:
        return self.load_channel(channel_id)["messages"][-count:]

    def get_conversation_context(self, channel_id: str, max_messages: int = 10) -> Optional[str]:
        """Recent history as "[BOT]name: content" lines, or None when empty."""
        messages = self.get_recent_messages(channel_id, max_messages)
        if not messages:
            return None
        return "\n".join(
            f"{'[BOT]' if m.get('isBot') else ''}{m.get('userName')}: {m.get('content')}"
            for m in messages
        )

    def clear_channel_memory(self, channel_id: str) -> bool:
        memory = self.load_channel(channel_id)
        memory["messages"] = []
        memory["topics"] = []
        memory["conversationSummary"] = None
        self.save_channel(channel_id)
        return True

    # --- User memory ---

    def load_user(self, user_id: str) -> dict:
        user_id = str(user_id)
        key = f"user:{user_id}"
        memory = self._cached(self.users, key, user_id)
        if memory is not None:
            return memory

        memory = empty_user_memory(user_id)
        saved = load_json(self._user_path(user_id))
        if isinstance(saved, dict) and saved:
            memory.update(saved)

        self.users[user_id] = memory
        self._touched[key] = self._clock()
        return memory

    def save_user(self, user_id: str):
        memory = self.users.get(str(user_id))
        if memory is not None:
            self.write_queue.submit(f"user:{user_id}", self._user_path(str(user_id)), memory)

    def update_user_memory(self, user_id: str, user_name: str, channel_name: str, content: str) -> dict:
        memory = self.load_user(user_id)
        memory["userName"] = user_name
        memory["lastSeen"] = _now_iso()
        memory["messageCount"] += 1

        recent = memory["recentChannels"]
        if channel_name and channel_name not in recent:
            recent.insert(0, channel_name)
            del recent[MAX_RECENT_CHANNELS:]

        _track_topics(memory["preferredTopics"], content, USER_TOPIC_KEYWORDS, MAX_USER_TOPICS)

        self.save_user(user_id)
        return memory

    def record_interaction(self, user_id: str, interaction: dict) -> dict:
        """Log a bot interaction, newest first."""
        memory = self.load_user(user_id)
        memory["interactions"].insert(0, {"timestamp": _now_iso(), **interaction})
        del memory["interactions"][MAX_USER_INTERACTIONS:]
        self.save_user(user_id)
        return memory

    def get_preferences(self, user_id: str) -> dict:
        return self.load_user(user_id)["preferences"]

    def set_preference(self, user_id: str, key: str, value) -> dict:
        memory = self.load_user(user_id)
        memory["preferences"][key] = value
        self.save_user(user_id)
        return memory["preferences"]

    def get_user_summary(self, user_id: str) -> dict:
        memory = self.load_user(user_id)
        return {
            "userName": memory["userName"],
            "messageCount": memory["messageCount"],
            "firstSeen": memory["firstSeen"],
            "lastSeen": memory["lastSeen"],
            "preferredTopics": memory["preferredTopics"],
            "recentChannels": memory["recentChannels"],
            "recentInteractions": memory["interactions"][:5],
        }

    def generate_user_context(self, user_id: str) -> str:
        """One-paragraph description of the user for the prompt."""
        summary = self.get_user_summary(user_id)
        if summary["messageCount"] == 0:
            return "New user, no previous interactions."

        parts = []
        if summary["preferredTopics"]:
            parts.append(f"User often discusses: {', '.join(summary['preferredTopics'])}")
        if summary["recentChannels"]:
            parts.append(f"Recently active in: #{', #'.join(summary['recentChannels'])}")
        parts.append(f"Total messages: {summary['messageCount']}")
        if summary["recentInteractions"]:
            last = summary["recentInteractions"][0]
            parts.append(f"Last bot interaction: {last.get('type') or 'chat'}")

        return ". ".join(parts)

    def get_stats(self) -> dict:
        return {
            "cachedChannels": len(self.channels),
            "cachedUsers": len(self.users),
            "pendingWrites": self.write_queue.pending_count,
            "timestamp": _now_iso(),
        }
