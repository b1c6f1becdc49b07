"""
Tests for channel and user conversation memory
"""
import json
import pytest

from constants import MAX_CHANNEL_MESSAGES, MAX_RECENT_CHANNELS, MAX_USER_INTERACTIONS
from memory import ConversationMemory
from storage import WriteQueue


@pytest.fixture
def write_queue():
    return WriteQueue()


@pytest.fixture
def memory(tmp_path, write_queue, clock):
    return ConversationMemory(
        write_queue,
        channel_dir=str(tmp_path / "channels"),
        user_dir=str(tmp_path / "users"),
        cache_ttl=600,
        clock=clock,
    )


class TestChannelMemory:
    """Tests for per-channel history"""

    def test_history_is_bounded(self, memory, make_message):
        for i in range(MAX_CHANNEL_MESSAGES + 5):
            memory.add_channel_message(make_message(f"message {i}"))

        messages = memory.get_recent_messages("c1", 100)
        assert len(messages) == MAX_CHANNEL_MESSAGES
        assert messages[0]["content"] == "message 5"
        assert messages[-1]["content"] == f"message {MAX_CHANNEL_MESSAGES + 4}"

    def test_conversation_context_marks_bot(self, memory, make_message):
        memory.add_channel_message(make_message("hi paco"))
        memory.add_channel_message(make_message("hello!", author_id="bot", author_name="Paco", author_is_bot=True))

        context = memory.get_conversation_context("c1")
        assert context == "Alice: hi paco\n[BOT]Paco: hello!"

    def test_empty_channel_has_no_context(self, memory):
        assert memory.get_conversation_context("nothing-here") is None

    def test_topics_tracked(self, memory, make_message):
        memory.add_channel_message(make_message("there's a bug in the api"))
        assert "code" in memory.load_channel("c1")["topics"]

    def test_persisted_to_disk(self, memory, make_message, tmp_path):
        memory.add_channel_message(make_message("saved"))

        data = json.loads((tmp_path / "channels" / "c1.json").read_text(encoding="utf-8"))
        assert data["messages"][0]["content"] == "saved"
        assert data["channelName"] == "general"

    def test_clear_channel_memory(self, memory, make_message):
        memory.add_channel_message(make_message("forget me"))
        memory.clear_channel_memory("c1")

        assert memory.get_recent_messages("c1") == []

    def test_stale_cache_rereads_disk(self, memory, make_message, tmp_path, clock):
        """Test an entry idle past the TTL is reloaded from its file"""
        memory.add_channel_message(make_message("original"))
        path = tmp_path / "channels" / "c1.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        data["messages"][0]["content"] = "edited on disk"
        path.write_text(json.dumps(data), encoding="utf-8")

        assert memory.get_recent_messages("c1")[0]["content"] == "original"

        clock.advance(601)
        assert memory.get_recent_messages("c1")[0]["content"] == "edited on disk"

    @pytest.mark.asyncio
    async def test_pending_write_keeps_cache(self, memory, make_message, write_queue, clock):
        """Test a stale entry with an unflushed write is not replaced by older disk data"""
        memory.add_channel_message(make_message("not on disk yet"))
        cached = memory.load_channel("c1")
        assert write_queue.has_pending("channel:c1") is True

        clock.advance(601)
        assert memory.load_channel("c1") is cached

        await write_queue.flush()


class TestUserMemory:
    """Tests for per-user profiles"""

    def test_new_user_context(self, memory):
        assert memory.generate_user_context("stranger") == "New user, no previous interactions."

    def test_update_user_memory(self, memory):
        memory.update_user_memory("u1", "Alice", "general", "hello")
        memory.update_user_memory("u1", "Alice B", "dev-chat", "my python code is broken")

        user = memory.load_user("u1")
        assert user["userName"] == "Alice B"
        assert user["messageCount"] == 2
        assert user["recentChannels"] == ["dev-chat", "general"]
        assert "development" in user["preferredTopics"]

    def test_recent_channels_bounded(self, memory):
        for i in range(MAX_RECENT_CHANNELS + 3):
            memory.update_user_memory("u1", "Alice", f"channel-{i}", "hi")

        recent = memory.load_user("u1")["recentChannels"]
        assert len(recent) == MAX_RECENT_CHANNELS
        assert recent[0] == f"channel-{MAX_RECENT_CHANNELS + 2}"

    def test_interactions_newest_first(self, memory):
        for i in range(MAX_USER_INTERACTIONS + 2):
            memory.record_interaction("u1", {"type": "chat", "n": i})

        interactions = memory.load_user("u1")["interactions"]
        assert len(interactions) == MAX_USER_INTERACTIONS
        assert interactions[0]["n"] == MAX_USER_INTERACTIONS + 1
        assert "timestamp" in interactions[0]

    def test_user_context_summary(self, memory):
        memory.update_user_memory("u1", "Alice", "support", "I need help with a bug")
        memory.record_interaction("u1", {"type": "ask"})

        context = memory.generate_user_context("u1")
        assert "User often discusses: support" in context
        assert "Recently active in: #support" in context
        assert "Total messages: 1" in context
        assert "Last bot interaction: ask" in context

    def test_preferences(self, memory):
        assert memory.get_preferences("u1")["responseStyle"] == "normal"
        memory.set_preference("u1", "responseStyle", "brief")
        assert memory.get_preferences("u1")["responseStyle"] == "brief"
