"""
Tests for the chatbot pipeline
"""
import random
import pytest
from unittest.mock import Mock, AsyncMock

from chatbot import ChatbotEngine, GREETING, RATE_LIMITED, RESPONSE
from chatbot_config import ChatbotConfig
from context import ContextAssembler
from memory import ConversationMemory
from models import AgentId
from personas import PersonaManager, GREETINGS
from providers import GenerationResult
from storage import WriteQueue
from triggers import TriggerEvaluator, MENTIONED, REPLY_CHAIN, QUESTION


class Harness:
    """A chatbot engine with real state and a mocked backend chain"""

    def __init__(self, tmp_path, result=None):
        self.write_queue = WriteQueue()
        config = ChatbotConfig(str(tmp_path / "chatbot_config.json"))
        self.memory = ConversationMemory(
            self.write_queue,
            channel_dir=str(tmp_path / "channels"),
            user_dir=str(tmp_path / "users"),
        )
        personas = PersonaManager(
            config,
            personas_file=str(tmp_path / "personas_by_agent.json"),
            org_file=str(tmp_path / "org.json"),
            rng=random.Random(7),
        )
        self.hub = Mock()
        self.hub.search_kb = AsyncMock(return_value=[])
        self.chain = Mock()
        self.chain.generate = AsyncMock(
            return_value=result or GenerationResult(success=True, response="Here you go!", provider="hub")
        )
        self.engine = ChatbotEngine(
            memory=self.memory,
            chatbot_config=config,
            personas=personas,
            triggers=TriggerEvaluator(config, random_source=lambda: 1.0),
            assembler=ContextAssembler(self.memory, self.hub, config),
            chain=self.chain,
        )


@pytest.fixture
def harness(tmp_path):
    return Harness(tmp_path)


class TestChatbotEngine:
    """Tests for ChatbotEngine.process_message"""

    @pytest.mark.asyncio
    async def test_bot_messages_stored_but_ignored(self, harness, make_message):
        reply = await harness.engine.process_message(
            make_message("I'm a bot", author_id="b1", author_name="Paco", author_is_bot=True, mentions_bot=True)
        )

        assert reply is None
        assert harness.memory.get_recent_messages("c1")[0]["isBot"] is True
        harness.chain.generate.assert_not_awaited()
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_no_trigger_stays_quiet(self, harness, make_message):
        reply = await harness.engine.process_message(make_message("just chilling", channel_name="dev-chat"))

        assert reply is None
        assert harness.memory.load_user("u1")["messageCount"] == 1
        harness.chain.generate.assert_not_awaited()
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_bare_mention_gets_greeting(self, harness, make_message):
        reply = await harness.engine.process_message(
            make_message("<@123>", channel_name="support", mentions_bot=True)
        )

        assert reply.kind == GREETING
        assert reply.content in GREETINGS[AgentId.SUPPORT_SHERIFF]
        assert reply.trigger == MENTIONED
        harness.chain.generate.assert_not_awaited()
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_response_uses_channel_agent(self, harness, make_message):
        reply = await harness.engine.process_message(
            make_message("<@123> my login is broken", channel_name="support", mentions_bot=True)
        )

        assert reply.kind == RESPONSE
        assert reply.content == "Here you go!"
        assert reply.agent_id is AgentId.SUPPORT_SHERIFF
        assert reply.provider == "hub"
        assert reply.suggested_agent is None

        request = harness.chain.generate.await_args[0][0]
        assert request.agent_id == "support-sheriff"
        assert request.channel_name == "support"
        assert request.prompt == "my login is broken"
        assert "## User Message\nmy login is broken" in request.full_prompt
        assert request.system_prompt.startswith("You are Support Sheriff")
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_suggests_specialist(self, harness, make_message):
        reply = await harness.engine.process_message(make_message("can someone help with my code?"))

        assert reply.trigger == QUESTION
        assert reply.agent_id is AgentId.MAIN
        assert reply.suggested_agent is AgentId.CODER
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_reply_to_someone_else_is_ignored(self, harness, make_message):
        checker = AsyncMock(return_value=False)

        reply = await harness.engine.process_message(
            make_message("thanks", channel_name="dev-chat", reply_to_id="m0"), checker
        )

        assert reply is None
        checker.assert_awaited_once_with("m0")
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_reply_to_bot_is_answered(self, harness, make_message):
        reply = await harness.engine.process_message(
            make_message("thanks", channel_name="dev-chat", reply_to_id="m0"), AsyncMock(return_value=True)
        )

        assert reply.kind == RESPONSE
        assert reply.trigger == REPLY_CHAIN
        assert reply.agent_id is AgentId.CODER
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_reply_without_checker_is_ignored(self, harness, make_message):
        reply = await harness.engine.process_message(make_message("thanks", channel_name="dev-chat", reply_to_id="m0"))
        assert reply is None
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_rate_limited(self, tmp_path, make_message):
        harness = Harness(tmp_path, GenerationResult(
            success=False, response="slow down", error="rate_limited", retry_after_ms=1500
        ))

        reply = await harness.engine.process_message(make_message("paco, what's new?"))

        assert reply.kind == RATE_LIMITED
        assert reply.retry_after_seconds == 2
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_hub_agent_name_shown(self, tmp_path, make_message):
        harness = Harness(tmp_path, GenerationResult(
            success=True, response="On it.", provider="hub", agent_name="Paco Prime"
        ))

        reply = await harness.engine.process_message(make_message("paco, what's new?"))

        assert reply.agent_name == "Paco Prime"
        await harness.write_queue.flush()

    @pytest.mark.asyncio
    async def test_interaction_recorded(self, harness, make_message):
        await harness.engine.process_message(make_message("is the stream tonight?"))

        interaction = harness.memory.load_user("u1")["interactions"][0]
        assert interaction["type"] == "chat"
        assert interaction["channel"] == "general"
        assert interaction["trigger"] == QUESTION
        assert interaction["success"] is True
        await harness.write_queue.flush()

    def test_status(self, harness):
        harness.chain.cache.stats.return_value = {"size": 0}
        harness.chain.rate_limiter = []
        harness.chain.status = {"hub": "ok"}

        status = harness.engine.get_status()
        assert status["enabled"] is True
        assert status["backends"] == {"hub": "ok"}
        assert status["rateLimitedUsers"] == 0
