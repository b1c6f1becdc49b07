"""
Tests for context assembly
"""
import pytest
from unittest.mock import Mock, AsyncMock

from context import (
    ContextAssembler, build_full_prompt, detect_topic, extract_keywords, format_kb_context, strip_mentions,
)


class TestHelpers:
    """Tests for the text helpers"""

    def test_strip_mentions(self):
        assert strip_mentions("<@123> hello <@!456>") == "hello"
        assert strip_mentions("<@123>") == ""

    @pytest.mark.parametrize("text,topic", [
        ("the api is broken", "code"),
        ("can you help, I'm stuck", "support"),
        ("what if we had dark mode", "feature"),
        ("are you going live on twitch", "streaming"),
        ("anyone hiring? updating my resume", "career"),
        ("what's on the roadmap", "product"),
        ("hey everyone", "general"),
        ("lorem ipsum", "general"),
    ])
    def test_detect_topic(self, text, topic):
        assert detect_topic(text) == topic

    def test_extract_keywords(self):
        keywords = extract_keywords("How do I reset the reset password on my account?")
        assert keywords == ["reset", "password", "account"]

    def test_format_kb_context(self):
        assert format_kb_context([]) == ""

        text = format_kb_context([{"title": "Resetting passwords", "summary": "Go to settings."}])
        assert text.startswith("\n\n## Relevant Knowledge Base Content\n")
        assert "### Resetting passwords\nGo to settings...." in text

    def test_full_prompt_sections(self):
        prompt = build_full_prompt("hello", "general", "Bob: hi", "New user, no previous interactions.")
        assert prompt == (
            "## Recent Conversation in #general\nBob: hi\n\n"
            "## About this User\nNew user, no previous interactions.\n\n"
            "## User Message\nhello"
        )

    def test_full_prompt_without_history(self):
        assert build_full_prompt("hello", "general", None, None) == "## User Message\nhello"


class TestContextAssembler:
    """Tests for ContextAssembler"""

    def _assembler(self, use_kb=True, results=None):
        memory = Mock()
        memory.get_conversation_context.return_value = "Bob: earlier message"
        memory.generate_user_context.return_value = "Total messages: 3"
        hub = Mock()
        hub.search_kb = AsyncMock(return_value=results or [])
        config = Mock(use_kb_context=use_kb)
        return ContextAssembler(memory, hub, config), hub

    @pytest.mark.asyncio
    async def test_support_topic_searches_kb(self):
        assembler, hub = self._assembler(results=[{"title": "Deploys", "content": "Check the logs."}])

        context = await assembler.assemble("c1", "support", "u1", "<@1> my deployment is broken please help fix")

        hub.search_kb.assert_awaited_once_with("deployment broken please", 3)
        assert context.topic == "support"
        assert context.message == "my deployment is broken please help fix"
        assert context.prompt.startswith("my deployment is broken please help fix\n\n## Relevant Knowledge Base Content")
        assert "## Recent Conversation in #support\nBob: earlier message" in context.full_prompt
        assert "## About this User\nTotal messages: 3" in context.full_prompt

    @pytest.mark.asyncio
    async def test_other_topics_skip_kb(self):
        assembler, hub = self._assembler()

        context = await assembler.assemble("c1", "general", "u1", "what if we added polls")

        hub.search_kb.assert_not_awaited()
        assert context.kb_context == ""
        assert context.prompt == "what if we added polls"

    @pytest.mark.asyncio
    async def test_kb_disabled(self):
        assembler, hub = self._assembler(use_kb=False)

        await assembler.assemble("c1", "support", "u1", "help, the login is broken")

        hub.search_kb.assert_not_awaited()
