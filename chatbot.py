"""
CommunityOS Bot - Chatbot Engine
Trigger -> context -> persona -> backend chain, for one incoming message at a time.
"""

import time
from typing import Awaitable, Callable, Optional

from context import ContextAssembler, strip_mentions
from models import AgentId, IncomingMessage
from personas import PersonaManager, get_agent_emoji, suggest_agent_for_topic
from providers import BackendChain, GenerationRequest
from triggers import TriggerEvaluator, REPLY_CHAIN
import logger as log

# Reply kinds
GREETING = "greeting"
RATE_LIMITED = "rate_limit"
RESPONSE = "response"


class ChatbotReply:
    """What the bot should send back. Rendering is up to the Discord layer."""

    def __init__(
        self,
        kind: str,
        content: str,
        agent_id: AgentId,
        agent_name: str,
        emoji: str,
        trigger: str,
        cached: bool = False,
        fallback: bool = False,
        suggested_agent: Optional[AgentId] = None,
        retry_after_ms: int = 0,
        provider: Optional[str] = None,
    ):
        self.kind = kind
        self.content = content
        self.agent_id = agent_id
        self.agent_name = agent_name
        self.emoji = emoji
        self.trigger = trigger
        self.cached = cached
        self.fallback = fallback
        self.suggested_agent = suggested_agent
        self.retry_after_ms = retry_after_ms
        self.provider = provider

    @property
    def retry_after_seconds(self) -> int:
        return -(-self.retry_after_ms // 1000)

    def __repr__(self):
        return f"<ChatbotReply {self.kind} agent={self.agent_id.value} trigger={self.trigger}>"


class ChatbotEngine:
    def __init__(
        self,
        memory,
        chatbot_config,
        personas: PersonaManager,
        triggers: TriggerEvaluator,
        assembler: ContextAssembler,
        chain: BackendChain,
        metrics=None,
    ):
        self.memory = memory
        self.config = chatbot_config
        self.personas = personas
        self.triggers = triggers
        self.assembler = assembler
        self.chain = chain
        self.metrics = metrics

    async def process_message(
        self,
        message: IncomingMessage,
        is_reply_to_bot: Optional[Callable[[str], Awaitable[bool]]] = None,
    ) -> Optional[ChatbotReply]:
        """Run the pipeline for one message. Returns None when the bot stays quiet.

        Every message is stored in channel memory, including the bot's own, so
        later prompts can show them as [BOT] lines. is_reply_to_bot resolves a
        referenced message id to whether the bot wrote it.
        """
        self.memory.add_channel_message(message)
        if message.author_is_bot:
            return None

        self.memory.update_user_memory(
            message.author_id, message.author_name, message.channel_name, message.content
        )
        if self.metrics:
            self.metrics.record_message()

        decision = self.triggers.evaluate(message)
        if self.metrics:
            self.metrics.record_trigger(decision.reason)
        if not decision.should_respond:
            return None

        if decision.reason == REPLY_CHAIN:
            if is_reply_to_bot is None or not await is_reply_to_bot(message.reply_to_id):
                return None

        log.debug(f"Responding in #{message.channel_name} ({decision.reason})", "Chatbot")
        start = time.monotonic()

        persona = self.personas.get_channel_persona(message.channel_name)
        emoji = get_agent_emoji(persona.agent_id)

        if not strip_mentions(message.content):
            reply = ChatbotReply(
                GREETING, self.personas.greeting(message.channel_name),
                persona.agent_id, persona.display_name, emoji, decision.reason,
            )
            self._record_response(reply, start)
            return reply

        context = await self.assembler.assemble(
            message.channel_id, message.channel_name, message.author_id, message.content
        )
        system_prompt = self.personas.system_prompt(message.channel_name, message.channel_topic)
        suggested = suggest_agent_for_topic(context.message)

        result = await self.chain.generate(GenerationRequest(
            prompt=context.prompt,
            full_prompt=context.full_prompt,
            system_prompt=system_prompt,
            channel_name=message.channel_name,
            agent_id=persona.agent_id.value,
            user_id=message.author_id,
        ))

        self.memory.record_interaction(message.author_id, {
            "type": "chat",
            "channel": message.channel_name,
            "topic": context.topic,
            "agentId": persona.agent_id.value,
            "trigger": decision.reason,
            "success": result.success,
        })

        if result.rate_limited:
            reply = ChatbotReply(
                RATE_LIMITED, result.response, persona.agent_id, persona.display_name, emoji,
                decision.reason, retry_after_ms=result.retry_after_ms,
            )
            self._record_response(reply, start)
            return reply

        if suggested in (persona.agent_id, AgentId.MAIN):
            suggested = None

        reply = ChatbotReply(
            RESPONSE, result.response, persona.agent_id, result.agent_name or persona.display_name, emoji,
            decision.reason,
            cached=result.cached, fallback=result.fallback, suggested_agent=suggested,
            provider=result.provider,
        )
        self._record_response(reply, start)
        return reply

    def _record_response(self, reply: ChatbotReply, start: float):
        if not self.metrics:
            return
        if reply.kind == RESPONSE:
            outcome = "fallback" if reply.fallback else "cached" if reply.cached else "live"
        else:
            outcome = reply.kind
        self.metrics.record_response(outcome, time.monotonic() - start)

    def get_status(self) -> dict:
        cache_stats = self.chain.cache.stats()
        return {
            "enabled": self.config.enabled,
            "cache": cache_stats,
            "rateLimitedUsers": len(self.chain.rate_limiter),
            "backends": dict(self.chain.status),
            "memory": self.memory.get_stats(),
        }
