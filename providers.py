"""
CommunityOS Bot - Response Backends
Hub -> Anthropic -> OpenRouter -> static fallback, with rate limiting and caching.
"""

import asyncio
import logging
import time
from typing import Optional

import anthropic
from openai import AsyncOpenAI

from config import PROVIDERS, API_TIMEOUT, DEFAULT_MAX_TOKENS, OPENROUTER_HEADERS, PACO_HUB_URL
from constants import LINKS, USER_FRIENDLY_ERRORS
from hub_client import HubClient, DEFAULT_REPLY
from rate_limiter import RateLimiter
from response_cache import ResponseCache

logger = logging.getLogger("providers")


class GenerationRequest:
    """Everything a backend needs to answer one user message.

    prompt is the user's text (plus any KB excerpts) and keys the cache;
    full_prompt is the assembled context actually sent to the model.
    """

    def __init__(
        self,
        prompt: str,
        full_prompt: str,
        system_prompt: str,
        channel_name: str,
        agent_id: str,
        user_id: str,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ):
        self.prompt = prompt
        self.full_prompt = full_prompt
        self.system_prompt = system_prompt
        self.channel_name = channel_name
        self.agent_id = agent_id
        self.user_id = user_id
        self.max_tokens = max_tokens


class GenerationResult:
    def __init__(
        self,
        success: bool,
        response: str,
        cached: bool = False,
        fallback: bool = False,
        error: Optional[str] = None,
        retry_after_ms: int = 0,
        provider: Optional[str] = None,
        agent_name: Optional[str] = None,
    ):
        self.success = success
        self.response = response
        self.cached = cached
        self.fallback = fallback
        self.error = error
        self.retry_after_ms = retry_after_ms
        self.provider = provider
        self.agent_name = agent_name

    @property
    def rate_limited(self) -> bool:
        return self.error == "rate_limited"

    def __repr__(self):
        return (f"<GenerationResult success={self.success} provider={self.provider} "
                f"cached={self.cached} fallback={self.fallback} error={self.error}>")


# --- Backends ---
# generate() returns the reply text, or a BackendReply when the backend names the agent

class BackendReply:
    def __init__(self, text: str, agent_name: Optional[str] = None):
        self.text = text
        self.agent_name = agent_name


class HubProvider:
    """Primary backend: the Hub's agent interaction endpoint."""

    name = "hub"

    def __init__(self, hub_client: HubClient):
        self.hub = hub_client

    async def generate(self, request: GenerationRequest) -> BackendReply:
        data = await self.hub.interact(
            agent_id=request.agent_id,
            message=request.full_prompt,
            system_prompt=request.system_prompt,
            context={
                "source": "discord-chatbot",
                "userId": request.user_id,
                "channelName": request.channel_name,
                "maxTokens": request.max_tokens,
            },
        )
        # The Hub echoes the agent id when it has no display name
        agent_name = data.get("agent_name")
        if agent_name == request.agent_id:
            agent_name = None
        return BackendReply(data["response"], agent_name)


class AnthropicProvider:
    """Direct Anthropic Messages API."""

    name = "anthropic"

    def __init__(self, api_key: str, model: str, timeout: float = API_TIMEOUT):
        self.model = model
        self.client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout)

    async def generate(self, request: GenerationRequest) -> str:
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=request.max_tokens,
            system=request.system_prompt,
            messages=[{"role": "user", "content": request.full_prompt}],
        )
        if response.content:
            return response.content[0].text or DEFAULT_REPLY
        return DEFAULT_REPLY


class OpenRouterProvider:
    """OpenRouter through the OpenAI-compatible chat completions API."""

    name = "openrouter"

    def __init__(self, api_key: str, model: str, base_url: str, timeout: float = API_TIMEOUT):
        self.model = model
        self.client = AsyncOpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=timeout,
            default_headers=OPENROUTER_HEADERS,
        )

    async def generate(self, request: GenerationRequest) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=request.max_tokens,
            messages=[
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.full_prompt},
            ],
        )
        content = response.choices[0].message.content if response.choices else None
        return content or DEFAULT_REPLY


# --- Static fallback ---

def static_fallback(prompt: str, hub_url: str = PACO_HUB_URL) -> str:
    """Canned help text chosen by intent when no backend answered."""
    prompt_lower = prompt.lower()

    if "help" in prompt_lower or "how do i" in prompt_lower:
        return (
            "I'd love to help! Here are some options:\n\n"
            "- Use `/kb <query>` to search the knowledge base\n"
            "- Use `/ask paco <question>` for a direct answer\n"
            "- Use `/ask <agent> <question>` to ask a specific agent\n"
            f"- Check the [Paco Hub]({hub_url}) for more resources\n\n"
            "What specifically are you looking for?"
        )

    if "bug" in prompt_lower or "error" in prompt_lower or "broken" in prompt_lower:
        return (
            "I see you might be experiencing an issue. Here's how to get help:\n\n"
            "1. Check #bug-reports for similar issues\n"
            "2. Use `/ticket <description>` to create a support ticket\n"
            "3. Include steps to reproduce, expected behavior, and actual behavior\n\n"
            "Our QA Guardian will review it!"
        )

    if "stream" in prompt_lower or "live" in prompt_lower:
        return (
            "Looking for stream info?\n\n"
            "- Check #stream-schedule for upcoming streams\n"
            f"- YouTube: {LINKS['youtube']}\n"
            f"- Twitch: {LINKS['twitch']}"
        )

    return (
        "Thanks for your message! I'm currently in fallback mode, but I can still help:\n\n"
        "- Use `/kb <query>` to search knowledge base\n"
        "- Use `/ask paco <question>` for a direct answer\n"
        f"- Check [Paco Hub]({hub_url}) for more options"
    )


# --- Chain ---

class BackendChain:
    """Tries each backend in order until one answers."""

    def __init__(
        self,
        backends: list,
        cache: ResponseCache,
        rate_limiter: RateLimiter,
        metrics=None,
        timeout: float = API_TIMEOUT,
    ):
        self.backends = backends
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.metrics = metrics
        self.timeout = timeout
        self.status = {b.name: "unknown" for b in backends}

        logger.info(f"Backend chain: {[b.name for b in backends] + ['static']}")

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        rate = self.rate_limiter.check_limit(request.user_id)
        if not rate.allowed:
            if self.metrics:
                self.metrics.record_rate_limit_hit("user")
            return GenerationResult(
                success=False,
                response=USER_FRIENDLY_ERRORS["rate_limit"].format(seconds=rate.retry_after_seconds),
                error="rate_limited",
                retry_after_ms=rate.retry_after_ms,
            )

        cached = self.cache.get(request.agent_id, request.channel_name, request.prompt)
        if self.metrics:
            self.metrics.record_cache_lookup(cached is not None)
        if cached is not None:
            return GenerationResult(success=True, response=cached, cached=True, provider="cache")

        for backend in self.backends:
            start = time.monotonic()
            logger.info(f"[{backend.name}] Attempting agent={request.agent_id} channel=#{request.channel_name}")
            try:
                reply = await asyncio.wait_for(backend.generate(request), timeout=self.timeout)
            except asyncio.TimeoutError:
                self.status[backend.name] = "timeout"
                self._record(backend.name, "timeout", start)
                logger.error(f"[{backend.name}] ✗ TIMEOUT after {self.timeout}s")
                continue
            except Exception as e:
                self.status[backend.name] = f"error: {str(e)[:50]}"
                self._record(backend.name, "error", start)
                logger.error(f"[{backend.name}] ✗ ERROR: {e}")
                continue

            if not isinstance(reply, BackendReply):
                reply = BackendReply(reply)

            self.status[backend.name] = "ok"
            self._record(backend.name, "success", start)
            logger.info(f"[{backend.name}] ✓ Success! Response length: {len(reply.text)} chars")
            self.cache.put(request.agent_id, request.channel_name, request.prompt, reply.text)
            return GenerationResult(
                success=True, response=reply.text, provider=backend.name, agent_name=reply.agent_name
            )

        logger.warning("All backends failed, using static fallback")
        return GenerationResult(
            success=True, response=static_fallback(request.prompt), fallback=True, provider="static"
        )

    def _record(self, tier: str, status: str, start: float):
        if self.metrics:
            self.metrics.record_api_request(tier, status, time.monotonic() - start)

    def get_status(self) -> str:
        """Formatted status of all backends."""
        lines = ["**Backend Status:**"]
        for backend in self.backends:
            status = self.status.get(backend.name, "unknown")
            emoji = "✅" if status == "ok" else "❓" if status == "unknown" else "❌"
            lines.append(f"• {backend.name}: {emoji} {status}")
        lines.append("• static: ✅ always available")
        return "\n".join(lines)


def build_backends(hub_client: HubClient, providers: dict = PROVIDERS) -> list:
    """Hub first, then every direct provider that has a key."""
    backends = [HubProvider(hub_client)]

    anthropic_cfg = providers.get("anthropic", {})
    if anthropic_cfg.get("key"):
        backends.append(AnthropicProvider(anthropic_cfg["key"], anthropic_cfg["model"]))
    else:
        logger.warning("[anthropic] ✗ No API key set - provider will be skipped")

    openrouter_cfg = providers.get("openrouter", {})
    if openrouter_cfg.get("key"):
        backends.append(OpenRouterProvider(
            openrouter_cfg["key"], openrouter_cfg["model"], openrouter_cfg["url"]
        ))
    else:
        logger.warning("[openrouter] ✗ No API key set - provider will be skipped")

    return backends
