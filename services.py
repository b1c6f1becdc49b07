"""
CommunityOS Bot - Services
Every stateful component, built once at startup and handed to the bot and commands.
"""

from typing import Optional

from chatbot import ChatbotEngine
from chatbot_config import ChatbotConfig
from config import (
    PACO_HUB_URL, HUB_TIMEOUT, DATA_DIR, CHANNEL_MEMORY_DIR, USER_MEMORY_DIR,
    CHATBOT_CONFIG_FILE, LEADERBOARD_FILE, PERSONAS_FILE, ORG_FILE, PROVIDERS,
)
from constants import (
    RATE_LIMIT_WINDOW_SECONDS, RATE_LIMIT_MAX_REQUESTS, RESPONSE_CACHE_TTL, RESPONSE_CACHE_SWEEP_SIZE,
)
from context import ContextAssembler
from games import Leaderboard, SessionRegistry
from hub_client import HubClient
from memory import ConversationMemory
from personas import PersonaManager
from providers import BackendChain, build_backends
from rate_limiter import RateLimiter
from response_cache import ResponseCache
from storage import WriteQueue, ensure_dir
from triggers import TriggerEvaluator


class Services:
    """Container for the bot's shared state. Nothing here is a module-level singleton."""

    def __init__(
        self,
        write_queue: WriteQueue,
        chatbot_config: ChatbotConfig,
        memory: ConversationMemory,
        personas: PersonaManager,
        hub: HubClient,
        rate_limiter: RateLimiter,
        cache: ResponseCache,
        chain: BackendChain,
        chatbot: ChatbotEngine,
        games: SessionRegistry,
        leaderboard: Leaderboard,
        metrics=None,
    ):
        self.write_queue = write_queue
        self.chatbot_config = chatbot_config
        self.memory = memory
        self.personas = personas
        self.hub = hub
        self.rate_limiter = rate_limiter
        self.cache = cache
        self.chain = chain
        self.chatbot = chatbot
        self.games = games
        self.leaderboard = leaderboard
        self.metrics = metrics

    async def close(self):
        """Release network sessions and wait for pending file writes."""
        for session in list(self.games.sessions.values()):
            session.cancel()
        await self.hub.close()
        await self.write_queue.flush()


def build_services(
    metrics=None,
    data_dir: str = DATA_DIR,
    hub_url: str = PACO_HUB_URL,
    providers: Optional[dict] = None,
) -> Services:
    """Wire up the default services from config."""
    ensure_dir(data_dir)

    write_queue = WriteQueue()
    chatbot_config = ChatbotConfig(CHATBOT_CONFIG_FILE)
    memory = ConversationMemory(write_queue, CHANNEL_MEMORY_DIR, USER_MEMORY_DIR)
    personas = PersonaManager(chatbot_config, PERSONAS_FILE, ORG_FILE)
    hub = HubClient(hub_url, HUB_TIMEOUT)

    rate_limiter = RateLimiter(RATE_LIMIT_WINDOW_SECONDS, RATE_LIMIT_MAX_REQUESTS)
    cache = ResponseCache(RESPONSE_CACHE_TTL, RESPONSE_CACHE_SWEEP_SIZE)
    chain = BackendChain(
        build_backends(hub, providers if providers is not None else PROVIDERS),
        cache, rate_limiter, metrics=metrics,
    )

    chatbot = ChatbotEngine(
        memory=memory,
        chatbot_config=chatbot_config,
        personas=personas,
        triggers=TriggerEvaluator(chatbot_config),
        assembler=ContextAssembler(memory, hub, chatbot_config),
        chain=chain,
        metrics=metrics,
    )

    leaderboard = Leaderboard(write_queue, LEADERBOARD_FILE)
    games = SessionRegistry(leaderboard, metrics=metrics)

    return Services(
        write_queue=write_queue,
        chatbot_config=chatbot_config,
        memory=memory,
        personas=personas,
        hub=hub,
        rate_limiter=rate_limiter,
        cache=cache,
        chain=chain,
        chatbot=chatbot,
        games=games,
        leaderboard=leaderboard,
        metrics=metrics,
    )
