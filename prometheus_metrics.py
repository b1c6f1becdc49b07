"""
CommunityOS Bot - Prometheus Metrics
Counters and histograms for the chatbot pipeline and games.
"""

from prometheus_client import Counter, Histogram, Gauge, Info, start_http_server
from typing import Optional
import logger as log


# --- Pipeline Metrics ---

messages_processed = Counter(
    'communityos_messages_processed_total',
    'Total number of user messages seen by the chatbot',
    ['bot_name']
)

trigger_decisions = Counter(
    'communityos_trigger_decisions_total',
    'Trigger evaluations by reason',
    ['bot_name', 'reason']  # reason: mentioned, reply_chain, question, keyword, random, no_trigger, ...
)

responses_generated = Counter(
    'communityos_responses_generated_total',
    'Total number of replies sent',
    ['bot_name', 'outcome']  # outcome: live, cached, fallback, greeting, rate_limit
)

response_time = Histogram(
    'communityos_response_duration_seconds',
    'Time from trigger to reply in seconds',
    ['bot_name', 'outcome'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0]
)


# --- Backend Metrics ---

api_requests = Counter(
    'communityos_api_requests_total',
    'Backend attempts by tier and status',
    ['provider_tier', 'status']  # status: success, error, timeout
)

api_request_duration = Histogram(
    'communityos_api_request_duration_seconds',
    'Backend attempt duration in seconds',
    ['provider_tier'],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0]
)

cache_lookups = Counter(
    'communityos_cache_lookups_total',
    'Response cache lookups',
    ['result']  # result: hit, miss
)

rate_limit_hits = Counter(
    'communityos_rate_limit_hits_total',
    'Number of rate limit hits',
    ['bot_name', 'limit_type']
)


# --- Game Metrics ---

games_total = Counter(
    'communityos_games_total',
    'Game sessions by type and lifecycle event',
    ['game_type', 'event']  # event: started, won, lost, timed_out, force_ended
)

active_games = Gauge(
    'communityos_active_games',
    'Game sessions currently running',
    ['bot_name']
)


# --- Bot Status ---

errors_total = Counter(
    'communityos_errors_total',
    'Total number of errors',
    ['bot_name', 'error_type']
)

bot_status = Info(
    'communityos_bot_info',
    'Bot information and status',
    ['bot_name']
)


# --- Metrics Manager ---

class MetricsManager:
    """Records pipeline and game metrics for one bot."""

    def __init__(self, bot_name: str, metrics_port: int = 8000):
        self.bot_name = bot_name
        self.metrics_port = metrics_port
        self._started = False

    def start_metrics_server(self):
        """Start the Prometheus metrics HTTP server."""
        if self._started:
            return

        try:
            start_http_server(self.metrics_port)
            self._started = True
            log.info(f"Prometheus metrics server started on port {self.metrics_port}")
        except OSError as e:
            log.error(f"Failed to start metrics server: {e}")

    # --- Pipeline ---

    def record_message(self):
        messages_processed.labels(bot_name=self.bot_name).inc()

    def record_trigger(self, reason: str):
        trigger_decisions.labels(bot_name=self.bot_name, reason=reason).inc()

    def record_response(self, outcome: str, duration_seconds: float):
        """Record a reply sent, by outcome."""
        responses_generated.labels(bot_name=self.bot_name, outcome=outcome).inc()
        response_time.labels(bot_name=self.bot_name, outcome=outcome).observe(duration_seconds)

    # --- Backends ---

    def record_api_request(self, provider_tier: str, status: str, duration_seconds: float):
        """Record one backend attempt."""
        api_requests.labels(provider_tier=provider_tier, status=status).inc()
        api_request_duration.labels(provider_tier=provider_tier).observe(duration_seconds)

    def record_cache_lookup(self, hit: bool):
        cache_lookups.labels(result='hit' if hit else 'miss').inc()

    def record_rate_limit_hit(self, limit_type: str):
        rate_limit_hits.labels(bot_name=self.bot_name, limit_type=limit_type).inc()

    # --- Games ---

    def record_game(self, game_type: str, event: str):
        games_total.labels(game_type=game_type, event=event).inc()

    def update_active_games(self, count: int):
        active_games.labels(bot_name=self.bot_name).set(count)

    # --- Status ---

    def record_error(self, error_type: str):
        errors_total.labels(bot_name=self.bot_name, error_type=error_type).inc()

    def update_bot_status(self, online: bool, guilds: Optional[int] = None):
        bot_status.labels(bot_name=self.bot_name).info({
            'online': str(online),
            'guilds': str(guilds if guilds is not None else 0),
        })
