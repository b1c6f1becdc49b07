"""
Tests for the game session state machine and registry
"""
import asyncio
import pytest
from unittest.mock import Mock

from games import (
    GameSession, GameState, GameResult, SessionRegistry, HangmanSession,
    GameAlreadyActive, GameCooldown, GameError,
)
from models import GameType


class PlainSession(GameSession):
    """A session with no timer of its own"""

    game_type = GameType.TRIVIA


class QuizLikeSession(GameSession):
    game_type = GameType.QUIZ


class TimedSession(GameSession):
    game_type = GameType.NUMBER_GUESS

    def __init__(self, channel_id, delay=0.01, **kwargs):
        super().__init__(channel_id, **kwargs)
        self.delay = delay

    def on_start(self):
        self.arm_timer(self.delay)
        return self.event("started")


class BrokenTimerSession(TimedSession):
    def on_timeout(self):
        raise RuntimeError("boom")


@pytest.fixture
def leaderboard():
    return Mock()


@pytest.fixture
def registry(leaderboard, clock):
    return SessionRegistry(leaderboard, clock=clock)


class TestRegistry:
    """Tests for session exclusivity and bookkeeping"""

    def test_one_session_per_game_and_channel(self, registry):
        first = PlainSession("c1")
        registry.start(first)

        with pytest.raises(GameAlreadyActive) as exc:
            registry.start(PlainSession("c1"))

        assert "already in progress" in str(exc.value)
        assert registry.get(GameType.TRIVIA, "c1") is first
        assert first.is_active

    def test_other_channels_and_games_allowed(self, registry):
        registry.start(PlainSession("c1"))
        registry.start(PlainSession("c2"))
        registry.start(QuizLikeSession("c1"))

        assert len(registry) == 3
        assert len(registry.in_channel("c1")) == 2

    def test_finish_retires_and_records(self, registry, leaderboard):
        session = PlainSession("c1")
        registry.start(session)
        session.results = [GameResult("u1", "Alice", 40, True)]

        session.finish(GameState.WON)

        assert len(registry) == 0
        leaderboard.update_score.assert_called_once_with(GameType.TRIVIA, "u1", "Alice", 40, True)

    def test_finish_only_once(self, registry, leaderboard):
        session = PlainSession("c1")
        registry.start(session)
        session.results = [GameResult("u1", "Alice", 40, True)]

        session.finish(GameState.WON)
        assert session.finish(GameState.LOST) is None
        assert session.state is GameState.WON
        assert leaderboard.update_score.call_count == 1

    def test_start_twice_rejected(self):
        session = PlainSession("c1")
        session.start()
        with pytest.raises(GameError):
            session.start()

    def test_end_channel(self, registry):
        registry.start(PlainSession("c1"))
        registry.start(QuizLikeSession("c1"))
        registry.start(PlainSession("c2"))

        ended = registry.end_channel("c1")

        assert set(ended) == {GameType.TRIVIA, GameType.QUIZ}
        assert len(registry) == 1
        assert registry.end_channel("c1") == []

    def test_metrics_updated(self, leaderboard):
        metrics = Mock()
        registry = SessionRegistry(leaderboard, metrics=metrics)
        session = PlainSession("c1")

        registry.start(session)
        metrics.record_game.assert_called_with("trivia", "started")
        metrics.update_active_games.assert_called_with(1)

        session.cancel()
        metrics.record_game.assert_called_with("trivia", "force_ended")
        metrics.update_active_games.assert_called_with(0)


class TestCooldowns:
    """Tests for per-user start cooldowns"""

    def test_cooldown_blocks_restart(self, registry, clock):
        first = PlainSession("c1")
        registry.start(first, user_id="u1", cooldown=30)
        first.cancel()

        with pytest.raises(GameCooldown) as exc:
            registry.start(PlainSession("c1"), user_id="u1", cooldown=30)
        assert str(exc.value) == "Please wait 30 seconds between starting new games."

        clock.advance(31)
        registry.start(PlainSession("c1"), user_id="u1", cooldown=30)

    def test_other_users_not_affected(self, registry):
        first = PlainSession("c1")
        registry.start(first, user_id="u1", cooldown=30)
        first.cancel()

        registry.start(PlainSession("c1"), user_id="u2", cooldown=30)

    def test_active_game_reported_before_cooldown(self, registry):
        registry.start(PlainSession("c1"), user_id="u1", cooldown=30)

        with pytest.raises(GameAlreadyActive):
            registry.start(PlainSession("c1"), user_id="u1", cooldown=30)


class TestTimers:
    """Tests for the single-timer contract"""

    @pytest.mark.asyncio
    async def test_timer_expiry(self, registry):
        events = []
        session = HangmanSession("c1", "h1", "Host", word="python", idle_timeout=0.01, listener=events.append)
        registry.start(session)

        await asyncio.sleep(0.05)

        assert session.state is GameState.TIMED_OUT
        assert events[-1].kind == "timeout"
        assert events[-1]["word"] == "python"
        assert len(registry) == 0
        assert session.has_timer is False

    @pytest.mark.asyncio
    async def test_cancel_stops_timer(self, registry):
        events = []
        session = TimedSession("c1", delay=0.01, listener=events.append)
        registry.start(session)
        assert session.has_timer is True

        assert session.cancel() is True
        await asyncio.sleep(0.05)

        assert session.state is GameState.FORCE_ENDED
        assert session.has_timer is False
        assert events == []
        assert session.cancel() is False

    @pytest.mark.asyncio
    async def test_rearming_replaces_timer(self, registry):
        session = TimedSession("c1", delay=10)
        registry.start(session)
        first = session._timer

        session.arm_timer(10)

        assert first.cancelled()
        assert session.has_timer is True
        session.cancel()

    @pytest.mark.asyncio
    async def test_async_listener_runs_as_task(self, registry):
        received = []

        async def listener(event):
            received.append(event.kind)

        registry.start(TimedSession("c1", delay=0.01, listener=listener))
        await asyncio.sleep(0.05)

        assert received == ["timeout"]

    @pytest.mark.asyncio
    async def test_failing_timeout_force_ends(self, registry):
        session = BrokenTimerSession("c1", delay=0.01)
        registry.start(session)

        await asyncio.sleep(0.05)

        assert session.state is GameState.FORCE_ENDED
        assert len(registry) == 0
