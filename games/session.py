"""
CommunityOS Bot - Game Sessions
Base state machine shared by every game, and the registry of live sessions.
"""

import asyncio
import inspect
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from models import GameType
import logger as log


class GameState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    WON = "won"
    LOST = "lost"
    TIMED_OUT = "timed_out"
    FORCE_ENDED = "force_ended"


TERMINAL_STATES = (GameState.WON, GameState.LOST, GameState.TIMED_OUT, GameState.FORCE_ENDED)


# --- Errors ---

class GameError(Exception):
    """Base for game errors shown back to the user."""


class GameAlreadyActive(GameError):
    def __init__(self, game_type: GameType):
        super().__init__(f"A {game_type.display_name} game is already in progress in this channel!")
        self.game_type = game_type


class NoActiveGame(GameError):
    def __init__(self, game_type: GameType):
        super().__init__(f"No {game_type.display_name} game in progress!")
        self.game_type = game_type


class GameCooldown(GameError):
    def __init__(self, seconds: int):
        super().__init__(f"Please wait {seconds} seconds between starting new games.")
        self.seconds = seconds


# --- Events ---

class GameEvent:
    """Something a session wants announced. kind names it; data carries the details."""

    def __init__(self, kind: str, session: "GameSession", **data):
        self.kind = kind
        self.session = session
        self.data = data

    def __getitem__(self, key):
        return self.data[key]

    def get(self, key, default=None):
        return self.data.get(key, default)

    def __repr__(self):
        return f"<GameEvent {self.session.game_type.value}:{self.kind}>"


class GameResult:
    """A leaderboard entry produced when a session ends."""

    def __init__(self, user_id: str, name: str, points: int, is_win: bool):
        self.user_id = str(user_id)
        self.name = name
        self.points = points
        self.is_win = is_win

    def __repr__(self):
        return f"<GameResult {self.name} {self.points} win={self.is_win}>"


# --- Session ---

class GameSession:
    """Idle -> Active -> Won | Lost | TimedOut | ForceEnded.

    A session holds at most one timer. arm_timer() replaces any pending one,
    finishing cancels it, and on_timeout() only runs while still Active.
    Subclasses override on_timeout() to advance their own phases.
    """

    game_type: GameType = None

    def __init__(
        self,
        channel_id: str,
        key: Optional[str] = None,
        listener: Optional[Callable[[GameEvent], object]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.channel_id = str(channel_id)
        self.key = str(key) if key is not None else self.channel_id
        self.listener = listener
        self.clock = clock
        self.state = GameState.IDLE
        self.started_at: Optional[float] = None
        self.results: List[GameResult] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._on_finish: Optional[Callable[["GameSession"], None]] = None
        self._tasks = set()

    @property
    def is_active(self) -> bool:
        return self.state is GameState.ACTIVE

    @property
    def has_timer(self) -> bool:
        return self._timer is not None

    def event(self, kind: str, **data) -> GameEvent:
        return GameEvent(kind, self, **data)

    # --- Lifecycle ---

    def start(self) -> GameEvent:
        """Move to Active and return the opening announcement."""
        if self.state is not GameState.IDLE:
            raise GameError("Session was already started")
        self.state = GameState.ACTIVE
        self.started_at = self.clock()
        return self.on_start()

    def on_start(self) -> GameEvent:
        return self.event("started")

    def finish(self, state: GameState, event: Optional[GameEvent] = None) -> Optional[GameEvent]:
        """Retire the session. Cancels the timer; only the first call has any effect."""
        if self.state in TERMINAL_STATES:
            return None
        self._cancel_timer()
        self.state = state
        if self._on_finish is not None:
            self._on_finish(self)
        return event

    def cancel(self) -> bool:
        """Force-end from outside (moderator command). Returns False if already over."""
        if not self.is_active:
            return False
        self.finish(GameState.FORCE_ENDED)
        return True

    # --- Timer ---

    def arm_timer(self, delay: float):
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(delay, self._fire)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self):
        self._timer = None
        if not self.is_active:
            return
        try:
            self.on_timeout()
        except Exception as e:
            log.error(f"{self.game_type.display_name} timer failed in {self.channel_id}: {e}", "Games")
            self.finish(GameState.FORCE_ENDED)

    def on_timeout(self):
        """Default: the game ran out of time."""
        self.emit(self.finish(GameState.TIMED_OUT, self.event("timeout")))

    # --- Announcements ---

    def emit(self, event: Optional[GameEvent]):
        """Hand an event to the listener. Coroutine listeners run as tasks."""
        if event is None or self.listener is None:
            return
        result = self.listener(event)
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def elapsed(self, since: Optional[float] = None) -> float:
        start = self.started_at if since is None else since
        return self.clock() - start if start is not None else 0.0

    def __repr__(self):
        return f"<{type(self).__name__} {self.key} {self.state.value}>"


# --- Registry ---

class SessionRegistry:
    """Live sessions keyed by (game type, key), plus per-user start cooldowns."""

    def __init__(self, leaderboard, metrics=None, clock: Callable[[], float] = time.monotonic):
        self.leaderboard = leaderboard
        self.metrics = metrics
        self.clock = clock
        self.sessions: Dict[Tuple[GameType, str], GameSession] = {}
        self._cooldowns: Dict[str, float] = {}

    def get(self, game_type: GameType, key: str) -> Optional[GameSession]:
        return self.sessions.get((game_type, str(key)))

    def is_active(self, game_type: GameType, key: str) -> bool:
        return self.get(game_type, key) is not None

    def start(
        self,
        session: GameSession,
        user_id: Optional[str] = None,
        cooldown: float = 0,
    ) -> GameEvent:
        """Register and start a session.

        Raises GameAlreadyActive (leaving the live one alone), or GameCooldown
        when user_id started the same game less than cooldown seconds ago.
        """
        slot = (session.game_type, session.key)
        if slot in self.sessions:
            raise GameAlreadyActive(session.game_type)
        if user_id is not None and cooldown:
            self.check_cooldown(user_id, session.game_type, cooldown)

        self.sessions[slot] = session
        session._on_finish = self._retire
        opening = session.start()

        if self.metrics:
            self.metrics.record_game(session.game_type.value, "started")
            self.metrics.update_active_games(len(self.sessions))
        log.info(f"{session.game_type.display_name} started in {session.channel_id}", "Games")
        return opening

    def _retire(self, session: GameSession):
        slot = (session.game_type, session.key)
        if self.sessions.get(slot) is session:
            del self.sessions[slot]
        if session.results:
            self.record_results(session.game_type, session.results)
        if self.metrics:
            self.metrics.record_game(session.game_type.value, session.state.value)
            self.metrics.update_active_games(len(self.sessions))
        log.debug(f"{session.game_type.display_name} in {session.channel_id} ended: {session.state.value}", "Games")

    def record_results(self, game_type: GameType, results: List[GameResult]):
        for result in results:
            self.leaderboard.update_score(game_type, result.user_id, result.name, result.points, result.is_win)

    def in_channel(self, channel_id: str) -> List[GameSession]:
        channel_id = str(channel_id)
        return [s for s in self.sessions.values() if s.channel_id == channel_id]

    def end_channel(self, channel_id: str) -> List[GameType]:
        """Force-end every session in a channel. Returns the game types that were stopped."""
        ended = []
        for session in self.in_channel(channel_id):
            if session.cancel():
                ended.append(session.game_type)
        return ended

    # --- Cooldowns ---

    def check_cooldown(self, user_id: str, game_type: GameType, seconds: float):
        """Raise GameCooldown if the user started this game too recently, else start the clock."""
        key = f"{user_id}-{game_type.value}"
        now = self.clock()
        last = self._cooldowns.get(key)
        if last is not None and now - last < seconds:
            raise GameCooldown(int(seconds))
        self._cooldowns[key] = now

    def __len__(self):
        return len(self.sessions)
