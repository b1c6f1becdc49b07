"""
CommunityOS Bot - Quick Games
Rock paper scissors, number guessing and the free-answer quiz.
"""

import random
import time
from typing import Dict, List, Optional, Tuple

from constants import (
    NUMBER_GUESS_MAX, NUMBER_GUESS_ATTEMPTS, NUMBER_GUESS_IDLE_TIMEOUT, RPS_CHALLENGE_TIMEOUT,
    QUIZ_START_DELAY, QUIZ_QUESTION_TIME, QUIZ_ROUND_GAP, QUIZ_DEFAULT_ROUNDS,
)
from models import GameType
from games.session import GameSession, GameState, GameResult, GameEvent


# --- Rock Paper Scissors ---

RPS_CHOICES = {
    "rock": {"emoji": "🪨", "beats": ("scissors",), "name": "Rock"},
    "paper": {"emoji": "📄", "beats": ("rock",), "name": "Paper"},
    "scissors": {"emoji": "✂️", "beats": ("paper",), "name": "Scissors"},
}

RPS_EXTENDED_CHOICES = {
    "rock": {**RPS_CHOICES["rock"], "beats": ("scissors", "lizard")},
    "paper": {**RPS_CHOICES["paper"], "beats": ("rock", "spock")},
    "scissors": {**RPS_CHOICES["scissors"], "beats": ("paper", "lizard")},
    "lizard": {"emoji": "🦎", "beats": ("paper", "spock"), "name": "Lizard"},
    "spock": {"emoji": "🖖", "beats": ("rock", "scissors"), "name": "Spock"},
}

WIN = "win"
LOSE = "lose"
DRAW = "draw"

# Points for the player vs the bot
RPS_BOT_POINTS = {WIN: 25, DRAW: 10, LOSE: 0}
RPS_PVP_WIN_POINTS = 50
RPS_PVP_TIE_POINTS = 10


def rps_choices(extended: bool = False) -> dict:
    return RPS_EXTENDED_CHOICES if extended else RPS_CHOICES


def rps_result(first: str, second: str, extended: bool = False) -> str:
    """Outcome for the first player. Raises ValueError on an unknown choice."""
    choices = rps_choices(extended)
    if first not in choices or second not in choices:
        raise ValueError(f"Unknown choice: {first if first not in choices else second}")
    if first == second:
        return DRAW
    return WIN if second in choices[first]["beats"] else LOSE


def play_rps_vs_bot(choice: str, bot_choice: str, extended: bool = False) -> Tuple[str, int]:
    """Resolve a round against the bot: (outcome, points)."""
    outcome = rps_result(choice, bot_choice, extended)
    return outcome, RPS_BOT_POINTS[outcome]


class RpsChallengeSession(GameSession):
    """Player vs player. Keyed by a synthetic game id so a channel can host several."""

    game_type = GameType.RPS

    def __init__(
        self,
        channel_id: str,
        challenger_id: str,
        challenger_name: str,
        opponent_id: str,
        opponent_name: str,
        extended: bool = False,
        timeout: float = RPS_CHALLENGE_TIMEOUT,
        **kwargs,
    ):
        kwargs.setdefault("key", f"{channel_id}-{int(time.time() * 1000)}")
        super().__init__(channel_id, **kwargs)
        self.challenger_id = str(challenger_id)
        self.challenger_name = challenger_name
        self.opponent_id = str(opponent_id)
        self.opponent_name = opponent_name
        self.extended = extended
        self.timeout = timeout
        self.choices: Dict[str, str] = {}

    @property
    def game_id(self) -> str:
        return self.key

    def on_start(self) -> GameEvent:
        self.arm_timer(self.timeout)
        return self.event(
            "challenge", challenger=self.challenger_name, opponent=self.opponent_name,
            extended=self.extended, seconds=self.timeout,
        )

    def on_timeout(self):
        self.emit(self.finish(GameState.TIMED_OUT, self.event("expired")))

    def choose(self, user_id: str, choice: str) -> GameEvent:
        user_id = str(user_id)
        if not self.is_active:
            return self.event("expired")
        if user_id not in (self.challenger_id, self.opponent_id):
            return self.event("not_player")
        if user_id in self.choices:
            return self.event("already_chose")
        if choice not in rps_choices(self.extended):
            raise ValueError(f"Unknown choice: {choice}")

        self.choices[user_id] = choice
        if len(self.choices) < 2:
            waiting_for = "opponent" if user_id == self.challenger_id else "challenger"
            return self.event("chosen", choice=choice, waiting_for=waiting_for)
        return self._resolve()

    def _resolve(self) -> Optional[GameEvent]:
        first = self.choices[self.challenger_id]
        second = self.choices[self.opponent_id]
        outcome = rps_result(first, second, self.extended)

        challenger = (self.challenger_id, self.challenger_name)
        opponent = (self.opponent_id, self.opponent_name)
        if outcome == DRAW:
            winner = None
            self.results = [
                GameResult(*challenger, RPS_PVP_TIE_POINTS, False),
                GameResult(*opponent, RPS_PVP_TIE_POINTS, False),
            ]
        else:
            win, lose = (challenger, opponent) if outcome == WIN else (opponent, challenger)
            winner = win[1]
            self.results = [GameResult(*win, RPS_PVP_WIN_POINTS, True), GameResult(*lose, 0, False)]

        return self.finish(GameState.WON, self.event(
            "resolved", winner=winner,
            challenger=self.challenger_name, challenger_choice=first,
            opponent=self.opponent_name, opponent_choice=second,
        ))


# --- Number Guessing ---

class NumberGuessSession(GameSession):
    game_type = GameType.NUMBER_GUESS

    def __init__(
        self,
        channel_id: str,
        host_id: str,
        host_name: str,
        max_number: int = NUMBER_GUESS_MAX,
        max_attempts: int = NUMBER_GUESS_ATTEMPTS,
        rng: Optional[random.Random] = None,
        target: Optional[int] = None,
        idle_timeout: float = NUMBER_GUESS_IDLE_TIMEOUT,
        **kwargs,
    ):
        super().__init__(channel_id, **kwargs)
        self.rng = rng or random.Random()
        self.max_number = max_number
        self.max_attempts = max_attempts
        self.target = target if target is not None else self.rng.randint(1, max_number)
        self.host_id = str(host_id)
        self.host_name = host_name
        self.idle_timeout = idle_timeout
        self.attempts = 0
        self.guesses: List[int] = []

    def on_start(self) -> GameEvent:
        self.arm_timer(self.idle_timeout)
        return self.event("started", max_number=self.max_number, attempts=self.max_attempts)

    def on_timeout(self):
        self.emit(self.finish(GameState.TIMED_OUT, self.event("timeout", target=self.target)))

    def guess(self, user_id: str, user_name: str, text: str) -> Optional[GameEvent]:
        """Non-numbers and numbers out of range are not guesses."""
        if not self.is_active:
            return None
        try:
            value = int(text.strip())
        except ValueError:
            return None
        if value < 1 or value > self.max_number:
            return None

        self.attempts += 1
        self.guesses.append(value)

        if value == self.target:
            points = max(10, 100 - (self.attempts - 1) * 15)
            self.results = [GameResult(user_id, user_name, points, True)]
            return self.finish(GameState.WON, self.event(
                "correct", winner=user_name, target=self.target, points=points,
                attempts=self.attempts, max_attempts=self.max_attempts,
            ))

        attempts_left = self.max_attempts - self.attempts
        if attempts_left <= 0:
            return self.finish(GameState.LOST, self.event("out_of_attempts", target=self.target))

        self.arm_timer(self.idle_timeout)
        return self.event("hint", higher=value < self.target, attempts_left=attempts_left)


# --- Quiz ---

QUIZ_QUESTIONS = [
    {"q": "What is 15 x 17?", "a": "255", "type": "math"},
    {"q": "What is the square root of 144?", "a": "12", "type": "math"},
    {"q": "What is 2^10?", "a": "1024", "type": "math"},
    {"q": "What planet is known as the Red Planet?", "a": "mars", "type": "science"},
    {"q": "What is the chemical symbol for water?", "a": "h2o", "type": "science"},
    {"q": "What year was the first moon landing?", "a": "1969", "type": "history"},
    {"q": 'Who wrote "Romeo and Juliet"?', "a": "shakespeare", "type": "literature"},
    {"q": "What is the largest mammal on Earth?", "a": "blue whale", "type": "science"},
    {"q": "What gas do plants absorb from the atmosphere?", "a": "carbon dioxide", "type": "science"},
    {"q": "In what year did World War I begin?", "a": "1914", "type": "history"},
]


class QuizSession(GameSession):
    """Free-text rounds; the first correct answer takes the round."""

    game_type = GameType.QUIZ

    def __init__(
        self,
        channel_id: str,
        host_id: str,
        host_name: str,
        rounds: int = QUIZ_DEFAULT_ROUNDS,
        rng: Optional[random.Random] = None,
        start_delay: float = QUIZ_START_DELAY,
        question_time: float = QUIZ_QUESTION_TIME,
        round_gap: float = QUIZ_ROUND_GAP,
        **kwargs,
    ):
        super().__init__(channel_id, **kwargs)
        self.rng = rng or random.Random()
        self.questions = self.rng.sample(QUIZ_QUESTIONS, min(rounds, len(QUIZ_QUESTIONS)))
        self.host_id = str(host_id)
        self.host_name = host_name
        self.start_delay = start_delay
        self.question_time = question_time
        self.round_gap = round_gap
        self.current_round = 0
        self.current_answer: Optional[str] = None
        self.question_started: Optional[float] = None
        self.scores: Dict[str, dict] = {}

    def on_start(self) -> GameEvent:
        self.arm_timer(self.start_delay)
        return self.event("started", rounds=len(self.questions), host=self.host_name)

    def on_timeout(self):
        if self.current_answer is not None:
            # Nobody got it in time
            answer = self.questions[self.current_round]["a"]
            self.current_answer = None
            self.current_round += 1
            self.arm_timer(self.round_gap)
            self.emit(self.event("timeout", answer=answer))
        else:
            self.emit(self._next_question())

    def _next_question(self) -> Optional[GameEvent]:
        if self.current_round >= len(self.questions):
            return self._complete()

        question = self.questions[self.current_round]
        self.current_answer = question["a"].lower()
        self.question_started = self.clock()
        self.arm_timer(self.question_time)
        return self.event(
            "question", number=self.current_round + 1, total=len(self.questions),
            question=question["q"], category=question["type"].capitalize(),
            seconds=self.question_time,
        )

    def answer(self, user_id: str, user_name: str, text: str) -> Optional[GameEvent]:
        """Exact or containing match. Returns None for wrong answers and between questions."""
        if not self.is_active or self.current_answer is None:
            return None
        guess = text.lower().strip()
        if self.current_answer not in guess:
            return None

        elapsed_ms = (self.clock() - self.question_started) * 1000
        points = max(10, 100 - int(elapsed_ms // 200))

        score = self.scores.setdefault(str(user_id), {"name": user_name, "points": 0, "correct": 0})
        score["name"] = user_name
        score["points"] += points
        score["correct"] += 1

        self.current_answer = None
        self.current_round += 1
        self.arm_timer(self.round_gap)
        return self.event("correct", winner=user_name, points=points)

    def standings(self) -> List[dict]:
        ranked = [{"userId": uid, **data} for uid, data in self.scores.items()]
        ranked.sort(key=lambda p: p["points"], reverse=True)
        return ranked

    def _complete(self) -> Optional[GameEvent]:
        standings = self.standings()
        self.results = [
            GameResult(p["userId"], p["name"], p["points"], i == 0)
            for i, p in enumerate(standings)
        ]
        return self.finish(GameState.WON, self.event(
            "finished", standings=standings, questions=len(self.questions),
        ))
