"""
CommunityOS Bot - Word Games
Word scramble and hangman, both answered by typing in the channel.
"""

import math
import random
from typing import Dict, List, Optional

from constants import SCRAMBLE_DIFFICULTY, HANGMAN_MAX_WRONG, HANGMAN_IDLE_TIMEOUT
from models import GameType
from games.session import GameSession, GameState, GameResult, GameEvent

WORD_LISTS: Dict[str, List[str]] = {
    "tech": ["javascript", "python", "database", "algorithm", "framework", "compiler", "debugger",
             "variable", "function", "interface", "component", "terminal", "repository", "deployment",
             "kubernetes", "container", "microservice", "encryption", "authentication", "middleware"],
    "programming": ["typescript", "frontend", "backend", "fullstack", "developer", "engineer", "software",
                    "hardware", "network", "protocol", "recursion", "iteration", "abstraction",
                    "polymorphism", "inheritance"],
    "ai": ["artificial", "intelligence", "neural", "network", "learning", "training", "inference",
           "transformer", "embedding", "attention", "gradient", "backpropagation", "classification",
           "regression"],
    "general": ["adventure", "beautiful", "challenge", "discovery", "excellent", "fantastic", "generous",
                "happiness", "important", "knowledge", "legendary", "mysterious", "outstanding",
                "passionate", "remarkable"],
}

WORD_CATEGORIES = tuple(WORD_LISTS)

DIFFICULTY_FILTERS = {
    "easy": lambda w: len(w) <= 6,
    "medium": lambda w: 5 <= len(w) <= 9,
    "hard": lambda w: len(w) >= 8,
}

HANGMAN_STAGES = [
    "```\n  +---+\n      |\n      |\n      |\n      |\n=========```",
    "```\n  +---+\n  O   |\n      |\n      |\n      |\n=========```",
    "```\n  +---+\n  O   |\n  |   |\n      |\n      |\n=========```",
    "```\n  +---+\n  O   |\n /|   |\n      |\n      |\n=========```",
    "```\n  +---+\n  O   |\n /|\\  |\n      |\n      |\n=========```",
    "```\n  +---+\n  O   |\n /|\\  |\n /    |\n      |\n=========```",
    "```\n  +---+\n  O   |\n /|\\  |\n / \\  |\n      |\n=========```",
]


def scramble_word(word: str, rng: random.Random) -> str:
    """Shuffle letters until the result differs from the word."""
    if len(set(word)) < 2:
        return word
    letters = list(word)
    while True:
        rng.shuffle(letters)
        scrambled = "".join(letters)
        if scrambled != word:
            return scrambled


def pick_word(category: str, difficulty: Optional[str], rng: random.Random) -> str:
    words = WORD_LISTS.get(category) or WORD_LISTS["tech"]
    if difficulty in DIFFICULTY_FILTERS:
        words = [w for w in words if DIFFICULTY_FILTERS[difficulty](w)] or words
    return rng.choice(words)


# --- Word Scramble ---

class ScrambleSession(GameSession):
    game_type = GameType.WORD_SCRAMBLE

    def __init__(
        self,
        channel_id: str,
        category: str = "tech",
        difficulty: str = "medium",
        rng: Optional[random.Random] = None,
        word: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(channel_id, **kwargs)
        self.rng = rng or random.Random()
        self.category = category if category in WORD_LISTS else "tech"
        self.difficulty = difficulty if difficulty in SCRAMBLE_DIFFICULTY else "medium"
        self.time_limit, self.points = SCRAMBLE_DIFFICULTY[self.difficulty]
        self.word = word or pick_word(self.category, self.difficulty, self.rng)
        self.scrambled = scramble_word(self.word, self.rng)
        self.hints = 0
        self.max_hints = len(self.word) // 3

    def on_start(self) -> GameEvent:
        self.arm_timer(self.time_limit)
        return self.event(
            "started", scrambled=self.scrambled, category=self.category,
            difficulty=self.difficulty, points=self.points,
            letters=len(self.word), seconds=self.time_limit,
        )

    def on_timeout(self):
        self.emit(self.finish(GameState.TIMED_OUT, self.event("timeout", word=self.word)))

    def final_points(self) -> int:
        time_bonus = max(0.0, 1 - self.elapsed() / self.time_limit)
        return math.floor(self.points * (1 + time_bonus * 0.5) - self.hints * 10)

    def guess(self, user_id: str, user_name: str, text: str) -> Optional[GameEvent]:
        """Returns the win event, or None when the text isn't the word."""
        if not self.is_active or text.lower().strip() != self.word:
            return None

        points = self.final_points()
        self.results = [GameResult(user_id, user_name, points, True)]
        return self.finish(GameState.WON, self.event(
            "solved", winner=user_name, word=self.word, points=points,
            seconds=int(self.elapsed()), hints=self.hints,
        ))

    def hint(self) -> GameEvent:
        if self.hints >= self.max_hints:
            return self.event("no_hints", used=self.hints, max_hints=self.max_hints)
        self.hints += 1
        revealed = " ".join(c if i < self.hints else "_" for i, c in enumerate(self.word))
        return self.event("hint", hint=revealed, remaining=self.max_hints - self.hints)


# --- Hangman ---

class HangmanSession(GameSession):
    game_type = GameType.HANGMAN

    def __init__(
        self,
        channel_id: str,
        host_id: str,
        host_name: str,
        category: str = "tech",
        rng: Optional[random.Random] = None,
        word: Optional[str] = None,
        max_wrong: int = HANGMAN_MAX_WRONG,
        idle_timeout: float = HANGMAN_IDLE_TIMEOUT,
        **kwargs,
    ):
        super().__init__(channel_id, **kwargs)
        self.rng = rng or random.Random()
        self.category = category if category in WORD_LISTS else "tech"
        self.word = word or pick_word(self.category, None, self.rng)
        self.host_id = str(host_id)
        self.host_name = host_name
        self.max_wrong = max_wrong
        self.idle_timeout = idle_timeout
        self.guessed: List[str] = []
        self.wrong_guesses = 0
        self.participants: Dict[str, str] = {}

    @property
    def word_display(self) -> str:
        return " ".join(c if c in self.guessed else "_" for c in self.word)

    @property
    def wrong_letters(self) -> List[str]:
        return [c for c in self.guessed if c not in self.word]

    @property
    def lives_left(self) -> int:
        return self.max_wrong - self.wrong_guesses

    @property
    def stage(self) -> str:
        return HANGMAN_STAGES[min(self.wrong_guesses, len(HANGMAN_STAGES) - 1)]

    @property
    def is_complete(self) -> bool:
        return all(c in self.guessed for c in self.word)

    def on_start(self) -> GameEvent:
        self.arm_timer(self.idle_timeout)
        return self.event("board")

    def on_timeout(self):
        self.emit(self.finish(GameState.TIMED_OUT, self.event("timeout", word=self.word)))

    def guess(self, user_id: str, user_name: str, text: str) -> Optional[GameEvent]:
        """Single letters and full-word guesses. Anything else is ignored."""
        if not self.is_active:
            return None
        guess = text.lower().strip()

        if len(guess) == 1 and "a" <= guess <= "z":
            return self._guess_letter(str(user_id), user_name, guess)

        if guess == self.word:
            points = 150 - self.wrong_guesses * 10
            self.results = [GameResult(user_id, user_name, points, True)]
            return self.finish(GameState.WON, self.event(
                "word_guessed", winner=user_name, word=self.word, points=points,
            ))

        return None

    def _guess_letter(self, user_id: str, user_name: str, letter: str) -> GameEvent:
        if letter in self.guessed:
            return self.event("already_guessed", letter=letter)

        self.guessed.append(letter)
        self.participants[user_id] = user_name
        hit = letter in self.word
        if not hit:
            self.wrong_guesses += 1

        if self.is_complete:
            points = 100 - self.wrong_guesses * 10
            self.results = [GameResult(uid, name, points, True) for uid, name in self.participants.items()]
            return self.finish(GameState.WON, self.event(
                "won", word=self.word, points=points, players=len(self.participants),
            ))

        if self.wrong_guesses >= self.max_wrong:
            return self.finish(GameState.LOST, self.event("lost", word=self.word))

        self.arm_timer(self.idle_timeout)
        return self.event("letter", letter=letter, hit=hit)
