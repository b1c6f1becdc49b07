"""
CommunityOS Bot - Trivia
Multiple-choice rounds answered by button, faster answers score more.
"""

import math
import random
from typing import Dict, List, Optional

from constants import (
    TRIVIA_START_DELAY, TRIVIA_QUESTION_TIME, TRIVIA_ROUND_GAP, TRIVIA_DEFAULT_ROUNDS
)
from models import GameType
from games.session import GameSession, GameState, GameResult, GameEvent

LETTERS = ("A", "B", "C", "D")

TRIVIA_QUESTIONS: Dict[str, List[dict]] = {
    "tech": [
        {"q": "What does CPU stand for?", "a": "Central Processing Unit",
         "options": ["Central Processing Unit", "Computer Personal Unit", "Central Power Unit", "Central Protocol Unit"]},
        {"q": "What does HTML stand for?", "a": "HyperText Markup Language",
         "options": ["HyperText Markup Language", "Home Tool Markup Language", "Hyperlinks Text Mark Language", "Hyperlinking Text Marking Language"]},
        {"q": "Who is known as the father of the computer?", "a": "Charles Babbage",
         "options": ["Alan Turing", "Charles Babbage", "Bill Gates", "Steve Jobs"]},
        {"q": "What does RAM stand for?", "a": "Random Access Memory",
         "options": ["Random Access Memory", "Read Access Memory", "Run Access Memory", "Rapid Access Module"]},
        {"q": "Which company created JavaScript?", "a": "Netscape",
         "options": ["Microsoft", "Apple", "Netscape", "Google"]},
        {"q": "What does API stand for?", "a": "Application Programming Interface",
         "options": ["Application Programming Interface", "Advanced Program Integration", "Automated Protocol Interface", "Application Process Integration"]},
        {"q": "What year was the first iPhone released?", "a": "2007",
         "options": ["2005", "2006", "2007", "2008"]},
        {"q": "What does SSD stand for?", "a": "Solid State Drive",
         "options": ["Solid State Drive", "Super Speed Disk", "System Storage Device", "Solid System Data"]},
        {"q": "Who founded Microsoft?", "a": "Bill Gates and Paul Allen",
         "options": ["Bill Gates and Paul Allen", "Steve Jobs and Steve Wozniak", "Larry Page and Sergey Brin", "Mark Zuckerberg"]},
        {"q": "What programming language was created by Guido van Rossum?", "a": "Python",
         "options": ["Java", "Python", "Ruby", "PHP"]},
    ],
    "ai": [
        {"q": "What company created ChatGPT?", "a": "OpenAI",
         "options": ["Google", "OpenAI", "Microsoft", "Meta"]},
        {"q": "What does GPT stand for?", "a": "Generative Pre-trained Transformer",
         "options": ["Generative Pre-trained Transformer", "General Purpose Tool", "Global Processing Technology", "Guided Program Training"]},
        {"q": 'Who coined the term "Artificial Intelligence"?', "a": "John McCarthy",
         "options": ["Alan Turing", "John McCarthy", "Marvin Minsky", "Claude Shannon"]},
        {"q": "What is the Turing Test used for?", "a": "Testing a machine's ability to exhibit intelligent behavior",
         "options": ["Testing a machine's ability to exhibit intelligent behavior", "Testing computer speed", "Testing memory capacity", "Testing network connectivity"]},
        {"q": "What company created Claude AI?", "a": "Anthropic",
         "options": ["OpenAI", "Google", "Anthropic", "Microsoft"]},
        {"q": "What does LLM stand for?", "a": "Large Language Model",
         "options": ["Large Language Model", "Linear Learning Machine", "Logical Language Module", "Limited Learning Method"]},
        {"q": "What was the name of the chess computer that beat Garry Kasparov?", "a": "Deep Blue",
         "options": ["AlphaGo", "Deep Blue", "Watson", "HAL 9000"]},
        {"q": "What year was the first neural network created?", "a": "1958",
         "options": ["1943", "1958", "1969", "1982"]},
    ],
    "general": [
        {"q": "What is the smallest country in the world?", "a": "Vatican City",
         "options": ["Monaco", "Vatican City", "San Marino", "Liechtenstein"]},
        {"q": "What is the largest ocean on Earth?", "a": "Pacific Ocean",
         "options": ["Atlantic Ocean", "Indian Ocean", "Pacific Ocean", "Arctic Ocean"]},
        {"q": "How many continents are there?", "a": "7",
         "options": ["5", "6", "7", "8"]},
        {"q": "What is the capital of Japan?", "a": "Tokyo",
         "options": ["Kyoto", "Osaka", "Tokyo", "Nagoya"]},
        {"q": "Who painted the Mona Lisa?", "a": "Leonardo da Vinci",
         "options": ["Michelangelo", "Leonardo da Vinci", "Raphael", "Donatello"]},
        {"q": "What is the largest planet in our solar system?", "a": "Jupiter",
         "options": ["Saturn", "Jupiter", "Neptune", "Uranus"]},
        {"q": "What year did World War II end?", "a": "1945",
         "options": ["1943", "1944", "1945", "1946"]},
        {"q": "What is the chemical symbol for gold?", "a": "Au",
         "options": ["Ag", "Au", "Gd", "Go"]},
    ],
    "programming": [
        {"q": "What symbol is used for comments in Python?", "a": "#",
         "options": ["//", "#", "/*", "--"]},
        {"q": "What does CSS stand for?", "a": "Cascading Style Sheets",
         "options": ["Cascading Style Sheets", "Computer Style Sheets", "Creative Style Sheets", "Colorful Style Sheets"]},
        {"q": "Which language is primarily used for iOS development?", "a": "Swift",
         "options": ["Java", "Kotlin", "Swift", "C#"]},
        {"q": "What is the output of 2 ** 3 in Python?", "a": "8",
         "options": ["6", "8", "9", "23"]},
        {"q": "What does JSON stand for?", "a": "JavaScript Object Notation",
         "options": ["JavaScript Object Notation", "Java Standard Object Notation", "JavaScript Online Network", "Java Serialized Object Network"]},
        {"q": "Which company developed the Go programming language?", "a": "Google",
         "options": ["Microsoft", "Apple", "Google", "Amazon"]},
        {"q": "What is the default port for HTTP?", "a": "80",
         "options": ["21", "80", "443", "8080"]},
        {"q": "Which of these is NOT a JavaScript framework?", "a": "Django",
         "options": ["React", "Vue", "Angular", "Django"]},
    ],
    "crypto": [
        {"q": "Who created Bitcoin?", "a": "Satoshi Nakamoto",
         "options": ["Satoshi Nakamoto", "Vitalik Buterin", "Charlie Lee", "Elon Musk"]},
        {"q": "What year was Bitcoin created?", "a": "2009",
         "options": ["2007", "2008", "2009", "2010"]},
        {"q": "What is the name of Ethereum smart contract programming language?", "a": "Solidity",
         "options": ["Solidity", "Rust", "Vyper", "Move"]},
        {"q": "What does NFT stand for?", "a": "Non-Fungible Token",
         "options": ["Non-Fungible Token", "New Finance Technology", "Network File Transfer", "Next Future Token"]},
        {"q": "What consensus mechanism does Bitcoin use?", "a": "Proof of Work",
         "options": ["Proof of Stake", "Proof of Work", "Delegated Proof of Stake", "Proof of Authority"]},
    ],
}

TRIVIA_CATEGORIES = tuple(TRIVIA_QUESTIONS)

# Phases while Active
INTRO = "intro"
QUESTION = "question"
BETWEEN = "between"


def trivia_points(elapsed: float, question_time: float = TRIVIA_QUESTION_TIME) -> int:
    """10 for a correct answer at the buzzer, up to 100 for an instant one."""
    time_bonus = max(0.0, 1 - elapsed / question_time)
    return math.floor(10 + 90 * time_bonus)


class TriviaSession(GameSession):
    game_type = GameType.TRIVIA

    def __init__(
        self,
        channel_id: str,
        host_id: str,
        host_name: str,
        category: str = "tech",
        rounds: int = TRIVIA_DEFAULT_ROUNDS,
        rng: Optional[random.Random] = None,
        start_delay: float = TRIVIA_START_DELAY,
        question_time: float = TRIVIA_QUESTION_TIME,
        round_gap: float = TRIVIA_ROUND_GAP,
        **kwargs,
    ):
        super().__init__(channel_id, **kwargs)
        self.rng = rng or random.Random()
        self.category = category if category in TRIVIA_QUESTIONS else "tech"
        pool = TRIVIA_QUESTIONS[self.category]
        self.questions = self.rng.sample(pool, min(rounds, len(pool)))
        self.host_id = str(host_id)
        self.host_name = host_name
        self.start_delay = start_delay
        self.question_time = question_time
        self.round_gap = round_gap

        self.phase = INTRO
        self.current_round = 0
        self.options: List[str] = []
        self.question_started: Optional[float] = None
        self.answered: set = set()
        self.round_correct: List[dict] = []
        self.scores: Dict[str, dict] = {}

    @property
    def current_question(self) -> Optional[dict]:
        if self.phase != QUESTION:
            return None
        return self.questions[self.current_round]

    @property
    def correct_letter(self) -> str:
        return LETTERS[self.options.index(self.questions[self.current_round]["a"])]

    def on_start(self) -> GameEvent:
        self.arm_timer(self.start_delay)
        return self.event(
            "started", category=self.category, rounds=len(self.questions),
            host=self.host_name, delay=self.start_delay,
        )

    def on_timeout(self):
        if self.phase == QUESTION:
            self.emit(self._reveal())
        else:
            self.emit(self._next_question())

    def _next_question(self) -> GameEvent:
        if self.current_round >= len(self.questions):
            return self._complete()

        question = self.questions[self.current_round]
        self.options = list(question["options"])
        self.rng.shuffle(self.options)
        self.phase = QUESTION
        self.question_started = self.clock()
        self.answered = set()
        self.round_correct = []
        self.arm_timer(self.question_time)
        return self.event(
            "question",
            number=self.current_round + 1,
            total=len(self.questions),
            question=question["q"],
            options=list(zip(LETTERS, self.options)),
            seconds=self.question_time,
        )

    def _reveal(self) -> GameEvent:
        question = self.questions[self.current_round]
        event = self.event(
            "reveal",
            letter=self.correct_letter,
            answer=question["a"],
            correct=list(self.round_correct),
        )
        self.phase = BETWEEN
        self.current_round += 1
        self.arm_timer(self.round_gap)
        return event

    def answer(self, user_id: str, user_name: str, letter: str) -> GameEvent:
        """Record a button press. One answer per user per question."""
        user_id = str(user_id)
        if not self.is_active or self.phase != QUESTION:
            return self.event("no_question")
        if user_id in self.answered:
            return self.event("already_answered")
        self.answered.add(user_id)

        letter = letter.upper()
        question = self.questions[self.current_round]
        selected = self.options[LETTERS.index(letter)] if letter in LETTERS else None
        is_correct = selected == question["a"]
        elapsed = self.clock() - self.question_started
        points = trivia_points(elapsed, self.question_time) if is_correct else 0

        score = self.scores.setdefault(user_id, {"name": user_name, "totalPoints": 0, "correct": 0, "incorrect": 0})
        score["name"] = user_name
        score["totalPoints"] += points
        if is_correct:
            score["correct"] += 1
            self.round_correct.append({"name": user_name, "points": points})
        else:
            score["incorrect"] += 1

        return self.event(
            "answer", correct=is_correct, points=points,
            seconds=int(elapsed), answer=question["a"],
        )

    def standings(self) -> List[dict]:
        ranked = [{"userId": uid, **data} for uid, data in self.scores.items()]
        ranked.sort(key=lambda p: p["totalPoints"], reverse=True)
        return ranked

    def _complete(self) -> Optional[GameEvent]:
        standings = self.standings()
        self.results = [
            GameResult(p["userId"], p["name"], p["totalPoints"], i == 0)
            for i, p in enumerate(standings)
        ]
        return self.finish(GameState.WON, self.event(
            "finished",
            standings=standings,
            category=self.category,
            questions=len(self.questions),
            duration=int(self.elapsed()),
        ))
