"""
Tests for trivia rounds and scoring
"""
import random
import pytest
from unittest.mock import Mock

from games import SessionRegistry, GameState
from games.trivia import TriviaSession, LETTERS, TRIVIA_QUESTIONS, trivia_points


def wrong_letter(session):
    return next(letter for letter in LETTERS if letter != session.correct_letter)


def make_session(clock, events, rounds=2):
    return TriviaSession(
        "c1", "h1", "Host", category="ai", rounds=rounds,
        rng=random.Random(3), start_delay=100, question_time=20, round_gap=100,
        listener=events.append, clock=clock,
    )


class TestTriviaPoints:
    """Tests for the speed bonus"""

    def test_instant_answer(self):
        assert trivia_points(0, 20) == 100

    def test_answer_at_buzzer(self):
        assert trivia_points(20, 20) == 10

    def test_halfway(self):
        assert trivia_points(10, 20) == 55

    def test_late_answer_floor(self):
        assert trivia_points(25, 20) == 10


class TestTriviaSession:
    """Tests for TriviaSession phases"""

    def test_questions_drawn_from_category(self):
        session = TriviaSession("c1", "h1", "Host", category="crypto", rounds=3, rng=random.Random(1))
        assert len(session.questions) == 3
        assert all(q in TRIVIA_QUESTIONS["crypto"] for q in session.questions)

    def test_unknown_category_uses_tech(self):
        session = TriviaSession("c1", "h1", "Host", category="cooking", rng=random.Random(1))
        assert session.category == "tech"

    @pytest.mark.asyncio
    async def test_answers_before_first_question(self, clock):
        events = []
        session = make_session(clock, events)
        opening = session.start()

        assert opening.kind == "started"
        assert session.answer("u1", "Alice", "A").kind == "no_question"
        session.cancel()

    @pytest.mark.asyncio
    async def test_full_game(self, clock):
        events = []
        leaderboard = Mock()
        registry = SessionRegistry(leaderboard)
        session = make_session(clock, events)
        registry.start(session)

        # Round one
        session.on_timeout()
        assert events[-1].kind == "question"
        assert events[-1]["number"] == 1
        assert [letter for letter, _ in events[-1]["options"]] == list(LETTERS)

        first = session.answer("u1", "Alice", session.correct_letter.lower())
        assert first["correct"] is True
        assert first["points"] == 100
        assert session.answer("u1", "Alice", "B").kind == "already_answered"

        clock.advance(10)
        second = session.answer("u2", "Bob", wrong_letter(session))
        assert second["correct"] is False
        assert second["points"] == 0

        session.on_timeout()
        reveal = events[-1]
        assert reveal.kind == "reveal"
        assert reveal["correct"] == [{"name": "Alice", "points": 100}]

        # Round two
        session.on_timeout()
        assert events[-1]["number"] == 2
        assert session.round_correct == []
        clock.advance(10)
        assert session.answer("u2", "Bob", session.correct_letter)["points"] == 55

        session.on_timeout()
        session.on_timeout()

        finished = events[-1]
        assert finished.kind == "finished"
        assert session.state is GameState.WON
        assert [p["name"] for p in finished["standings"]] == ["Alice", "Bob"]
        assert session.results[0].is_win is True
        assert session.results[1].is_win is False
        assert leaderboard.update_score.call_count == 2
        assert len(registry) == 0
