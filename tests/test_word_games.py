"""
Tests for word scramble and hangman
"""
import random
import pytest

from games import GameState
from games.word_games import (
    ScrambleSession, HangmanSession, HANGMAN_STAGES, WORD_LISTS, pick_word, scramble_word,
)


class TestWordHelpers:
    """Tests for word picking and scrambling"""

    def test_scramble_differs(self):
        rng = random.Random(0)
        for word in ("python", "database", "ab"):
            scrambled = scramble_word(word, rng)
            assert scrambled != word
            assert sorted(scrambled) == sorted(word)

    def test_single_letter_word_unchanged(self):
        assert scramble_word("aaa", random.Random(0)) == "aaa"

    def test_pick_word_by_difficulty(self):
        rng = random.Random(0)
        for _ in range(20):
            assert len(pick_word("tech", "easy", rng)) <= 6
            assert len(pick_word("general", "hard", rng)) >= 8

    def test_unknown_category_uses_tech(self):
        assert pick_word("cooking", None, random.Random(0)) in WORD_LISTS["tech"]


class TestScramble:
    """Tests for ScrambleSession"""

    @pytest.mark.asyncio
    async def test_solved_instantly(self, clock):
        session = ScrambleSession("c1", word="python", clock=clock)
        opening = session.start()
        assert opening["letters"] == 6
        assert opening["points"] == 100

        assert session.guess("u1", "Alice", "java") is None
        event = session.guess("u1", "Alice", "  PYTHON ")

        assert event.kind == "solved"
        assert event["points"] == 150
        assert session.state is GameState.WON
        assert session.results[0].points == 150
        assert session.has_timer is False

    @pytest.mark.asyncio
    async def test_time_bonus_shrinks(self, clock):
        session = ScrambleSession("c1", word="python", clock=clock)
        session.start()
        clock.advance(15)

        assert session.guess("u1", "Alice", "python")["points"] == 125

    @pytest.mark.asyncio
    async def test_hints(self, clock):
        session = ScrambleSession("c1", word="python", clock=clock)
        session.start()

        first = session.hint()
        assert first["hint"] == "p _ _ _ _ _"
        assert first["remaining"] == 1
        assert session.hint()["hint"] == "p y _ _ _ _"
        assert session.hint().kind == "no_hints"

        assert session.guess("u1", "Alice", "python")["points"] == 130

    @pytest.mark.asyncio
    async def test_guess_after_finish_ignored(self, clock):
        session = ScrambleSession("c1", word="python", clock=clock)
        session.start()
        session.cancel()

        assert session.guess("u1", "Alice", "python") is None


class TestHangman:
    """Tests for HangmanSession"""

    def _session(self, **kwargs):
        return HangmanSession("c1", "h1", "Host", word="python", max_wrong=6, **kwargs)

    @pytest.mark.asyncio
    async def test_win_with_one_miss(self):
        session = self._session()
        session.start()

        miss = session.guess("u1", "Alice", "a")
        assert miss.kind == "letter"
        assert miss["hit"] is False
        assert session.lives_left == 5
        assert session.stage == HANGMAN_STAGES[1]

        for letter in "pytho":
            session.guess("u1", "Alice", letter)
        assert session.word_display == "p y t h o _"

        event = session.guess("u2", "Bob", "n")
        assert event.kind == "won"
        assert event["points"] == 90
        assert {r.user_id for r in session.results} == {"u1", "u2"}
        assert all(r.points == 90 for r in session.results)

    @pytest.mark.asyncio
    async def test_loss(self):
        session = self._session()
        session.start()

        for letter in "abcde":
            assert session.guess("u1", "Alice", letter).kind == "letter"
        event = session.guess("u1", "Alice", "f")

        assert event.kind == "lost"
        assert event["word"] == "python"
        assert session.state is GameState.LOST
        assert session.results == []
        assert session.wrong_letters == list("abcdef")

    @pytest.mark.asyncio
    async def test_repeat_letter(self):
        session = self._session()
        session.start()
        session.guess("u1", "Alice", "p")

        event = session.guess("u2", "Bob", "P")
        assert event.kind == "already_guessed"
        assert session.wrong_guesses == 0
        session.cancel()

    @pytest.mark.asyncio
    async def test_whole_word(self):
        session = self._session()
        session.start()
        session.guess("u1", "Alice", "z")

        event = session.guess("u2", "Bob", "Python")
        assert event.kind == "word_guessed"
        assert event["points"] == 140
        assert session.results[0].user_id == "u2"

    @pytest.mark.asyncio
    async def test_other_chat_ignored(self):
        session = self._session()
        session.start()

        assert session.guess("u1", "Alice", "1") is None
        assert session.guess("u1", "Alice", "nice try") is None
        assert session.guessed == []
        session.cancel()
