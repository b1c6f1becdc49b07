"""
CommunityOS Bot - Games
Session-based channel games sharing one registry and one leaderboard.
"""

from typing import Optional

from models import GameType
from games.session import (
    GameState, GameEvent, GameResult, GameSession, SessionRegistry,
    GameError, GameAlreadyActive, NoActiveGame, GameCooldown,
)
from games.leaderboard import Leaderboard
from games.trivia import TriviaSession, TRIVIA_CATEGORIES
from games.word_games import ScrambleSession, HangmanSession, WORD_CATEGORIES
from games.quick_games import (
    RpsChallengeSession, NumberGuessSession, QuizSession, play_rps_vs_bot, rps_choices,
)

# Games answered by typing in chat, checked in this order
CHAT_GAMES = (GameType.WORD_SCRAMBLE, GameType.HANGMAN, GameType.NUMBER_GUESS, GameType.QUIZ)


def handle_game_message(
    registry: SessionRegistry,
    channel_id: str,
    user_id: str,
    user_name: str,
    content: str,
) -> Optional[GameEvent]:
    """Offer a chat message to the channel's text-answered games.

    Returns the first event produced, or None if no game took the message.
    """
    for game_type in CHAT_GAMES:
        session = registry.get(game_type, channel_id)
        if session is None:
            continue
        if game_type is GameType.QUIZ:
            event = session.answer(user_id, user_name, content)
        else:
            event = session.guess(user_id, user_name, content)
        if event is not None:
            return event
    return None
