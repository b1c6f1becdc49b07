"""
CommunityOS Bot - Game Leaderboards
Per-game scores keyed by user id, kept in memory and persisted through the write queue.
"""

from typing import Dict, List, Optional

from config import LEADERBOARD_FILE
from constants import LEADERBOARD_LIMIT
from models import GameType
from storage import WriteQueue, load_json

WRITE_KEY = "leaderboard"


def empty_leaderboard() -> Dict[str, dict]:
    return {game.value: {} for game in GameType}


def new_entry(name: str) -> dict:
    return {
        "name": name,
        "score": 0,
        "wins": 0,
        "losses": 0,
        "streak": 0,
        "bestStreak": 0,
        "gamesPlayed": 0,
    }


class Leaderboard:
    def __init__(self, write_queue: WriteQueue, path: str = LEADERBOARD_FILE):
        self.write_queue = write_queue
        self.path = path
        self._data: Optional[Dict[str, dict]] = None

    @property
    def data(self) -> Dict[str, dict]:
        if self._data is None:
            data = empty_leaderboard()
            saved = load_json(self.path)
            if isinstance(saved, dict):
                data.update(saved)
            self._data = data
        return self._data

    def update_score(self, game_type: GameType, user_id: str, user_name: str, points: int, is_win: bool) -> dict:
        """Add a finished game to a user's record. A loss resets the streak."""
        board = self.data.setdefault(game_type.value, {})
        entry = board.setdefault(str(user_id), new_entry(user_name))

        entry["name"] = user_name
        entry["score"] += points
        entry["gamesPlayed"] += 1
        if is_win:
            entry["wins"] += 1
            entry["streak"] += 1
            entry["bestStreak"] = max(entry["bestStreak"], entry["streak"])
        else:
            entry["losses"] += 1
            entry["streak"] = 0

        self.write_queue.submit(WRITE_KEY, self.path, self.data)
        return entry

    def top(self, game_type: GameType, limit: int = LEADERBOARD_LIMIT) -> List[dict]:
        board = self.data.get(game_type.value, {})
        ranked = [{"userId": uid, **entry} for uid, entry in board.items()]
        ranked.sort(key=lambda e: e["score"], reverse=True)
        return ranked[:limit]

    def combined(self, limit: int = LEADERBOARD_LIMIT) -> List[dict]:
        """Totals across every game."""
        totals: Dict[str, dict] = {}
        for game, board in self.data.items():
            for uid, entry in board.items():
                total = totals.setdefault(uid, {
                    "userId": uid, "name": entry["name"],
                    "totalScore": 0, "totalWins": 0, "totalGames": 0, "games": {},
                })
                total["totalScore"] += entry["score"]
                total["totalWins"] += entry["wins"]
                total["totalGames"] += entry["gamesPlayed"]
                total["games"][game] = entry["score"]

        ranked = sorted(totals.values(), key=lambda e: e["totalScore"], reverse=True)
        return ranked[:limit]
