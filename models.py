"""
CommunityOS Bot - Core Types
Inbound message shape plus the closed sets of agent ids and game types.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class AgentId(str, Enum):
    """Every agent persona the bot can speak as or route to."""

    MAIN = "main"
    CHIEF_OF_STAFF = "chief-of-staff"
    COMMUNITY_MANAGER = "community-manager"
    SECURITY_GOVERNANCE = "security-governance"
    SUPPORT_SHERIFF = "support-sheriff"
    SUPPORT_LEAD = "support-lead"
    COORDINATOR = "coordinator"
    OPS = "ops"
    INCIDENT_MANAGER = "incident-manager"
    RELEASE_MANAGER = "release-manager"
    CODER = "coder"
    QA_GUARDIAN = "qa-guardian"
    PRODUCT_MANAGER = "product-manager"
    UX_FRIEND = "ux-friend"
    DOCS_LIBRARIAN = "docs-librarian"
    RESEARCHER = "researcher"
    WRITER = "writer"
    CONTENT_CREATOR = "content-creator"
    GROWTH_MARKETER = "growth-marketer"
    SALES_ENGINE = "sales-engine"
    DEMO_PRODUCER = "demo-producer"
    CAREER_AGENT = "career-agent"
    FINANCE_CLERK = "finance-clerk"
    DATA_ANALYST = "data-analyst"
    AUTOMATION_ENGINEER = "automation-engineer"
    AUTOMATION_EXPERT = "automation-expert"
    LIFE_ASSISTANT = "life-assistant"
    BIM_CEO = "bim-ceo"
    BIM_PRODUCT_LEAD = "bim-product-lead"
    BIM_COMMUNITY_MGR = "bim-community-mgr"
    BIM_TECH_LEAD = "bim-tech-lead"
    BIM_GROWTH_LEAD = "bim-growth-lead"
    BIM_OPS_LEAD = "bim-ops-lead"
    BIM_INCIDENT_MANAGER = "bim-incident-manager"
    STREAMING_CEO = "streaming-ceo"
    STREAMING_COMMUNITY_LEAD = "streaming-community-lead"
    STREAM_PRODUCER = "stream-producer"
    STREAM_COORDINATOR = "stream-coordinator"
    STREAM_INCIDENT_MANAGER = "stream-incident-manager"
    CONTENT_DIRECTOR = "content-director"
    HIGHLIGHT_EDITOR = "highlight-editor"
    ENGAGEMENT_ANALYST = "engagement-analyst"
    SOCIAL_CLIPPER = "social-clipper"
    CHAT_HOST = "chat-host"
    ARIA = "aria"
    BLAZE = "blaze"
    KIRA = "kira"
    MYLA = "myla"
    TRIX = "trix"

    @classmethod
    def parse(cls, value: str) -> "AgentId":
        """Parse user input into an agent id; "paco" is an alias for main.

        Raises ValueError for anything outside the known set.
        """
        normalized = (value or "").strip().lower()
        if normalized in ("paco", "@paco"):
            return cls.MAIN
        return cls(normalized)


class GameType(str, Enum):
    """Leaderboard keys double as the on-disk section names."""

    TRIVIA = "trivia"
    WORD_SCRAMBLE = "wordScramble"
    HANGMAN = "hangman"
    RPS = "rps"
    NUMBER_GUESS = "numberGuess"
    QUIZ = "quiz"

    @property
    def display_name(self) -> str:
        return GAME_NAMES[self]

    @classmethod
    def parse(cls, value: str) -> "GameType":
        """Accept either the stored value or a loose spelling like "word_scramble"."""
        key = (value or "").strip().lower().replace("_", "").replace(" ", "")
        for member in cls:
            if member.value.lower() == key or member.name.lower().replace("_", "") == key:
                return member
        raise ValueError(f"Unknown game type: {value!r}")


GAME_NAMES = {
    GameType.TRIVIA: "Trivia",
    GameType.WORD_SCRAMBLE: "Word Scramble",
    GameType.HANGMAN: "Hangman",
    GameType.RPS: "Rock Paper Scissors",
    GameType.NUMBER_GUESS: "Number Guessing",
    GameType.QUIZ: "Quiz Competition",
}


class IncomingMessage:
    """Platform-neutral view of a chat message the pipeline works on."""

    def __init__(
        self,
        message_id: str,
        channel_id: str,
        channel_name: str,
        author_id: str,
        author_name: str,
        content: str,
        author_is_bot: bool = False,
        mentions_bot: bool = False,
        reply_to_id: Optional[str] = None,
        channel_topic: str = "",
        created_at: Optional[datetime] = None,
    ):
        self.id = str(message_id)
        self.channel_id = str(channel_id)
        self.channel_name = channel_name or ""
        self.author_id = str(author_id)
        self.author_name = author_name
        self.content = content or ""
        self.author_is_bot = author_is_bot
        self.mentions_bot = mentions_bot
        self.reply_to_id = str(reply_to_id) if reply_to_id else None
        self.channel_topic = channel_topic or ""
        self.created_at = created_at or datetime.now(timezone.utc)

    @property
    def is_reply(self) -> bool:
        return self.reply_to_id is not None

    def __repr__(self):
        return f"<IncomingMessage #{self.channel_name} {self.author_name}: {self.content[:40]!r}>"
