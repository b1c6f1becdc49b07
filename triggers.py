"""
CommunityOS Bot - Trigger Evaluation
Decides whether a message should engage the response pipeline.
"""

import random
from typing import Callable, Optional

from models import IncomingMessage

# Reasons, in evaluation order
CHANNEL_DISABLED = "channel_disabled"
MENTIONED = "mentioned"
REPLY_CHAIN = "reply_chain"
QUESTION = "question"
KEYWORD = "keyword"
RANDOM = "random"
NO_TRIGGER = "no_trigger"


class TriggerDecision:
    def __init__(self, should_respond: bool, reason: str, keyword: Optional[str] = None):
        self.should_respond = should_respond
        self.reason = reason
        self.keyword = keyword

    def __repr__(self):
        return f"<TriggerDecision {self.reason} respond={self.should_respond}>"


class TriggerEvaluator:
    """First matching rule wins. Evaluation has no side effects."""

    def __init__(self, chatbot_config, random_source: Callable[[], float] = random.random):
        self.config = chatbot_config
        self.random_source = random_source

    def evaluate(self, message: IncomingMessage) -> TriggerDecision:
        config = self.config

        if not config.is_channel_enabled(message.channel_name):
            return TriggerDecision(False, CHANNEL_DISABLED)

        if message.mentions_bot:
            return TriggerDecision(True, MENTIONED)

        # Caller still has to confirm the referenced message is ours
        if message.is_reply:
            return TriggerDecision(True, REPLY_CHAIN)

        if config.respond_to_questions and message.content.strip().endswith("?"):
            return TriggerDecision(True, QUESTION)

        content_lower = message.content.lower()
        for keyword in config.trigger_keywords:
            if keyword.lower() in content_lower:
                return TriggerDecision(True, KEYWORD, keyword)

        if config.is_random_channel(message.channel_name):
            if self.random_source() < config.random_response_chance:
                return TriggerDecision(True, RANDOM)

        return TriggerDecision(False, NO_TRIGGER)
