"""
CommunityOS Bot - Context Assembly
Builds the prompt from channel history, the user's profile and KB excerpts.
"""

import re
from typing import List, Optional

from constants import (
    CONTEXT_MESSAGE_COUNT, KB_TOPICS, KB_QUERY_KEYWORDS, KB_RESULT_LIMIT, KB_EXCERPT_LENGTH
)

MENTION_PATTERN = re.compile(r'<@!?\d+>')

# Checked in order; the first match names the topic
TOPIC_PATTERNS = [
    ("code", re.compile(r'\b(code|function|bug|error|api|database|typescript|javascript|python|react|node)\b', re.I)),
    ("support", re.compile(r'\b(help|issue|problem|not working|broken|fix|stuck)\b', re.I)),
    ("feature", re.compile(r'\b(feature|idea|suggestion|would be nice|could we|what if)\b', re.I)),
    ("streaming", re.compile(r'\b(stream|live|youtube|twitch|broadcast|content)\b', re.I)),
    ("career", re.compile(r'\b(job|career|resume|cv|interview|application)\b', re.I)),
    ("product", re.compile(r'\b(product|roadmap|milestone|priority|requirement)\b', re.I)),
    ("general", re.compile(r'\b(hello|hi|hey|thanks|cool|nice|great|gm)\b', re.I)),
]

STOP_WORDS = {
    'a', 'an', 'the', 'is', 'are', 'was', 'were', 'be', 'been', 'being',
    'have', 'has', 'had', 'do', 'does', 'did', 'will', 'would', 'could',
    'should', 'may', 'might', 'must', 'shall', 'can', 'need', 'dare',
    'ought', 'used', 'to', 'of', 'in', 'for', 'on', 'with', 'at', 'by',
    'from', 'as', 'into', 'through', 'during', 'before', 'after', 'above',
    'below', 'between', 'under', 'again', 'further', 'then', 'once', 'here',
    'there', 'when', 'where', 'why', 'how', 'all', 'each', 'few', 'more',
    'most', 'other', 'some', 'such', 'no', 'nor', 'not', 'only', 'own',
    'same', 'so', 'than', 'too', 'very', 'just', 'and', 'but', 'if', 'or',
    'because', 'until', 'while', 'i', 'me', 'my', 'myself', 'we', 'our',
    'you', 'your', 'he', 'him', 'his', 'she', 'her', 'it', 'its', 'they',
    'them', 'their', 'what', 'which', 'who', 'whom', 'this', 'that', 'these',
    'those', 'am', 'about', 'any', 'both', 'get', 'got', 'hi', 'hey', 'hello',
}


def strip_mentions(text: str) -> str:
    """Remove <@id> / <@!id> markup and surrounding whitespace."""
    return MENTION_PATTERN.sub('', text).strip()


def detect_topic(content: str) -> str:
    for topic, pattern in TOPIC_PATTERNS:
        if pattern.search(content):
            return topic
    return "general"


def extract_keywords(text: str) -> List[str]:
    """Unique non-stopword tokens longer than two characters, in order."""
    words = re.sub(r'[^a-z0-9\s]', ' ', text.lower()).split()
    seen = []
    for word in words:
        if len(word) > 2 and word not in STOP_WORDS and word not in seen:
            seen.append(word)
    return seen


def format_kb_context(results: List[dict]) -> str:
    if not results:
        return ""
    blocks = [
        f"### {r.get('title') or r.get('name')}\n"
        f"{(r.get('summary') or r.get('content') or '')[:KB_EXCERPT_LENGTH]}..."
        for r in results
    ]
    return "\n\n## Relevant Knowledge Base Content\n" + "\n\n".join(blocks)


def build_full_prompt(
    prompt: str,
    channel_name: str,
    channel_context: Optional[str],
    user_context: Optional[str],
) -> str:
    parts = []
    if channel_context:
        parts += [f"## Recent Conversation in #{channel_name}", channel_context, ""]
    if user_context:
        parts += ["## About this User", user_context, ""]
    parts += ["## User Message", prompt]
    return "\n".join(parts)


class AssembledContext:
    """Pieces of a prompt. prompt is the user's text with any KB block appended."""

    def __init__(
        self,
        message: str,
        channel_name: str,
        topic: str,
        channel_context: Optional[str] = None,
        user_context: Optional[str] = None,
        kb_context: str = "",
    ):
        self.message = message
        self.channel_name = channel_name
        self.topic = topic
        self.channel_context = channel_context
        self.user_context = user_context
        self.kb_context = kb_context

    @property
    def prompt(self) -> str:
        return self.message + self.kb_context

    @property
    def full_prompt(self) -> str:
        return build_full_prompt(self.prompt, self.channel_name, self.channel_context, self.user_context)


class ContextAssembler:
    def __init__(self, memory, hub_client, chatbot_config):
        self.memory = memory
        self.hub = hub_client
        self.config = chatbot_config

    async def assemble(self, channel_id: str, channel_name: str, user_id: str, text: str) -> AssembledContext:
        message = strip_mentions(text)
        topic = detect_topic(message)
        context = AssembledContext(
            message=message,
            channel_name=channel_name,
            topic=topic,
            channel_context=self.memory.get_conversation_context(channel_id, CONTEXT_MESSAGE_COUNT),
            user_context=self.memory.generate_user_context(user_id),
        )

        if self.config.use_kb_context and topic in KB_TOPICS:
            context.kb_context = await self._kb_context(message)

        return context

    async def _kb_context(self, message: str) -> str:
        keywords = extract_keywords(message)
        if not keywords:
            return ""
        query = " ".join(keywords[:KB_QUERY_KEYWORDS])
        results = await self.hub.search_kb(query, KB_RESULT_LIMIT)
        return format_kb_context(results)
