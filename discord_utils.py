"""
CommunityOS Bot - Discord Utilities
Message conversion, embed builders and text helpers for Discord.
"""

import discord
from typing import Awaitable, Callable, Optional
from datetime import datetime, timezone

from chatbot import ChatbotReply
from constants import COLORS, MAX_EMBED_DESCRIPTION, USER_FRIENDLY_ERRORS
from models import IncomingMessage


# --- Message Conversion ---

def get_user_display_name(user: discord.User | discord.Member) -> str:
    """Get display name for a user."""
    if hasattr(user, 'display_name') and user.display_name:
        return user.display_name
    elif hasattr(user, 'global_name') and user.global_name:
        return user.global_name
    return user.name


def to_incoming(message: discord.Message, bot_user: Optional[discord.ClientUser]) -> IncomingMessage:
    """Convert a discord.py message into the pipeline's message type."""
    channel = message.channel
    mentions_bot = bool(bot_user) and any(m.id == bot_user.id for m in message.mentions)
    reply_to_id = message.reference.message_id if message.reference else None

    return IncomingMessage(
        message_id=message.id,
        channel_id=channel.id,
        channel_name=getattr(channel, 'name', None) or "dm",
        author_id=message.author.id,
        author_name=get_user_display_name(message.author),
        content=message.content,
        author_is_bot=message.author.bot,
        mentions_bot=mentions_bot,
        reply_to_id=reply_to_id,
        channel_topic=getattr(channel, 'topic', None) or "",
        created_at=message.created_at,
    )


def reply_checker(message: discord.Message, bot_user: discord.ClientUser) -> Callable[[str], Awaitable[bool]]:
    """Build the callback that tells whether a referenced message was written by the bot."""

    async def is_reply_to_bot(message_id: str) -> bool:
        resolved = message.reference.resolved if message.reference else None
        if isinstance(resolved, discord.Message):
            return resolved.author.id == bot_user.id
        try:
            referenced = await message.channel.fetch_message(int(message_id))
        except (discord.NotFound, discord.Forbidden, discord.HTTPException):
            return False
        return referenced.author.id == bot_user.id

    return is_reply_to_bot


# --- Embeds ---

def _now() -> datetime:
    return datetime.now(timezone.utc)


def build_reply_embed(reply: ChatbotReply, suggest_agents: bool = True) -> discord.Embed:
    """Embed for a normal chatbot answer, with a footer saying where it came from."""
    description = reply.content[:MAX_EMBED_DESCRIPTION]
    if suggest_agents and reply.suggested_agent is not None:
        description += (
            "\n\n_For more specialized help on this topic, try: "
            f"`/ask {reply.suggested_agent.value} <your question>`_"
        )

    embed = discord.Embed(description=description, color=COLORS["cyan"], timestamp=_now())
    embed.set_author(name=f"{reply.emoji} {reply.agent_name}")

    if reply.fallback:
        embed.color = COLORS["amber"]
        embed.set_footer(text="Fallback Mode - Limited AI available")
    elif reply.cached:
        embed.set_footer(text="Quick response from cache")
    else:
        embed.set_footer(text=f"{reply.agent_name} | CommunityOS AI")
    return embed


def build_rate_limit_embed(reply: ChatbotReply) -> discord.Embed:
    embed = discord.Embed(
        title="⏳ Slow Down!",
        description=reply.content,
        color=COLORS["amber"],
        timestamp=_now(),
    )
    embed.set_footer(text="CommunityOS Rate Limit")
    return embed


def build_error_embed(message: str = USER_FRIENDLY_ERRORS["chatbot"]) -> discord.Embed:
    embed = discord.Embed(description=message, color=COLORS["rose"], timestamp=_now())
    embed.set_footer(text="CommunityOS Bot Error")
    return embed


def greeting_text(reply: ChatbotReply) -> str:
    return f"{reply.emoji} **{reply.agent_name}** here!\n\n{reply.content}"


def simple_embed(title: str, description: str, color: str = "cyan", footer: Optional[str] = None) -> discord.Embed:
    embed = discord.Embed(
        title=title, description=description[:MAX_EMBED_DESCRIPTION],
        color=COLORS[color], timestamp=_now(),
    )
    if footer:
        embed.set_footer(text=footer)
    return embed
