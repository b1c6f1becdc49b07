"""
CommunityOS Bot - Core Commands
Chatbot administration: status, channels, keywords, personality, global options, limits and cache.
"""

import discord
from discord import app_commands
from typing import Optional

from chatbot_config import SCALAR_OPTIONS, parse_option
from constants import USER_FRIENDLY_ERRORS
import logger as log


async def is_owner(interaction: discord.Interaction) -> bool:
    """Check if the user is the application owner."""
    app_info = await interaction.client.application_info()
    if app_info.team:
        return interaction.user.id in [m.id for m in app_info.team.members]
    return interaction.user.id == app_info.owner.id


async def is_admin(interaction: discord.Interaction) -> bool:
    """Server managers and the bot owner."""
    perms = getattr(interaction.user, "guild_permissions", None)
    if perms is not None and (perms.manage_guild or perms.administrator):
        return True
    return await is_owner(interaction)


async def deny(interaction: discord.Interaction):
    await interaction.response.send_message(f"❌ {USER_FRIENDLY_ERRORS['no_permission']}", ephemeral=True)


def setup_core_commands(bot_instance) -> None:
    """Register chatbot management commands."""
    tree = bot_instance.tree
    services = bot_instance.services
    config = services.chatbot_config

    @tree.command(name="status", description="Check chatbot status")
    async def cmd_status(interaction: discord.Interaction) -> None:
        summary = config.summary()
        cache = services.cache.stats()
        msg = (
            f"**Bot:** {bot_instance.name}\n"
            f"**Chatbot:** {'✅ enabled' if summary['globalEnabled'] else '⛔ disabled'}\n"
            f"**Channels:** {summary['enabledChannelCount']} enabled, {summary['disabledChannelCount']} disabled\n"
            f"**Trigger keywords:** {summary['triggerKeywordCount']}\n"
            f"**Cache:** {cache['size']} entries ({cache['hits']} hits / {cache['misses']} misses)\n"
            f"**Active games:** {len(services.games)}\n\n"
            f"{services.chain.get_status()}"
        )
        await interaction.response.send_message(msg, ephemeral=True)

    @tree.command(name="chatbot_channel", description="Enable or disable the chatbot in a channel")
    @app_commands.describe(action="Enable or disable", channel="Channel (defaults to this one)")
    @app_commands.choices(action=[
        app_commands.Choice(name="enable", value="enable"),
        app_commands.Choice(name="disable", value="disable"),
    ])
    async def cmd_chatbot_channel(
        interaction: discord.Interaction,
        action: app_commands.Choice[str],
        channel: Optional[discord.TextChannel] = None,
    ) -> None:
        if not await is_admin(interaction):
            await deny(interaction)
            return

        name = (channel or interaction.channel).name
        if action.value == "enable":
            config.enable_channel(name)
            await interaction.response.send_message(f"✅ Chatbot enabled in #{name}", ephemeral=True)
        else:
            config.disable_channel(name)
            await interaction.response.send_message(f"✅ Chatbot disabled in #{name}", ephemeral=True)
        log.info(f"Chatbot {action.value}d in #{name} by {interaction.user}", bot_instance.name)

    @tree.command(name="chatbot_keyword", description="Add or remove a trigger keyword")
    @app_commands.describe(action="Add or remove", keyword="Keyword (matched case-insensitively)")
    @app_commands.choices(action=[
        app_commands.Choice(name="add", value="add"),
        app_commands.Choice(name="remove", value="remove"),
    ])
    async def cmd_chatbot_keyword(
        interaction: discord.Interaction,
        action: app_commands.Choice[str],
        keyword: str,
    ) -> None:
        if not await is_admin(interaction):
            await deny(interaction)
            return

        if action.value == "add":
            changed = config.add_trigger_keyword(keyword)
            msg = f"✅ Added keyword `{keyword.lower()}`" if changed else f"❌ `{keyword}` is already a keyword"
        else:
            changed = config.remove_trigger_keyword(keyword)
            msg = f"✅ Removed keyword `{keyword.lower()}`" if changed else f"❌ `{keyword}` is not a keyword"
        await interaction.response.send_message(msg, ephemeral=True)

    @tree.command(name="chatbot_personality", description="Adjust personality sliders (0-1)")
    async def cmd_chatbot_personality(
        interaction: discord.Interaction,
        humor: Optional[float] = None,
        formality: Optional[float] = None,
        verbosity: Optional[float] = None,
        emoji_usage: Optional[float] = None,
    ) -> None:
        if not await is_admin(interaction):
            await deny(interaction)
            return

        settings = {
            k: v for k, v in
            {"humor": humor, "formality": formality, "verbosity": verbosity, "emoji_usage": emoji_usage}.items()
            if v is not None
        }
        try:
            personality = config.set_personality(**settings)
        except ValueError as e:
            await interaction.response.send_message(f"❌ {e}", ephemeral=True)
            return

        lines = "\n".join(f"• {k}: {v}" for k, v in personality.items())
        await interaction.response.send_message(f"✅ **Personality:**\n{lines}", ephemeral=True)

    @tree.command(name="chatbot_set", description="Set a global chatbot option")
    @app_commands.describe(option="Option name", value="New value")
    @app_commands.choices(option=[app_commands.Choice(name=k, value=k) for k in SCALAR_OPTIONS])
    async def cmd_chatbot_set(
        interaction: discord.Interaction,
        option: app_commands.Choice[str],
        value: str,
    ) -> None:
        if not await is_admin(interaction):
            await deny(interaction)
            return

        try:
            parsed = parse_option(option.value, value)
        except ValueError as e:
            await interaction.response.send_message(f"❌ Invalid value for {option.value}: {e}", ephemeral=True)
            return

        config.set_global(option.value, parsed)
        await interaction.response.send_message(f"✅ **{option.value}** = `{parsed}`", ephemeral=True)

    @tree.command(name="chatbot_reset", description="Reset chatbot configuration to defaults (owner only)")
    async def cmd_chatbot_reset(interaction: discord.Interaction) -> None:
        if not await is_owner(interaction):
            await interaction.response.send_message("❌ Only the bot owner can use this command", ephemeral=True)
            return
        config.reset()
        log.warn("Chatbot config reset to defaults", bot_instance.name)
        await interaction.response.send_message("✅ Chatbot configuration reset", ephemeral=True)

    @tree.command(name="ratelimit_clear", description="Clear a user's chatbot rate limit")
    async def cmd_ratelimit_clear(interaction: discord.Interaction, user: discord.User) -> None:
        if not await is_admin(interaction):
            await deny(interaction)
            return
        cleared = services.rate_limiter.clear(str(user.id))
        msg = f"✅ Rate limit cleared for {user.display_name}" if cleared else f"ℹ️ {user.display_name} has no rate limit entry"
        await interaction.response.send_message(msg, ephemeral=True)

    @tree.command(name="cache_clear", description="Clear the chatbot response cache")
    async def cmd_cache_clear(interaction: discord.Interaction) -> None:
        if not await is_admin(interaction):
            await deny(interaction)
            return
        count = services.cache.clear()
        await interaction.response.send_message(f"✅ Cleared {count} cached responses", ephemeral=True)

    @tree.command(name="forget_channel", description="Clear the chatbot's memory of this channel")
    async def cmd_forget_channel(interaction: discord.Interaction) -> None:
        if not await is_admin(interaction):
            await deny(interaction)
            return
        services.memory.clear_channel_memory(str(interaction.channel_id))
        await interaction.response.send_message("✅ Channel memory cleared", ephemeral=True)
