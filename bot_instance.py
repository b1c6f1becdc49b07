"""
CommunityOS Bot - Bot Instance
Encapsulates the Discord client, its command tree and the message pipeline hookup.
"""

import discord
from discord import app_commands
import asyncio

from chatbot import ChatbotReply, GREETING, RATE_LIMITED
from commands.games import handle_game_answer
from commands.hub import handle_prefix_command
from discord_utils import (
    to_incoming, reply_checker, build_reply_embed, build_rate_limit_embed,
    build_error_embed, greeting_text,
)
from services import Services
import logger as log


class BotInstance:
    """A single Discord bot wired to a set of services."""

    def __init__(self, name: str, token: str, services: Services):
        self.name = name
        self.token = token
        self.services = services

        # Create intents
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members = True

        # Create client and tree
        self.client = discord.Client(intents=intents)
        self.tree = app_commands.CommandTree(self.client)

        # Set up events and commands
        self._setup_events()
        self._setup_commands()

    def _setup_events(self):
        """Register event handlers."""

        @self.client.event
        async def on_ready():
            metrics = self.services.metrics
            if metrics:
                metrics.update_bot_status(online=True, guilds=len(self.client.guilds))

            # Sync commands
            try:
                synced = await self.tree.sync()
                log.ok(f"Synced {len(synced)} commands", self.name)
            except discord.HTTPException as e:
                log.error(f"Command sync failed: {e}", self.name)

            log.online(f"{self.client.user} is online in {len(self.client.guilds)} server(s)!", self.name)

        @self.client.event
        async def on_message(message: discord.Message):
            await self.handle_message(message)

        @self.client.event
        async def on_guild_join(guild: discord.Guild):
            log.info(f"Joined server: {guild.name}", self.name)
            if self.services.metrics:
                self.services.metrics.update_bot_status(online=True, guilds=len(self.client.guilds))

    async def handle_message(self, message: discord.Message):
        """Route a message: own messages are only remembered, then games, prefixes, chatbot."""
        incoming = to_incoming(message, self.client.user)

        if message.author == self.client.user or message.author.bot:
            await self.services.chatbot.process_message(incoming)
            return

        try:
            if not isinstance(message.channel, discord.DMChannel):
                if await handle_game_answer(self, message):
                    return
            if await handle_prefix_command(self, message):
                return

            reply = await self.services.chatbot.process_message(
                incoming, reply_checker(message, self.client.user)
            )
            if reply is not None:
                await self._send_reply(message, reply)

        except discord.HTTPException as e:
            log.error(f"Discord API error: {e}", self.name)
            self._record_error("discord")
        except Exception as e:
            log.error(f"Error processing ({type(e).__name__}): {e}", self.name)
            self._record_error(type(e).__name__)
            await self._send_user_error(message)

    async def _send_reply(self, message: discord.Message, reply: ChatbotReply):
        delay = self.services.chatbot_config.response_delay
        async with message.channel.typing():
            if delay:
                await asyncio.sleep(delay)

            if reply.kind == GREETING:
                await message.reply(greeting_text(reply))
            elif reply.kind == RATE_LIMITED:
                await message.reply(embed=build_rate_limit_embed(reply))
            else:
                embed = build_reply_embed(reply, self.services.chatbot_config.suggest_agents)
                await message.reply(embed=embed)

        log.debug(f"Replied as {reply.agent_name} ({reply.trigger})", self.name)

    async def _send_user_error(self, message: discord.Message):
        try:
            await message.reply(embed=build_error_embed())
        except discord.HTTPException as e:
            log.warn(f"Could not send error message: {e}", self.name)

    def _record_error(self, error_type: str):
        if self.services.metrics:
            self.services.metrics.record_error(error_type)

    def _setup_commands(self) -> None:
        """Register slash commands from commands module."""
        from commands import setup_all_commands
        setup_all_commands(self)

    async def start(self):
        """Start the bot."""
        await self.client.start(self.token)

    async def close(self):
        """Close the bot connection and release services."""
        if self.services.metrics:
            self.services.metrics.update_bot_status(online=False)
        await self.services.close()
        await self.client.close()
