"""
CommunityOS Bot - Hub Commands
Ask an agent, search the knowledge base, open support tickets. Also the ?kb / !paco prefixes.
"""

import discord
from discord import app_commands
from typing import List, Optional

from constants import COLORS, KB_COMMAND_RESULTS, MAX_EMBED_DESCRIPTION, USER_FRIENDLY_ERRORS
from discord_utils import get_user_display_name, simple_embed
from hub_client import HubError, TICKET_PRIORITIES
from models import AgentId
from personas import get_agent_emoji
from providers import GenerationRequest, GenerationResult
import logger as log

KB_PREFIX = "?kb "
PACO_PREFIX = "!paco "


async def ask_agent(services, agent_id: AgentId, question: str, user_id: str, channel_name: str) -> GenerationResult:
    """Run a direct question through the backend chain as a specific agent."""
    system_prompt = services.personas.system_prompt(channel_name, agent_id=agent_id)
    user_context = services.memory.generate_user_context(user_id)
    full_prompt = f"## About this User\n{user_context}\n\n## User Message\n{question}"

    result = await services.chain.generate(GenerationRequest(
        prompt=question,
        full_prompt=full_prompt,
        system_prompt=system_prompt,
        channel_name=channel_name,
        agent_id=agent_id.value,
        user_id=user_id,
    ))
    services.memory.record_interaction(user_id, {
        "type": "ask",
        "channel": channel_name,
        "agentId": agent_id.value,
        "success": result.success,
    })
    return result


def answer_embed(services, agent_id: AgentId, question: str, result: GenerationResult) -> discord.Embed:
    persona = services.personas.get_agent_persona(agent_id)
    if result.rate_limited:
        return simple_embed("⏳ Slow Down!", result.response, color="amber", footer="CommunityOS Rate Limit")

    embed = discord.Embed(
        description=result.response[:MAX_EMBED_DESCRIPTION],
        color=COLORS["amber"] if result.fallback else COLORS["cyan"],
    )
    embed.set_author(name=f"{get_agent_emoji(agent_id)} {persona.display_name}")
    embed.add_field(name="Question", value=question[:1024], inline=False)
    if result.fallback:
        embed.set_footer(text="Fallback Mode - Limited AI available")
    elif result.cached:
        embed.set_footer(text="Quick response from cache")
    else:
        embed.set_footer(text=f"{persona.display_name} | CommunityOS AI")
    return embed


def kb_embed(query: str, results: List[dict]) -> discord.Embed:
    if not results:
        return simple_embed("📚 Knowledge Base", f"No results found for **{query}**.", color="amber")

    lines = []
    for r in results:
        title = r.get("title") or r.get("name") or "Untitled"
        summary = (r.get("summary") or r.get("content") or "")[:200]
        lines.append(f"**{title}**\n{summary}")
    return simple_embed(
        f"📚 Knowledge Base: {query}", "\n\n".join(lines),
        color="indigo", footer=f"{len(results)} result(s)",
    )


# --- Prefix triggers ---

async def handle_prefix_command(bot_instance, message: discord.Message) -> bool:
    """Handle ?kb <query> and !paco <question>. Returns True if the message was consumed."""
    content = message.content.strip()
    services = bot_instance.services
    lowered = content.lower()

    if lowered.startswith(KB_PREFIX):
        query = content[len(KB_PREFIX):].strip()
        if not query:
            return False
        results = await services.hub.search_kb(query, KB_COMMAND_RESULTS)
        await message.reply(embed=kb_embed(query, results))
        return True

    if lowered.startswith(PACO_PREFIX):
        question = content[len(PACO_PREFIX):].strip()
        if not question:
            return False
        async with message.channel.typing():
            result = await ask_agent(
                services, AgentId.MAIN, question, str(message.author.id),
                getattr(message.channel, "name", "dm"),
            )
        await message.reply(embed=answer_embed(services, AgentId.MAIN, question, result))
        return True

    return False


def setup_hub_commands(bot_instance) -> None:
    """Register Hub-backed commands."""
    tree = bot_instance.tree
    services = bot_instance.services

    @tree.command(name="ask", description="Ask a specific agent a question")
    @app_commands.describe(agent="Agent id (e.g. paco, coder, support-sheriff)", question="Your question")
    async def cmd_ask(interaction: discord.Interaction, agent: str, question: str) -> None:
        try:
            agent_id = AgentId.parse(agent)
        except ValueError:
            await interaction.response.send_message(
                f"❌ Unknown agent `{agent}`. Try `paco` or an agent id like `coder`.", ephemeral=True
            )
            return

        await interaction.response.defer()
        result = await ask_agent(
            services, agent_id, question, str(interaction.user.id),
            getattr(interaction.channel, "name", "dm"),
        )
        await interaction.followup.send(embed=answer_embed(services, agent_id, question, result))

    @cmd_ask.autocomplete("agent")
    async def ask_agent_autocomplete(interaction: discord.Interaction, current: str) -> List[app_commands.Choice[str]]:
        current = current.lower()
        matches = [a.value for a in AgentId if current in a.value]
        return [app_commands.Choice(name=m, value=m) for m in matches[:25]]

    @tree.command(name="kb", description="Search the knowledge base")
    @app_commands.describe(query="What to search for")
    async def cmd_kb(interaction: discord.Interaction, query: str) -> None:
        await interaction.response.defer()
        results = await services.hub.search_kb(query, KB_COMMAND_RESULTS)
        await interaction.followup.send(embed=kb_embed(query, results))

    @tree.command(name="ticket", description="Open a support ticket")
    @app_commands.describe(description="Describe the problem", priority="Ticket priority")
    @app_commands.choices(priority=[app_commands.Choice(name=p, value=p) for p in TICKET_PRIORITIES])
    async def cmd_ticket(
        interaction: discord.Interaction,
        description: str,
        priority: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        await interaction.response.defer(ephemeral=True)
        try:
            ticket = await services.hub.create_ticket(
                description,
                str(interaction.user.id),
                get_user_display_name(interaction.user),
                priority.value if priority else "medium",
            )
        except HubError as e:
            log.warn(f"Ticket creation failed: {e}", bot_instance.name)
            await interaction.followup.send(f"❌ {USER_FRIENDLY_ERRORS['hub_unavailable']}", ephemeral=True)
            return

        embed = simple_embed(
            "🎫 Ticket Created",
            f"**ID:** {ticket.get('id', 'pending')}\n"
            f"**Status:** {ticket.get('status', 'open')}\n"
            f"**Priority:** {ticket.get('priority', priority.value if priority else 'medium')}",
            color="emerald",
            footer="Our support team will follow up",
        )
        await interaction.followup.send(embed=embed, ephemeral=True)
