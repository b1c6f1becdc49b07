"""
CommunityOS Bot - Game Commands
Slash commands, buttons and chat-answer handling for the channel games.
"""

import random
import discord
from discord import app_commands
from typing import Dict, Optional

from constants import TRIVIA_USER_COOLDOWN, TRIVIA_DEFAULT_ROUNDS, QUIZ_DEFAULT_ROUNDS, LEADERBOARD_LIMIT
from discord_utils import get_user_display_name, simple_embed
from games import (
    GameEvent, GameResult, GameError, NoActiveGame, handle_game_message,
    TriviaSession, ScrambleSession, HangmanSession, NumberGuessSession, QuizSession,
    RpsChallengeSession, play_rps_vs_bot, rps_choices, TRIVIA_CATEGORIES, WORD_CATEGORIES,
)
from games.quick_games import WIN, LOSE, DRAW
from models import GameType
import logger as log

MEDALS = ["🥇", "🥈", "🥉"]


def _title(text: str) -> str:
    return text[:1].upper() + text[1:]


def _standings_lines(standings, points_key: str, extra) -> str:
    lines = []
    for i, player in enumerate(standings[:10]):
        medal = MEDALS[i] if i < len(MEDALS) else f"{i + 1}."
        lines.append(f"{medal} **{player['name']}** - {player[points_key]} pts ({extra(player)})")
    return "\n".join(lines) or "No one played!"


def _embed(title: str, description: str, color: str, footer: Optional[str] = None) -> discord.Embed:
    return simple_embed(title, description, color=color, footer=footer)


# --- Views ---

class TriviaAnswerView(discord.ui.View):
    """A-D buttons for the current trivia question."""

    def __init__(self, session: TriviaSession, timeout: float):
        super().__init__(timeout=timeout)
        self.session = session
        for letter in ("A", "B", "C", "D"):
            button = discord.ui.Button(label=letter, style=discord.ButtonStyle.primary)
            button.callback = self._make_callback(letter)
            self.add_item(button)

    def _make_callback(self, letter: str):
        async def callback(interaction: discord.Interaction):
            event = self.session.answer(str(interaction.user.id), get_user_display_name(interaction.user), letter)
            await interaction.response.send_message(render_event(event)["content"], ephemeral=True)
        return callback


class RpsBotView(discord.ui.View):
    """Buttons for a round against the bot. The bot's pick is fixed when the view is made."""

    def __init__(self, services, player: discord.abc.User, extended: bool):
        super().__init__(timeout=60)
        self.services = services
        self.player_id = player.id
        self.extended = extended
        self.choices = rps_choices(extended)
        self.bot_choice = random.choice(list(self.choices))
        for choice, info in self.choices.items():
            button = discord.ui.Button(label=info["name"], emoji=info["emoji"], style=discord.ButtonStyle.primary)
            button.callback = self._make_callback(choice)
            self.add_item(button)

    def _make_callback(self, choice: str):
        async def callback(interaction: discord.Interaction):
            if interaction.user.id != self.player_id:
                await interaction.response.send_message("❌ Start your own game with `/rps`!", ephemeral=True)
                return

            outcome, points = play_rps_vs_bot(choice, self.bot_choice, self.extended)
            name = get_user_display_name(interaction.user)
            self.services.games.record_results(
                GameType.RPS, [GameResult(str(interaction.user.id), name, points, outcome == WIN)]
            )
            self.stop()

            title = {WIN: "🏆 You Win!", LOSE: "❌ You Lose!", DRAW: "🤝 It's a Tie!"}[outcome]
            color = {WIN: "emerald", LOSE: "rose", DRAW: "amber"}[outcome]
            embed = _embed(
                title,
                f"**Your choice:** {self.choices[choice]['emoji']} {choice}\n"
                f"**Paco's choice:** {self.choices[self.bot_choice]['emoji']} {self.bot_choice}",
                color,
            )
            embed.add_field(name="Points", value=f"+{points}", inline=True)
            await interaction.response.edit_message(embed=embed, view=None)
        return callback


class RpsChallengeView(discord.ui.View):
    def __init__(self, session: RpsChallengeSession):
        super().__init__(timeout=session.timeout)
        self.session = session
        for choice, info in rps_choices(session.extended).items():
            button = discord.ui.Button(label=info["name"], emoji=info["emoji"], style=discord.ButtonStyle.primary)
            button.callback = self._make_callback(choice)
            self.add_item(button)

    def _make_callback(self, choice: str):
        async def callback(interaction: discord.Interaction):
            event = self.session.choose(str(interaction.user.id), choice)
            rendered = render_event(event)
            if event.kind == "resolved":
                self.stop()
                await interaction.response.send_message(f"✅ You chose **{choice}**!", ephemeral=True)
                await interaction.channel.send(**rendered)
            else:
                await interaction.response.send_message(rendered["content"], ephemeral=True)
        return callback


# --- Event rendering ---

def hangman_embed(session: HangmanSession) -> discord.Embed:
    wrong = ", ".join(session.wrong_letters) or "None"
    embed = _embed(
        "💀 Hangman",
        f"{session.stage}\n\n**Word:** `{session.word_display}`\n\n**Wrong Letters:** {wrong}",
        "rose" if session.wrong_guesses >= session.max_wrong else "cyan",
        footer="Type a single letter to guess!",
    )
    embed.add_field(name="Category", value=_title(session.category), inline=True)
    embed.add_field(name="Lives Left", value=str(session.lives_left), inline=True)
    embed.add_field(name="Letters", value=str(len(session.word)), inline=True)
    return embed


def render_event(event: GameEvent) -> Dict:
    """Turn a game event into keyword arguments for send()/reply()."""
    game = event.session.game_type
    kind = event.kind
    session = event.session

    # Trivia
    if game is GameType.TRIVIA:
        if kind == "started":
            embed = _embed(
                "🧠 Trivia Game Starting!",
                f"**Category:** {_title(event['category'])}\n**Rounds:** {event['rounds']}\n**Host:** {event['host']}",
                "purple", footer=f"Game starts in {int(event['delay'])} seconds...",
            )
            embed.add_field(
                name="How to Play",
                value=f"Click the button with your answer!\nYou have {int(session.question_time)} seconds per question.\nFaster answers = more points!",
                inline=False,
            )
            return {"embed": embed}
        if kind == "question":
            options = "\n".join(f"**{letter}.** {text}" for letter, text in event["options"])
            embed = _embed(
                f"Question {event['number']}/{event['total']}",
                f"**{event['question']}**\n\n{options}",
                "cyan", footer="Click a button to answer!",
            )
            embed.add_field(name="Time", value=f"{int(event['seconds'])} seconds", inline=True)
            return {"embed": embed, "view": TriviaAnswerView(session, event["seconds"])}
        if kind == "reveal":
            embed = _embed("✅ Time's Up!", f"The correct answer was: **{event['letter']}. {event['answer']}**", "emerald")
            if event["correct"]:
                embed.add_field(
                    name="Correct Answers",
                    value="\n".join(f"{c['name']}: +{c['points']} pts" for c in event["correct"]),
                    inline=False,
                )
            else:
                embed.add_field(name="Result", value="No one got it right!", inline=False)
            return {"embed": embed}
        if kind == "finished":
            total = event["questions"]
            embed = _embed(
                "🏆 Trivia Game Complete!",
                _standings_lines(event["standings"], "totalPoints", lambda p: f"{p['correct']}/{total} correct"),
                "purple", footer="Use /leaderboard trivia to see all-time rankings!",
            )
            embed.add_field(name="Category", value=_title(event["category"]), inline=True)
            embed.add_field(name="Questions", value=str(total), inline=True)
            embed.add_field(name="Duration", value=f"{event['duration']}s", inline=True)
            return {"embed": embed}
        if kind == "answer":
            if event["correct"]:
                return {"content": f"✅ Correct! +{event['points']} points ({event['seconds']}s)"}
            return {"content": f"❌ Wrong! The answer was {event['answer']}"}
        if kind == "already_answered":
            return {"content": "You already answered this question!"}
        return {"content": "No active trivia question!"}

    # Word scramble
    if game is GameType.WORD_SCRAMBLE:
        if kind == "started":
            embed = _embed(
                "🔀 Word Scramble!",
                f"Unscramble this word:\n\n# `{event['scrambled'].upper()}`",
                "cyan",
                footer=f"Type your answer! You have {int(event['seconds'])} seconds. Use /hint for a hint.",
            )
            embed.add_field(name="Category", value=_title(event["category"]), inline=True)
            embed.add_field(name="Difficulty", value=_title(event["difficulty"]), inline=True)
            embed.add_field(name="Points", value=str(event["points"]), inline=True)
            embed.add_field(name="Letters", value=str(event["letters"]), inline=True)
            return {"embed": embed}
        if kind == "solved":
            embed = _embed(
                "🎉 Correct!",
                f"**{event['winner']}** solved it!\n\nThe word was: **{event['word'].upper()}**",
                "emerald", footer="Use /leaderboard wordScramble to see rankings!",
            )
            embed.add_field(name="Points Earned", value=f"+{event['points']}", inline=True)
            embed.add_field(name="Time", value=f"{event['seconds']}s", inline=True)
            embed.add_field(name="Hints Used", value=str(event["hints"]), inline=True)
            return {"embed": embed}
        if kind == "hint":
            embed = _embed("💡 Hint", f"The word starts with: **{event['hint']}**", "amber")
            embed.add_field(name="Hints Remaining", value=str(event["remaining"]), inline=True)
            return {"embed": embed}
        if kind == "no_hints":
            return {"content": f"No more hints available! (Used {event['used']}/{event['max_hints']})"}
        if kind == "timeout":
            return {"embed": _embed("❌ Time's Up!", f"The word was: **{event['word'].upper()}**", "rose")}

    # Hangman
    if game is GameType.HANGMAN:
        if kind == "board":
            return {"embed": hangman_embed(session)}
        if kind == "letter":
            reaction = "✅" if event["hit"] else "❌"
            return {"content": f"{reaction} Letter: `{event['letter']}`", "embed": hangman_embed(session)}
        if kind == "already_guessed":
            return {"content": f"Letter `{event['letter']}` was already guessed!"}
        if kind == "won":
            embed = _embed("🎉 You Won!", f"{session.stage}\n\nThe word was: **{event['word'].upper()}**", "emerald")
            embed.add_field(name="Wrong Guesses", value=str(session.wrong_guesses), inline=True)
            embed.add_field(name="Points", value=f"+{event['points']}", inline=True)
            embed.add_field(name="Players", value=str(event["players"]), inline=True)
            return {"embed": embed}
        if kind == "word_guessed":
            embed = _embed(
                "🏆 Word Guessed!",
                f"**{event['winner']}** guessed the entire word!\n\nThe word was: **{event['word'].upper()}**",
                "emerald",
            )
            embed.add_field(name="Points", value=f"+{event['points']}", inline=True)
            return {"embed": embed}
        if kind == "lost":
            return {"embed": _embed("💀 Game Over!", f"{session.stage}\n\nThe word was: **{event['word'].upper()}**", "rose")}
        if kind == "timeout":
            return {"embed": _embed("⌛ Hangman Abandoned", f"No guesses for a while. The word was: **{event['word'].upper()}**", "rose")}

    # Number guess
    if game is GameType.NUMBER_GUESS:
        if kind == "started":
            embed = _embed(
                "🔢 Number Guessing Game",
                f"I'm thinking of a number between **1** and **{event['max_number']}**!\n\n"
                f"Type a number to guess. You have **{event['attempts']}** attempts.",
                "purple", footer="Type a number to guess!",
            )
            embed.add_field(name="Range", value=f"1 - {event['max_number']}", inline=True)
            embed.add_field(name="Attempts", value=str(event["attempts"]), inline=True)
            return {"embed": embed}
        if kind == "correct":
            embed = _embed(
                "🎉 Correct!",
                f"**{event['winner']}** guessed the number!\n\nThe number was: **{event['target']}**",
                "emerald",
            )
            embed.add_field(name="Attempts", value=f"{event['attempts']}/{event['max_attempts']}", inline=True)
            embed.add_field(name="Points", value=f"+{event['points']}", inline=True)
            return {"embed": embed}
        if kind == "hint":
            hint = "⬆️ Higher!" if event["higher"] else "⬇️ Lower!"
            return {"content": f"{hint} **({event['attempts_left']} attempts left)**"}
        if kind == "out_of_attempts":
            return {"embed": _embed("❌ Game Over!", f"Out of attempts!\n\nThe number was: **{event['target']}**", "rose")}
        if kind == "timeout":
            return {"embed": _embed("⌛ Number Game Abandoned", f"The number was: **{event['target']}**", "rose")}

    # Quiz
    if game is GameType.QUIZ:
        if kind == "started":
            return {"embed": _embed(
                "🏆 Quiz Competition Starting!",
                f"**Rounds:** {event['rounds']}\n**Host:** {event['host']}\n\n"
                "First to answer correctly wins points!\nType your answer in chat.",
                "purple", footer=f"Game starts in {int(session.start_delay)} seconds...",
            )}
        if kind == "question":
            embed = _embed(
                f"Question {event['number']}/{event['total']}", f"**{event['question']}**",
                "cyan", footer=f"Type your answer! {int(event['seconds'])} seconds...",
            )
            embed.add_field(name="Category", value=event["category"], inline=True)
            return {"embed": embed}
        if kind == "correct":
            return {"content": f"✅ Correct, **{event['winner']}**! +{event['points']} points"}
        if kind == "timeout":
            return {"content": f"❌ Time's up! The answer was: **{event['answer']}**"}
        if kind == "finished":
            embed = _embed(
                "🏆 Quiz Competition Complete!",
                _standings_lines(event["standings"], "points", lambda p: f"{p['correct']} correct"),
                "purple", footer="Use /leaderboard quiz to see all-time rankings!",
            )
            embed.add_field(name="Questions", value=str(event["questions"]), inline=True)
            return {"embed": embed}

    # Rock paper scissors (challenges)
    if game is GameType.RPS:
        if kind == "challenge":
            mode = "Rock Paper Scissors Lizard Spock" if event["extended"] else "Rock Paper Scissors"
            embed = _embed(
                "⚔️ RPS Challenge!",
                f"**{event['challenger']}** has challenged **{event['opponent']}** to {mode}!\n\n"
                "Both players: Click your choice below!",
                "purple", footer=f"Game expires in {int(event['seconds'])} seconds",
            )
            return {"embed": embed, "view": RpsChallengeView(session)}
        if kind == "chosen":
            return {"content": f"✅ You chose **{event['choice']}**! Waiting for {event['waiting_for']}..."}
        if kind == "already_chose":
            return {"content": "You already made your choice!"}
        if kind == "not_player":
            return {"content": "You're not part of this game!"}
        if kind == "expired":
            return {"content": "⌛ RPS game expired! Not everyone made a choice."}
        if kind == "resolved":
            choices = rps_choices(session.extended)
            title = "🤝 It's a Tie!" if event["winner"] is None else f"🏆 {event['winner']} Wins!"
            return {"embed": _embed(
                title,
                f"**{event['challenger']}:** {choices[event['challenger_choice']]['emoji']} {event['challenger_choice']}\n"
                f"**{event['opponent']}:** {choices[event['opponent_choice']]['emoji']} {event['opponent_choice']}",
                "amber" if event["winner"] is None else "emerald",
            )}

    if kind == "timeout":
        return {"content": f"⌛ {game.display_name} timed out."}
    return {"content": f"{game.display_name}: {kind}"}


def announcer(channel: discord.abc.Messageable, bot_name: str):
    """Listener that posts timer-driven game events to a channel."""

    async def announce(event: GameEvent):
        try:
            await channel.send(**render_event(event))
        except discord.HTTPException as e:
            log.warn(f"Could not announce {event}: {e}", bot_name)

    return announce


async def handle_game_answer(bot_instance, message: discord.Message) -> bool:
    """Offer a chat message to the channel's games. Returns True if a game used it."""
    event = handle_game_message(
        bot_instance.services.games,
        str(message.channel.id),
        str(message.author.id),
        get_user_display_name(message.author),
        message.content,
    )
    if event is None:
        return False
    await message.reply(**render_event(event))
    return True


# --- Commands ---

def setup_game_commands(bot_instance) -> None:
    """Register game commands."""
    tree = bot_instance.tree
    services = bot_instance.services
    registry = services.games

    async def start_session(interaction: discord.Interaction, session, cooldown: float = 0) -> None:
        try:
            opening = registry.start(session, user_id=str(interaction.user.id), cooldown=cooldown)
        except GameError as e:
            await interaction.response.send_message(f"❌ {e}", ephemeral=True)
            return
        await interaction.response.send_message(**render_event(opening))

    def session_kwargs(interaction: discord.Interaction) -> dict:
        return {"listener": announcer(interaction.channel, bot_instance.name)}

    category_choices = [app_commands.Choice(name=_title(c), value=c) for c in TRIVIA_CATEGORIES]
    word_choices = [app_commands.Choice(name=_title(c), value=c) for c in WORD_CATEGORIES]
    game_choices = [app_commands.Choice(name="All games", value="all")] + [
        app_commands.Choice(name=g.display_name, value=g.value) for g in GameType
    ]

    @tree.command(name="trivia", description="Start a trivia game")
    @app_commands.describe(category="Question category", rounds="Number of questions (1-10)")
    @app_commands.choices(category=category_choices)
    async def cmd_trivia(
        interaction: discord.Interaction,
        category: Optional[app_commands.Choice[str]] = None,
        rounds: int = TRIVIA_DEFAULT_ROUNDS,
    ) -> None:
        session = TriviaSession(
            interaction.channel_id,
            interaction.user.id,
            get_user_display_name(interaction.user),
            category=category.value if category else "tech",
            rounds=max(1, min(10, rounds)),
            **session_kwargs(interaction),
        )
        await start_session(interaction, session, cooldown=TRIVIA_USER_COOLDOWN)

    @tree.command(name="scramble", description="Start a word scramble")
    @app_commands.choices(
        category=word_choices,
        difficulty=[app_commands.Choice(name=_title(d), value=d) for d in ("easy", "medium", "hard")],
    )
    async def cmd_scramble(
        interaction: discord.Interaction,
        category: Optional[app_commands.Choice[str]] = None,
        difficulty: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        session = ScrambleSession(
            interaction.channel_id,
            category=category.value if category else "tech",
            difficulty=difficulty.value if difficulty else "medium",
            **session_kwargs(interaction),
        )
        await start_session(interaction, session)

    @tree.command(name="hint", description="Get a hint for the current word scramble")
    async def cmd_hint(interaction: discord.Interaction) -> None:
        session = registry.get(GameType.WORD_SCRAMBLE, str(interaction.channel_id))
        if session is None:
            await interaction.response.send_message(f"❌ {NoActiveGame(GameType.WORD_SCRAMBLE)}", ephemeral=True)
            return
        event = session.hint()
        await interaction.response.send_message(**render_event(event), ephemeral=event.kind == "no_hints")

    @tree.command(name="hangman", description="Start a hangman game")
    @app_commands.choices(category=word_choices)
    async def cmd_hangman(
        interaction: discord.Interaction,
        category: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        session = HangmanSession(
            interaction.channel_id,
            interaction.user.id,
            get_user_display_name(interaction.user),
            category=category.value if category else "tech",
            **session_kwargs(interaction),
        )
        await start_session(interaction, session)

    @tree.command(name="numberguess", description="Guess the number I'm thinking of")
    @app_commands.describe(max_number="Highest possible number (10-1000)", attempts="Number of attempts (3-15)")
    async def cmd_numberguess(interaction: discord.Interaction, max_number: int = 100, attempts: int = 7) -> None:
        session = NumberGuessSession(
            interaction.channel_id,
            interaction.user.id,
            get_user_display_name(interaction.user),
            max_number=max(10, min(1000, max_number)),
            max_attempts=max(3, min(15, attempts)),
            **session_kwargs(interaction),
        )
        await start_session(interaction, session)

    @tree.command(name="quiz", description="Start a quiz competition")
    @app_commands.describe(rounds="Number of questions (1-10)")
    async def cmd_quiz(interaction: discord.Interaction, rounds: int = QUIZ_DEFAULT_ROUNDS) -> None:
        session = QuizSession(
            interaction.channel_id,
            interaction.user.id,
            get_user_display_name(interaction.user),
            rounds=max(1, min(10, rounds)),
            **session_kwargs(interaction),
        )
        await start_session(interaction, session)

    @tree.command(name="rps", description="Play rock paper scissors against Paco or another member")
    @app_commands.describe(opponent="Member to challenge (leave empty to play Paco)", extended="Add lizard and spock")
    async def cmd_rps(
        interaction: discord.Interaction,
        opponent: Optional[discord.Member] = None,
        extended: bool = False,
    ) -> None:
        mode = "Rock Paper Scissors Lizard Spock" if extended else "Rock Paper Scissors"
        if opponent and opponent.id != interaction.user.id and not opponent.bot:
            session = RpsChallengeSession(
                interaction.channel_id,
                interaction.user.id, get_user_display_name(interaction.user),
                opponent.id, get_user_display_name(opponent),
                extended=extended,
                **session_kwargs(interaction),
            )
            await start_session(interaction, session)
            return

        embed = _embed("🤖 Rock Paper Scissors", f"Challenge Paco to {mode}!\n\nChoose your move:", "cyan",
                       footer="Click a button to play!")
        await interaction.response.send_message(embed=embed, view=RpsBotView(services, interaction.user, extended))

    @tree.command(name="leaderboard", description="Show game rankings")
    @app_commands.choices(game=game_choices)
    async def cmd_leaderboard(
        interaction: discord.Interaction,
        game: Optional[app_commands.Choice[str]] = None,
    ) -> None:
        game_value = game.value if game else "all"
        if game_value == "all":
            entries = services.leaderboard.combined(LEADERBOARD_LIMIT)
            title = "🏆 All Games Leaderboard"
            lines = [
                f"{MEDALS[i] if i < len(MEDALS) else f'{i + 1}.'} **{e['name']}** - "
                f"{e['totalScore']} pts ({e['totalWins']} wins, {e['totalGames']} games)"
                for i, e in enumerate(entries)
            ]
        else:
            game_type = GameType.parse(game_value)
            entries = services.leaderboard.top(game_type, LEADERBOARD_LIMIT)
            title = f"🏆 {game_type.display_name} Leaderboard"
            lines = [
                f"{MEDALS[i] if i < len(MEDALS) else f'{i + 1}.'} **{e['name']}** - "
                f"{e['score']} pts ({e['wins']}W/{e['losses']}L, best streak {e['bestStreak']})"
                for i, e in enumerate(entries)
            ]

        await interaction.response.send_message(
            embed=_embed(title, "\n".join(lines) or "No scores yet. Play a game!", "purple")
        )

    @tree.command(name="endgame", description="Force-end all games in this channel (moderators)")
    async def cmd_endgame(interaction: discord.Interaction) -> None:
        perms = getattr(interaction.user, "guild_permissions", None)
        if perms is None or not (perms.manage_messages or perms.administrator):
            await interaction.response.send_message("❌ You need Manage Messages to end games.", ephemeral=True)
            return

        ended = registry.end_channel(str(interaction.channel_id))
        if not ended:
            await interaction.response.send_message("ℹ️ No games running in this channel.", ephemeral=True)
            return
        names = ", ".join(g.display_name for g in ended)
        log.info(f"{interaction.user} force-ended {names} in #{interaction.channel}", bot_instance.name)
        await interaction.response.send_message(f"🛑 Ended: {names}")
