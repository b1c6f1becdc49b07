"""
CommunityOS Bot - Commands Package
Organizes slash commands into logical groups.
"""

# Re-export command registration functions for easy import
from .core import setup_core_commands
from .hub import setup_hub_commands
from .games import setup_game_commands


def setup_all_commands(bot_instance):
    """Register all commands for a bot instance."""
    setup_core_commands(bot_instance)
    setup_hub_commands(bot_instance)
    setup_game_commands(bot_instance)
