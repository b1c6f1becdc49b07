"""
CommunityOS Bot - Configuration
API keys, Hub URL, provider models, and data paths.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Discord Bot Token
DISCORD_TOKEN = os.getenv('DISCORD_TOKEN')
BOT_NAME = os.getenv('BOT_NAME', 'Paco')


# --- Paco Hub ---

PACO_HUB_URL = os.getenv('PACO_HUB_URL', 'http://localhost:3010').rstrip('/')
HUB_TIMEOUT = float(os.getenv('HUB_TIMEOUT', '30'))

HUB_ENDPOINTS = {
    "agent_interact": "/api/agents/interact",
    "kb_search": "/api/kb/search",
    "support_tickets": "/api/support/tickets",
}


# --- Direct Providers ---

def load_providers() -> dict:
    """Describe the direct LLM providers used after the Hub.

    A provider without a key is still listed so status output can show it
    as skipped.
    """
    return {
        "anthropic": {
            "name": "Anthropic",
            "key": os.getenv('ANTHROPIC_API_KEY', ''),
            "model": os.getenv('ANTHROPIC_MODEL', 'claude-3-haiku-20240307'),
        },
        "openrouter": {
            "name": "OpenRouter",
            "url": "https://openrouter.ai/api/v1",
            "key": os.getenv('OPENROUTER_API_KEY', ''),
            "model": os.getenv('OPENROUTER_MODEL', 'anthropic/claude-3-haiku'),
        },
    }


PROVIDERS = load_providers()
API_TIMEOUT = float(os.getenv('API_TIMEOUT', '60'))

# AI Settings
DEFAULT_MAX_TOKENS = 1000

# Headers OpenRouter uses for attribution
OPENROUTER_HEADERS = {
    "HTTP-Referer": "https://communityos.ai",
    "X-Title": "CommunityOS Discord Bot",
}

# Data Storage
DATA_DIR = os.getenv('DATA_DIR', 'bot_data')
CHANNEL_MEMORY_DIR = os.path.join(DATA_DIR, "channels")
USER_MEMORY_DIR = os.path.join(DATA_DIR, "users")
CHATBOT_CONFIG_FILE = os.path.join(DATA_DIR, "chatbot_config.json")
LEADERBOARD_FILE = os.path.join(DATA_DIR, "game_leaderboards.json")

# Optional persona overrides (agent id -> persona fields)
PERSONAS_FILE = os.getenv('PERSONAS_FILE', os.path.join(DATA_DIR, "personas_by_agent.json"))
ORG_FILE = os.getenv('ORG_FILE', os.path.join(DATA_DIR, "org.json"))

# Metrics / Dashboard
METRICS_PORT = int(os.getenv('METRICS_PORT', '8000'))
DASHBOARD_HOST = os.getenv('DASHBOARD_HOST', '127.0.0.1')
DASHBOARD_PORT = int(os.getenv('DASHBOARD_PORT', '5000'))
