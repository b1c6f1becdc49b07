"""
CommunityOS Bot - Chatbot Configuration
Runtime-adjustable chatbot behaviour, persisted to JSON after every change.
"""

import copy
from typing import Dict, List, Optional

from config import CHATBOT_CONFIG_FILE
from storage import load_json, save_json
import logger as log

# Default values
DEFAULTS = {
    "enabled": True,
    "responseDelay": 500,  # ms before a reply is sent
    "respondToQuestions": True,  # Messages ending with ?
    "useKBContext": True,  # Attach KB excerpts for support/code/product topics
    "suggestAgents": True,  # Point users at a better-suited agent
    "randomResponseChance": 0.05,
    "randomResponseChannels": ["general", "stream-chat", "content-ideas"],
    "triggerKeywords": [
        "paco", "help me", "anyone know", "how do i", "what is",
        "can someone", "does anyone", "bot", "@paco",
    ],
    "channels": {
        # Welcome & General
        "welcome": {"enabled": True, "behavior": "welcoming", "responsiveness": "high"},
        "general": {"enabled": True, "behavior": "friendly", "responsiveness": "medium"},
        "introductions": {"enabled": True, "behavior": "welcoming", "responsiveness": "high"},
        "announcements": {"enabled": False, "behavior": "professional", "responsiveness": "low"},
        "rules": {"enabled": False, "behavior": "professional", "responsiveness": "low"},
        # Support
        "support": {"enabled": True, "behavior": "helpful", "responsiveness": "high"},
        "support-tickets": {"enabled": True, "behavior": "professional", "responsiveness": "high"},
        # Dev / Build
        "dev-chat": {"enabled": True, "behavior": "technical", "responsiveness": "high"},
        "platform-eng": {"enabled": True, "behavior": "technical", "responsiveness": "medium"},
        "build-swarm": {"enabled": True, "behavior": "technical", "responsiveness": "medium"},
        "bug-reports": {"enabled": True, "behavior": "helpful", "responsiveness": "high"},
        "feature-requests": {"enabled": True, "behavior": "creative", "responsiveness": "medium"},
        # Agents
        "agent-logs": {"enabled": False, "behavior": "status", "responsiveness": "low"},
        "agent-chat": {"enabled": True, "behavior": "friendly", "responsiveness": "high"},
        "agent-general": {"enabled": True, "behavior": "friendly", "responsiveness": "high"},
        "agent-reports": {"enabled": False, "behavior": "status", "responsiveness": "low"},
        # Knowledge Base
        "kb-search": {"enabled": True, "behavior": "informative", "responsiveness": "high"},
        "kb-chat": {"enabled": True, "behavior": "informative", "responsiveness": "high"},
        "kb-updates": {"enabled": False, "behavior": "informative", "responsiveness": "low"},
        "kb-discussions": {"enabled": True, "behavior": "informative", "responsiveness": "medium"},
        # Streaming
        "stream-chat": {"enabled": True, "behavior": "entertaining", "responsiveness": "high"},
        "live-chat": {"enabled": True, "behavior": "entertaining", "responsiveness": "high"},
        "stream-schedule": {"enabled": True, "behavior": "informative", "responsiveness": "medium"},
        "stream-topics": {"enabled": True, "behavior": "creative", "responsiveness": "medium"},
        "stream-clips": {"enabled": True, "behavior": "entertaining", "responsiveness": "low"},
        "stream-feedback": {"enabled": True, "behavior": "helpful", "responsiveness": "medium"},
        # Content
        "content-ideas": {"enabled": True, "behavior": "creative", "responsiveness": "medium"},
        "ideas": {"enabled": True, "behavior": "creative", "responsiveness": "medium"},
        "social-media": {"enabled": True, "behavior": "creative", "responsiveness": "medium"},
        # BIM
        "bim-general": {"enabled": True, "behavior": "friendly", "responsiveness": "medium"},
        "bim-projects": {"enabled": True, "behavior": "creative", "responsiveness": "medium"},
        "bim-showcase": {"enabled": True, "behavior": "encouraging", "responsiveness": "medium"},
        # Logs
        "member-log": {"enabled": False, "behavior": "status", "responsiveness": "none"},
        "status": {"enabled": False, "behavior": "status", "responsiveness": "none"},
        "moderation-log": {"enabled": False, "behavior": "status", "responsiveness": "none"},
        "ship-log": {"enabled": False, "behavior": "encouraging", "responsiveness": "low"},
    },
    "behaviors": {
        "welcoming": "Be warm, friendly, and welcoming to all users. Help them feel at home.",
        "friendly": "Be helpful and conversational. Keep responses engaging but informative.",
        "technical": "Focus on technical accuracy. Use code examples when helpful. Be precise.",
        "helpful": "Prioritize solving user problems. Be patient and thorough.",
        "professional": "Maintain a professional tone. Be concise and authoritative.",
        "creative": "Encourage creative thinking. Build on ideas and suggest improvements.",
        "informative": "Provide accurate information. Cite sources when available.",
        "entertaining": "Be fun and engaging. Keep the energy high but stay helpful.",
        "encouraging": "Celebrate achievements. Provide positive reinforcement.",
        "status": "Provide status updates only. Minimal conversational interaction.",
    },
    "responsiveness": {
        "high": {"responseChance": 1.0, "questionResponse": True, "keywordResponse": True},
        "medium": {"responseChance": 0.7, "questionResponse": True, "keywordResponse": True},
        "low": {"responseChance": 0.3, "questionResponse": True, "keywordResponse": False},
        "none": {"responseChance": 0, "questionResponse": False, "keywordResponse": False},
    },
    "personality": {
        "humor": 0.3,
        "formality": 0.5,
        "verbosity": 0.5,
        "emoji_usage": 0.2,
    },
}

# Sections that only change through their dedicated setters
_STRUCTURED_KEYS = {"channels", "behaviors", "responsiveness", "personality"}

# Unconfigured channels whose name contains one of these stay quiet
_QUIET_CHANNEL_PATTERNS = ("log", "logs", "status", "mod")


# --- Option parsers ---
# Each takes a raw value (from JSON or a slash command string) and returns
# the stored value, or raises ValueError.

def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "on", "yes", "1"):
            return True
        if lowered in ("false", "off", "no", "0"):
            return False
    raise ValueError(f"expected true/false, got {value!r}")


def _parse_chance(value) -> float:
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    try:
        chance = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"expected a number, got {value!r}")
    if not 0 <= chance <= 1:
        raise ValueError("must be between 0 and 1")
    return chance


def _parse_delay(value) -> int:
    if isinstance(value, bool) or isinstance(value, float) and not value.is_integer():
        raise ValueError(f"expected whole milliseconds, got {value!r}")
    try:
        delay = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"expected whole milliseconds, got {value!r}")
    if delay < 0:
        raise ValueError("must not be negative")
    return delay


def _parse_word_list(value) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("expected a list of strings")
    words = []
    for item in value:
        normalized = item.strip().lower()
        if normalized and normalized not in words:
            words.append(normalized)
    return words


OPTION_PARSERS = {
    "enabled": _parse_bool,
    "respondToQuestions": _parse_bool,
    "useKBContext": _parse_bool,
    "suggestAgents": _parse_bool,
    "randomResponseChance": _parse_chance,
    "responseDelay": _parse_delay,
    "randomResponseChannels": _parse_word_list,
    "triggerKeywords": _parse_word_list,
}

# Options settable from a single slash command value
SCALAR_OPTIONS = [k for k, parser in OPTION_PARSERS.items() if parser is not _parse_word_list]


def parse_option(key: str, value):
    """Validate a top-level option. Raises KeyError for unknown keys, ValueError for bad values."""
    if key not in OPTION_PARSERS:
        raise KeyError(key)
    return OPTION_PARSERS[key](value)


class ChatbotConfig:
    """Process-wide chatbot settings with file persistence."""

    def __init__(self, path: str = CHATBOT_CONFIG_FILE):
        self.path = path
        self.data: dict = self._load()

    def _load(self) -> dict:
        config = copy.deepcopy(DEFAULTS)
        saved = load_json(self.path)
        if not isinstance(saved, dict):
            return config

        for key, value in saved.items():
            if key in OPTION_PARSERS:
                try:
                    value = parse_option(key, value)
                except ValueError as e:
                    log.warn(f"Ignoring saved {key} ({e}), using default")
                    continue
            elif key in _STRUCTURED_KEYS and not isinstance(value, dict):
                log.warn(f"Ignoring saved {key}: expected an object")
                continue
            config[key] = value
        return config

    def save(self) -> bool:
        try:
            save_json(self.path, self.data)
            return True
        except OSError as e:
            log.error(f"Failed to save chatbot config: {e}")
            return False

    # --- Accessors ---

    @property
    def enabled(self) -> bool:
        return bool(self.data["enabled"])

    @property
    def response_delay(self) -> float:
        """Delay before replying, in seconds."""
        return max(0, self.data.get("responseDelay", 0)) / 1000

    @property
    def respond_to_questions(self) -> bool:
        return bool(self.data["respondToQuestions"])

    @property
    def use_kb_context(self) -> bool:
        return bool(self.data["useKBContext"])

    @property
    def suggest_agents(self) -> bool:
        return bool(self.data["suggestAgents"])

    @property
    def random_response_chance(self) -> float:
        return float(self.data["randomResponseChance"])

    @property
    def random_response_channels(self) -> List[str]:
        return self.data["randomResponseChannels"]

    @property
    def trigger_keywords(self) -> List[str]:
        return self.data["triggerKeywords"]

    @property
    def personality(self) -> Dict[str, float]:
        return self.data["personality"]

    # --- Channels ---

    def _channel(self, channel_name: str) -> Optional[dict]:
        return self.data["channels"].get(channel_name.lower())

    def is_channel_enabled(self, channel_name: str) -> bool:
        if not self.enabled:
            return False

        channel_config = self._channel(channel_name)
        if channel_config is None:
            name = channel_name.lower()
            return not any(p in name for p in _QUIET_CHANNEL_PATTERNS)

        return channel_config.get("enabled", True) is not False

    def is_random_channel(self, channel_name: str) -> bool:
        return channel_name.lower() in self.random_response_channels

    def enable_channel(self, channel_name: str) -> bool:
        return self._set_channel_enabled(channel_name, True)

    def disable_channel(self, channel_name: str) -> bool:
        return self._set_channel_enabled(channel_name, False)

    def _set_channel_enabled(self, channel_name: str, enabled: bool) -> bool:
        name = channel_name.lower()
        channels = self.data["channels"]
        if name not in channels:
            channels[name] = {"enabled": enabled, "behavior": "friendly", "responsiveness": "medium"}
        else:
            channels[name]["enabled"] = enabled
        return self.save()

    def get_channel_behavior(self, channel_name: str) -> str:
        """Behaviour description used in the system prompt."""
        channel_config = self._channel(channel_name) or {}
        behavior = channel_config.get("behavior", "friendly")
        behaviors = self.data["behaviors"]
        return behaviors.get(behavior, behaviors["friendly"])

    def get_channel_responsiveness(self, channel_name: str) -> dict:
        channel_config = self._channel(channel_name) or {}
        level = channel_config.get("responsiveness", "medium")
        levels = self.data["responsiveness"]
        return levels.get(level, levels["medium"])

    # --- Global options ---

    def set_global(self, key: str, value) -> bool:
        """Set a top-level option. Unknown keys, structured sections and bad values are refused."""
        try:
            self.data[key] = parse_option(key, value)
        except KeyError:
            return False
        except ValueError as e:
            log.warn(f"Rejected {key}={value!r}: {e}")
            return False
        self.save()
        return True

    def set_personality(self, **settings) -> Dict[str, float]:
        for key, value in settings.items():
            if key not in DEFAULTS["personality"]:
                raise ValueError(f"Unknown personality setting: {key}")
            if not 0 <= value <= 1:
                raise ValueError(f"{key} must be between 0 and 1")
        self.data["personality"].update(settings)
        self.save()
        return self.data["personality"]

    # --- Trigger keywords ---

    def add_trigger_keyword(self, keyword: str) -> bool:
        normalized = keyword.strip().lower()
        if not normalized or normalized in self.trigger_keywords:
            return False
        self.trigger_keywords.append(normalized)
        self.save()
        return True

    def remove_trigger_keyword(self, keyword: str) -> bool:
        normalized = keyword.strip().lower()
        if normalized not in self.trigger_keywords:
            return False
        self.trigger_keywords.remove(normalized)
        self.save()
        return True

    def reset(self) -> dict:
        self.data = copy.deepcopy(DEFAULTS)
        self.save()
        return self.data

    def summary(self) -> dict:
        channels = self.data["channels"]
        enabled = [name for name, cfg in channels.items() if cfg.get("enabled")]
        return {
            "globalEnabled": self.enabled,
            "enabledChannelCount": len(enabled),
            "disabledChannelCount": len(channels) - len(enabled),
            "respondToQuestions": self.respond_to_questions,
            "useKBContext": self.use_kb_context,
            "suggestAgents": self.suggest_agents,
            "randomResponseChance": self.random_response_chance,
            "triggerKeywordCount": len(self.trigger_keywords),
            "personality": dict(self.personality),
        }
