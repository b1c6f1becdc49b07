"""
Tests for the runtime chatbot configuration
"""
import json
import pytest

from chatbot_config import ChatbotConfig, DEFAULTS


@pytest.fixture
def config(tmp_path):
    return ChatbotConfig(str(tmp_path / "chatbot_config.json"))


class TestDefaults:
    """Tests for defaults and loading"""

    def test_defaults_without_file(self, config):
        assert config.enabled is True
        assert config.respond_to_questions is True
        assert config.random_response_chance == 0.05
        assert "paco" in config.trigger_keywords
        assert config.response_delay == 0.5

    def test_saved_values_override_defaults(self, tmp_path):
        path = tmp_path / "chatbot_config.json"
        path.write_text(json.dumps({"enabled": False, "responseDelay": 0}), encoding="utf-8")

        config = ChatbotConfig(str(path))
        assert config.enabled is False
        assert config.response_delay == 0
        assert config.suggest_agents is True

    def test_defaults_not_mutated(self, config):
        config.add_trigger_keyword("newword")
        assert "newword" not in DEFAULTS["triggerKeywords"]


class TestChannels:
    """Tests for per-channel enablement"""

    def test_configured_channels(self, config):
        assert config.is_channel_enabled("general") is True
        assert config.is_channel_enabled("announcements") is False

    def test_lookup_is_case_insensitive(self, config):
        assert config.is_channel_enabled("Announcements") is False

    def test_unknown_channels(self, config):
        """Test unconfigured channels are on unless they look like log channels"""
        assert config.is_channel_enabled("random-hangout") is True
        assert config.is_channel_enabled("audit-logs") is False
        assert config.is_channel_enabled("mod-chat") is False

    def test_global_switch_wins(self, config):
        config.set_global("enabled", False)
        assert config.is_channel_enabled("general") is False

    def test_enable_channel_persists(self, config, tmp_path):
        config.enable_channel("announcements")
        config.disable_channel("brand-new")

        reloaded = ChatbotConfig(str(tmp_path / "chatbot_config.json"))
        assert reloaded.is_channel_enabled("announcements") is True
        assert reloaded.is_channel_enabled("brand-new") is False

    def test_channel_behavior(self, config):
        assert config.get_channel_behavior("dev-chat") == DEFAULTS["behaviors"]["technical"]
        assert config.get_channel_behavior("unknown") == DEFAULTS["behaviors"]["friendly"]

    def test_channel_responsiveness(self, config):
        assert config.get_channel_responsiveness("support")["responseChance"] == 1.0
        assert config.get_channel_responsiveness("unknown")["responseChance"] == 0.7


class TestUpdates:
    """Tests for keyword, personality and global setters"""

    def test_keywords(self, config):
        assert config.add_trigger_keyword("  Deploy ") is True
        assert "deploy" in config.trigger_keywords
        assert config.add_trigger_keyword("deploy") is False

        assert config.remove_trigger_keyword("DEPLOY") is True
        assert config.remove_trigger_keyword("deploy") is False

    def test_personality_validation(self, config):
        personality = config.set_personality(humor=0.9)
        assert personality["humor"] == 0.9

        with pytest.raises(ValueError):
            config.set_personality(humor=1.5)
        with pytest.raises(ValueError):
            config.set_personality(sarcasm=0.5)

    def test_set_global_refuses_structured_and_unknown(self, config):
        assert config.set_global("channels", {}) is False
        assert config.set_global("personality", {}) is False
        assert config.set_global("notAnOption", 1) is False
        assert config.set_global("randomResponseChance", 0.5) is True
        assert config.random_response_chance == 0.5

    @pytest.mark.parametrize("key,value", [
        ("randomResponseChance", "often"),
        ("randomResponseChance", 1.5),
        ("randomResponseChance", True),
        ("responseDelay", -5),
        ("responseDelay", "soon"),
        ("enabled", "maybe"),
        ("triggerKeywords", "x"),
        ("triggerKeywords", ["ok", 3]),
        ("randomResponseChannels", None),
    ])
    def test_set_global_rejects_bad_values(self, config, key, value):
        before = config.data[key]

        assert config.set_global(key, value) is False
        assert config.data[key] == before

    def test_set_global_parses_strings(self, config):
        assert config.set_global("enabled", "off") is True
        assert config.enabled is False
        assert config.set_global("randomResponseChance", "0.25") is True
        assert config.random_response_chance == 0.25

    def test_set_global_normalizes_lists(self, config):
        assert config.set_global("triggerKeywords", [" Deploy ", "deploy", "", "Ship It"]) is True
        assert config.trigger_keywords == ["deploy", "ship it"]

    def test_bad_saved_values_fall_back_to_defaults(self, tmp_path):
        path = tmp_path / "chatbot_config.json"
        path.write_text(json.dumps({
            "randomResponseChance": "often",
            "triggerKeywords": ["Deploy"],
            "channels": [],
            "responseDelay": 100,
        }), encoding="utf-8")

        config = ChatbotConfig(str(path))
        assert config.random_response_chance == DEFAULTS["randomResponseChance"]
        assert config.trigger_keywords == ["deploy"]
        assert config.data["channels"] == DEFAULTS["channels"]
        assert config.response_delay == 0.1

    def test_reset(self, config):
        config.set_global("enabled", False)
        config.reset()

        assert config.enabled is True

    def test_summary(self, config):
        summary = config.summary()
        assert summary["globalEnabled"] is True
        assert summary["triggerKeywordCount"] == len(DEFAULTS["triggerKeywords"])
        assert summary["enabledChannelCount"] + summary["disabledChannelCount"] == len(DEFAULTS["channels"])
