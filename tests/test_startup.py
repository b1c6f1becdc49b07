"""
Tests for startup validation checks
"""

import startup


class TestStartupChecks:
    """Tests for the individual checks"""

    def test_env_file_found(self, tmp_path):
        (tmp_path / ".env").write_text("DISCORD_TOKEN=x\n", encoding="utf-8")
        assert startup.check_env_file(interactive=False, base_dir=tmp_path) == (True, [])

    def test_env_vars_without_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "from-environment")
        passed, _ = startup.check_env_file(interactive=False, base_dir=tmp_path)
        assert passed is True

    def test_missing_env_non_interactive(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DISCORD_TOKEN", raising=False)
        assert startup.check_env_file(interactive=False, base_dir=tmp_path) == (False, ["missing .env"])
        assert not (tmp_path / ".env").exists()

    def test_template_written_on_request(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DISCORD_TOKEN", raising=False)
        monkeypatch.setattr("builtins.input", lambda prompt="": "y")

        passed, issues = startup.check_env_file(interactive=True, base_dir=tmp_path)

        assert passed is False
        assert issues == ["new .env created - needs editing"]
        assert "DISCORD_TOKEN=" in (tmp_path / ".env").read_text(encoding="utf-8")

    def test_short_token_is_invalid(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "abc")
        assert startup.check_discord_token() == (False, ["DISCORD_TOKEN looks invalid"])

    def test_token_shape(self, monkeypatch):
        monkeypatch.setenv("DISCORD_TOKEN", "M" * 24 + "." + "G" * 6 + "." + "x" * 27)
        assert startup.check_discord_token() == (True, [])

    def test_no_direct_providers(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "")
        monkeypatch.setenv("OPENROUTER_API_KEY", "")
        assert startup.check_backends() == (False, ["no direct providers"])

    def test_one_provider_is_enough(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        monkeypatch.setenv("OPENROUTER_API_KEY", "")
        assert startup.check_backends() == (True, [])

    def test_critical_issues(self):
        issues = ["missing DISCORD_TOKEN", "no direct providers", "DISCORD_TOKEN looks invalid"]
        assert startup.critical(issues) == ["missing DISCORD_TOKEN", "DISCORD_TOKEN looks invalid"]
