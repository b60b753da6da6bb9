"""Tests for Settings."""

from hogarscan.config import Settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.default_limit == 20
        assert settings.default_city == "Bogotá"
        assert "fincaraiz" in settings.enabled_sources
        assert settings.max_pages_override is None

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("HOGARSCAN_DEFAULT_LIMIT", "5")
        monkeypatch.setenv("HOGARSCAN_ENABLED_SOURCES", '["pads", "trovit"]')
        monkeypatch.setenv("HOGARSCAN_TIMEOUT_OVERRIDE", "12.5")

        settings = Settings(_env_file=None)

        assert settings.default_limit == 5
        assert settings.enabled_sources == ["pads", "trovit"]
        assert settings.timeout_override == 12.5

    def test_user_agent_pool(self, monkeypatch):
        assert len(Settings(_env_file=None).user_agents) > 1

        monkeypatch.setenv("HOGARSCAN_USER_AGENTS", '["agente-a"]')

        assert Settings(_env_file=None).user_agents == ["agente-a"]
