from __future__ import annotations

import pytest

from armada_mcp.settings import DEFAULT_PORT, Settings

ENV_VARS = (
    "ARMADA_HOST", "MCP_PORT", "PORT", "ARMADA_SHUTDOWN_GRACE_SECONDS", "ARMADA_PHASE_DELAY_MS",
    "ARMADA_SCORING_PROFILE", "ARMADA_LOG_LEVEL", "MCP_WS_URL", "ARMADA_REQUEST_TIMEOUT_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings.port == DEFAULT_PORT
    assert settings.shutdown_grace_seconds == 5.0
    assert settings.phase_delay_seconds == 0.0
    assert settings.scoring_profile == "server"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("ARMADA_PHASE_DELAY_MS", "250")
    monkeypatch.setenv("ARMADA_SCORING_PROFILE", "route")
    monkeypatch.setenv("ARMADA_LOG_LEVEL", "debug")
    settings = Settings.from_env()
    assert settings.port == 9100
    assert settings.phase_delay_seconds == 0.25
    assert settings.scoring_profile == "route"
    assert settings.log_level == "DEBUG"


def test_mcp_port_wins_over_port(monkeypatch):
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("MCP_PORT", "9200")
    assert Settings.from_env().port == 9200


@pytest.mark.parametrize("name, value", [
    ("MCP_PORT", "not-a-port"),
    ("MCP_PORT", "70000"),
    ("ARMADA_SHUTDOWN_GRACE_SECONDS", "-1"),
    ("ARMADA_SCORING_PROFILE", "fastest"),
])
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        Settings.from_env()
