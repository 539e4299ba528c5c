"""
Tests for EngineConfig: defaults, environment, YAML, validation.
"""

import pytest

from trigger_core import EngineConfig
from trigger_core.exceptions import ConfigurationError


def test_defaults():
    cfg = EngineConfig()
    assert cfg.check_interval_seconds == 5.0
    assert cfg.gateway_url is None
    assert cfg.live_trading is False
    assert cfg.stuck_order_policy == "fail"
    assert cfg.smtp_port == 465
    assert not cfg.smtp_configured


def test_from_env_reads_prefixed_keys():
    cfg = EngineConfig.from_env(
        {
            "TRIGGER_CHECK_INTERVAL_SECONDS": "2.5",
            "TRIGGER_GATEWAY_URL": "http://localhost:5000/api/",
            "TRIGGER_GATEWAY_TOKEN": "tok",
            "TRIGGER_LIVE_TRADING_ENABLED": "TRUE",
            "TRIGGER_STUCK_ORDER_POLICY": "Ignore",
            "EMAIL_HOST": "smtp.test",
            "EMAIL_PORT": "587",
            "EMAIL_USERNAME": "bot@test",
            "EMAIL_PASSWORD": "secret",
            "UNRELATED": "x",
        }
    )
    assert cfg.check_interval_seconds == 2.5
    assert cfg.gateway_url == "http://localhost:5000/api"
    assert cfg.gateway_token == "tok"
    assert cfg.live_trading is True
    assert cfg.stuck_order_policy == "ignore"
    assert cfg.smtp_port == 587
    assert cfg.smtp_configured


def test_from_env_ignores_empty_values():
    cfg = EngineConfig.from_env({"TRIGGER_GATEWAY_URL": "", "TRIGGER_CHECK_INTERVAL_SECONDS": ""})
    assert cfg.gateway_url is None
    assert cfg.check_interval_seconds == 5.0


def test_from_env_defaults_to_process_environment(monkeypatch):
    monkeypatch.setenv("TRIGGER_CHECK_INTERVAL_SECONDS", "7")
    assert EngineConfig.from_env().check_interval_seconds == 7.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"check_interval_seconds": 0},
        {"check_interval_seconds": "soon"},
        {"request_timeout_seconds": -1},
        {"smtp_port": "abc"},
        {"stuck_order_policy": "retry"},
    ],
)
def test_invalid_values_raise(kwargs):
    with pytest.raises(ConfigurationError):
        EngineConfig(**kwargs)


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ConfigurationError, match="interval"):
        EngineConfig.from_mapping({"interval": 5})


def test_from_mapping_drops_none():
    cfg = EngineConfig.from_mapping({"check_interval_seconds": None, "gateway_url": None})
    assert cfg.check_interval_seconds == 5.0


def test_from_yaml_engine_section(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "engine:\n"
        "  check_interval_seconds: 1\n"
        "  gateway_url: http://gw.test/\n"
        "  stuck_order_policy: ignore\n"
        "other_service:\n"
        "  anything: true\n",
        encoding="utf-8",
    )
    cfg = EngineConfig.from_yaml(path)
    assert cfg.check_interval_seconds == 1.0
    assert cfg.gateway_url == "http://gw.test"
    assert cfg.stuck_order_policy == "ignore"


def test_from_yaml_top_level_and_empty(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("live_trading: yes\nsmtp_host: smtp.test\n", encoding="utf-8")
    cfg = EngineConfig.from_yaml(str(path))
    assert cfg.live_trading is True
    assert cfg.smtp_host == "smtp.test"

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert EngineConfig.from_yaml(empty) == EngineConfig()


@pytest.mark.parametrize(
    "content",
    [
        "engine: [unclosed\n",
        "- just\n- a list\n",
        "engine: 5\n",
    ],
)
def test_from_yaml_bad_content(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        EngineConfig.from_yaml(path)


def test_from_yaml_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        EngineConfig.from_yaml(tmp_path / "missing.yaml")
