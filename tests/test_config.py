"""Tests for configuration loading."""

from pathlib import Path

import pytest

from patent_vault.config import load_config, validate_config


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("SMTP_USER", raising=False)
    monkeypatch.delenv("SMTP_PASSWORD", raising=False)


def test_load_config():
    config = load_config(str(FIXTURES_DIR / "sample_config.yaml"))

    assert config.ai.enabled is True
    assert config.ai.max_tokens == 2048
    assert config.ai.timeout_seconds == 30
    assert config.ai.max_retries == 1
    assert config.ai.history_limit == 5
    assert config.alerts.window_days == 90
    assert config.email.enabled is False
    assert config.email.host == "smtp.test.com"
    assert config.email.port == 2525
    assert config.email.recipients == ["ip-team@example.com"]
    assert config.logging.level == "DEBUG"
    assert config.logging.file == ""


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("nonexistent.yaml")


def test_load_config_defaults_for_empty_file(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")
    config = load_config(str(config_file))
    assert config.alerts.window_days == 90
    assert config.ai.max_retries == 0
    assert config.store.seed_file == ""


def test_api_key_read_from_environment(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    config = load_config(str(FIXTURES_DIR / "sample_config.yaml"))
    assert config.ai.api_key == "sk-test"


def test_validate_config_missing_api_key_is_reported():
    config = load_config(str(FIXTURES_DIR / "sample_config.yaml"))
    errors = validate_config(config)
    assert any("ANTHROPIC_API_KEY" in e for e in errors)
    assert any("fallback" in e for e in errors)


def test_validate_config_ai_disabled_no_errors():
    config = load_config(str(FIXTURES_DIR / "sample_config.yaml"))
    config.ai.enabled = False
    assert validate_config(config) == []


def test_validate_config_email_enabled_missing_creds():
    config = load_config(str(FIXTURES_DIR / "sample_config.yaml"))
    config.ai.api_key = "test-key"
    config.email.enabled = True
    errors = validate_config(config)
    assert any("SMTP_USER" in e for e in errors)
    assert any("SMTP_PASSWORD" in e for e in errors)


def test_validate_config_missing_seed_file():
    config = load_config(str(FIXTURES_DIR / "sample_config.yaml"))
    config.ai.api_key = "test-key"
    config.store.seed_file = "does/not/exist.xlsx"
    errors = validate_config(config)
    assert any("Seed spreadsheet" in e for e in errors)
