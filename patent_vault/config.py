"""Configuration loading from YAML and environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv


@dataclass
class AiConfig:
    enabled: bool = True
    api_key: str = ""
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1024
    timeout_seconds: int = 60
    max_retries: int = 0     # SDK-level retries; the assistant itself never retries
    history_limit: int = 20   # user/assistant turns kept per conversation
    max_conversations: int = 200  # least recently used conversations are dropped beyond this


@dataclass
class SmtpConfig:
    enabled: bool = False
    host: str = "smtp.gmail.com"
    port: int = 587
    use_tls: bool = True
    user: str = ""
    password: str = ""
    recipients: list[str] = field(default_factory=list)


@dataclass
class AlertConfig:
    window_days: int = 90


@dataclass
class StoreConfig:
    seed_file: str = ""


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = "logs/patent-vault.log"
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class WebConfig:
    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class Config:
    ai: AiConfig = field(default_factory=AiConfig)
    email: SmtpConfig = field(default_factory=SmtpConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    web: WebConfig = field(default_factory=WebConfig)


def load_config(config_path: str = "config.yaml", env_path: str = ".env") -> Config:
    """Load configuration from YAML file and environment variables."""
    # Load .env file for secrets
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    config = Config()

    # AI assistant settings
    ai_raw = raw.get("ai", {})
    config.ai = AiConfig(
        enabled=ai_raw.get("enabled", True),
        api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        model=ai_raw.get("model", config.ai.model),
        max_tokens=ai_raw.get("max_tokens", config.ai.max_tokens),
        timeout_seconds=ai_raw.get("timeout_seconds", config.ai.timeout_seconds),
        max_retries=ai_raw.get("max_retries", config.ai.max_retries),
        history_limit=ai_raw.get("history_limit", config.ai.history_limit),
        max_conversations=ai_raw.get("max_conversations", config.ai.max_conversations),
    )

    # Reminder e-mail settings
    email_raw = raw.get("email", {})
    config.email = SmtpConfig(
        enabled=email_raw.get("enabled", False),
        host=email_raw.get("smtp_host", "smtp.gmail.com"),
        port=email_raw.get("smtp_port", 587),
        use_tls=email_raw.get("use_tls", True),
        user=os.environ.get("SMTP_USER", ""),
        password=os.environ.get("SMTP_PASSWORD", ""),
        recipients=email_raw.get("recipients", []),
    )

    alerts_raw = raw.get("alerts", {})
    config.alerts = AlertConfig(
        window_days=alerts_raw.get("window_days", config.alerts.window_days),
    )

    store_raw = raw.get("store", {})
    config.store = StoreConfig(seed_file=store_raw.get("seed_file", "") or "")

    # Logging
    log_raw = raw.get("logging", {})
    config.logging = LoggingConfig(
        level=log_raw.get("level", "INFO"),
        file=log_raw.get("file", "logs/patent-vault.log"),
        max_size_mb=log_raw.get("max_size_mb", 10),
        backup_count=log_raw.get("backup_count", 5),
    )

    # Web UI settings
    web_raw = raw.get("web", {})
    config.web = WebConfig(
        host=web_raw.get("host", "127.0.0.1"),
        port=web_raw.get("port", 8080),
    )

    return config


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return a list of problems (empty if valid).

    None of these are fatal: a missing AI key puts the assistant into
    fallback mode and a broken e-mail setup only disables reminders.
    """
    errors = []

    if config.ai.enabled and not config.ai.api_key:
        errors.append("ANTHROPIC_API_KEY environment variable is not set; AI assistant runs in fallback mode")

    if config.alerts.window_days <= 0:
        errors.append("alerts.window_days must be a positive number of days")

    if config.email.enabled:
        if not config.email.user:
            errors.append("SMTP_USER environment variable is not set")
        if not config.email.password:
            errors.append("SMTP_PASSWORD environment variable is not set")

    if config.store.seed_file and not Path(config.store.seed_file).exists():
        errors.append(f"Seed spreadsheet not found: {config.store.seed_file}")

    return errors
