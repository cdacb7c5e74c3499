"""Flask application factory."""

import logging
import os
from pathlib import Path

from flask import Flask

from ..assistant import PatentAssistant
from ..config import load_config, validate_config
from ..importer import import_patents, read_spreadsheet
from ..logging_setup import setup_logging
from ..notifier import EmailNotifier
from ..store import PatentStore
from .tasks import TaskManager

logger = logging.getLogger(__name__)


def create_app(config_path: str | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_path: Path to the PatentVault config.yaml.
                     Defaults to CONFIG_PATH env var or 'config.yaml'.
    """
    app = Flask(
        __name__,
        template_folder=str(Path(__file__).parent / "templates"),
    )

    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config.yaml")

    pv_config = load_config(config_path)
    setup_logging(pv_config.logging)
    for problem in validate_config(pv_config):
        logger.warning(f"Config: {problem}")

    app.config["PV_CONFIG"] = pv_config
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "patent-vault-dev-key")
    app.config["MAX_CONTENT_LENGTH"] = 20 * 1024 * 1024
    app.json.ensure_ascii = False

    store = PatentStore()
    if pv_config.store.seed_file and Path(pv_config.store.seed_file).exists():
        with open(pv_config.store.seed_file, "rb") as f:
            result = import_patents(store, read_spreadsheet(f))
        logger.info(f"Seeded store with {result.added_count} patents from {pv_config.store.seed_file}")
    app.config["STORE"] = store

    assistant = PatentAssistant(pv_config.ai)
    if not assistant.available:
        logger.warning("AI assistant running in fallback mode (no API key or disabled)")
    app.config["ASSISTANT"] = assistant

    app.config["NOTIFIER"] = EmailNotifier(pv_config.email)
    app.config["TASK_MANAGER"] = TaskManager()

    from .routes import bp
    app.register_blueprint(bp)

    # Password authentication (enabled when APP_PASSWORD is set)
    from .auth import init_auth
    init_auth(app)

    return app
