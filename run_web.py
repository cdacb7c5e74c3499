"""Entry point for the PatentVault web UI."""

import logging
import os

from patent_vault.web.app import create_app

app = create_app(config_path=os.environ.get("CONFIG_PATH", "config.yaml"))

if __name__ == "__main__":
    web = app.config["PV_CONFIG"].web
    port = int(os.environ.get("PORT", web.port))
    host = os.environ.get("HOST", web.host)
    debug = os.environ.get("FLASK_DEBUG", "0") == "1"

    logging.getLogger("patent_vault").info(f"Starting PatentVault Web UI at http://{host}:{port}")
    app.run(host=host, port=port, debug=debug)
