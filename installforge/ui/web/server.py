"""
Web API server — Flask app factory.

Creates the Flask application that exposes projects, recipes, assets,
preview rendering and bundle export as a JSON API under ``/api``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask

logger = logging.getLogger(__name__)


def create_app(data_root: Path | str | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        data_root: Directory holding one subdirectory per project
            (default: ``data/projects`` under the working directory).

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    app.config["DATA_ROOT"] = str(data_root or Path("data/projects"))
    app.config["MAX_CONTENT_LENGTH"] = 32 * 1024 * 1024  # 32 MB upload limit

    from installforge.ui.web.routes_projects import projects_bp
    from installforge.ui.web.routes_recipes import recipes_bp

    app.register_blueprint(projects_bp, url_prefix="/api")
    app.register_blueprint(recipes_bp, url_prefix="/api")

    logger.info("Web API app created (data_root=%s)", app.config["DATA_ROOT"])
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 8080,
    debug: bool = False,
) -> None:
    """Run the Flask development server."""
    logger.info("InstallForge listening on http://%s:%d", host, port)
    app.run(host=host, port=port, debug=debug, use_reloader=False)
