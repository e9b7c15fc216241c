"""Flask application factory for the linked bugs panel."""

import logging
import os

from flask import Flask

from jira_bug_links.jira_client import JiraClient


def create_app(client: JiraClient | None = None) -> Flask:
    """Create and configure the Flask application.

    ``client`` overrides the JIRA client otherwise built from the config file.
    """
    app = Flask(__name__)

    app.config["SECRET_KEY"] = "jira-bug-links-local-dev"

    from jira_bug_links.web.routes import bp, init_panels
    init_panels(app, client)
    app.register_blueprint(bp)

    return app


def main() -> None:
    """Run the development server."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    port = int(os.environ.get("JIRA_BUG_LINKS_PORT", "5000"))
    create_app().run(port=port)
