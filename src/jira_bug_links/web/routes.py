"""HTTP route handlers for the linked bugs panel."""

import asyncio
import threading
from collections import OrderedDict

from flask import Blueprint, Flask, current_app, jsonify, request

from jira_bug_links.config import config_exists, load_config
from jira_bug_links.exceptions import (
    BugLinksError,
    ConfigNotFoundError,
    InvalidConfigError,
    JiraAuthError,
    JiraConnectionError,
    JiraRateLimitError,
)
from jira_bug_links.jira_client import JiraClient
from jira_bug_links.models import HostContext
from jira_bug_links.panel import BugLinksPanel
from jira_bug_links.table import SORTABLE_FIELDS, panel_to_dict

bp = Blueprint("main", __name__)

DEFAULT_MAX_PANELS = 128

_STATUS_CODES = {
    ConfigNotFoundError: 503,
    InvalidConfigError: 503,
    JiraAuthError: 401,
    JiraRateLimitError: 429,
    JiraConnectionError: 503,
}


def init_panels(app: Flask, client: JiraClient | None) -> None:
    """Attach the per-app panel registry. Panels live only as long as the process."""
    app.config.setdefault("BUG_LINKS_MAX_PANELS", DEFAULT_MAX_PANELS)
    app.extensions["bug_links"] = {
        "client": client,
        "panels": OrderedDict(),
        # Panels are single-threaded; one lock serializes request threads.
        "lock": threading.Lock(),
    }


def _state() -> dict:
    return current_app.extensions["bug_links"]


def _get_client() -> JiraClient:
    state = _state()
    if state["client"] is None:
        if not config_exists():
            raise ConfigNotFoundError(
                "Configuration not found. Create ~/.jira-bug-links/config.toml to set up."
            )
        try:
            config = load_config()
        except (FileNotFoundError, ValueError) as e:
            raise InvalidConfigError(str(e)) from e
        state["client"] = JiraClient(config)
    return state["client"]


def _find_panel(issue_id: str) -> BugLinksPanel | None:
    panels = _state()["panels"]
    panel = panels.get(issue_id)
    if panel is not None:
        panels.move_to_end(issue_id)
    return panel


def _get_panel(issue_id: str) -> BugLinksPanel:
    """Return the issue's panel, creating it and evicting the least recently used."""
    panel = _find_panel(issue_id)
    if panel is not None:
        return panel

    panels = _state()["panels"]
    panel = panels[issue_id] = BugLinksPanel(_get_client())
    while len(panels) > current_app.config["BUG_LINKS_MAX_PANELS"]:
        panels.popitem(last=False)
    return panel


def _error(e: BugLinksError):
    return jsonify({"error": str(e)}), _STATUS_CODES.get(type(e), 500)


def _table(panel: BugLinksPanel, default_error_status: int | None = None):
    """Render the panel, using the status code of its last failure if it has one."""
    data = panel_to_dict(panel)
    if panel.last_error is None:
        return jsonify(data)
    status = _STATUS_CODES.get(type(panel.last_error), default_error_status)
    if status is None:
        return jsonify(data)
    return jsonify(data), status


@bp.route("/health")
def health():
    """Health check endpoint."""
    if _state()["client"] is not None or config_exists():
        return jsonify({"status": "ok", "config_loaded": True})
    return jsonify({
        "status": "error",
        "config_loaded": False,
        "message": "Configuration not found",
    }), 503


@bp.route("/issues/<issue_id>/bugs")
def bugs(issue_id):
    """Frame the panel on an issue and return its linked bugs."""
    with _state()["lock"]:
        try:
            panel = _get_panel(issue_id)
        except BugLinksError as e:
            return _error(e)
        asyncio.run(panel.set_context(HostContext(issue_id=issue_id)))
        return _table(panel)


@bp.route("/issues/<issue_id>/bugs/refresh", methods=["POST"])
def refresh(issue_id):
    """Re-aggregate the linked bugs of an issue."""
    with _state()["lock"]:
        try:
            panel = _get_panel(issue_id)
        except BugLinksError as e:
            return _error(e)
        if panel.context.ready:
            asyncio.run(panel.refresh())
        else:
            asyncio.run(panel.set_context(HostContext(issue_id=issue_id)))
        return _table(panel)


@bp.route("/issues/<issue_id>/bugs/sort", methods=["POST"])
def sort(issue_id):
    """Sort the linked bugs by a column, toggling direction on repeat."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a JSON object."}), 400
        field = payload.get("field")
    else:
        field = request.form.get("field")
    if not isinstance(field, str) or field.strip() not in SORTABLE_FIELDS:
        return jsonify({"error": f"Cannot sort by {field!r}."}), 400
    field = field.strip()

    with _state()["lock"]:
        try:
            panel = _get_panel(issue_id)
        except BugLinksError as e:
            return _error(e)
        asyncio.run(panel.set_context(HostContext(issue_id=issue_id)))
        panel.sort(field)
        return _table(panel)


@bp.route("/issues/<issue_id>/bugs/links/<link_id>", methods=["DELETE"])
def delete_link(issue_id, link_id):
    """Sever a link. The row disappears only after JIRA confirms."""
    with _state()["lock"]:
        panel = _find_panel(issue_id)
        if panel is None or not panel.context.ready:
            return jsonify({"error": f"Linked bugs of issue {issue_id} are not loaded."}), 404
        if asyncio.run(panel.delete_link(link_id)):
            return "", 204
        return _table(panel, default_error_status=502)


@bp.route("/panel/context", methods=["POST"])
def panel_context():
    """Accept a host product context and return the framed issue's table."""
    context = HostContext.from_product_context(request.get_json(silent=True))
    if not context.ready:
        return jsonify({"status": "loading"})

    with _state()["lock"]:
        try:
            panel = _get_panel(context.issue_id)
        except BugLinksError as e:
            return _error(e)
        asyncio.run(panel.set_context(context))
        return _table(panel)
