"""Flask routes for the PatentVault web UI and JSON API."""

import logging
from dataclasses import replace
from datetime import date

from flask import Blueprint, current_app, jsonify, render_template, request, send_file

from ..alerts import count_annuity_alerts, upcoming_annuities
from ..exporter import export_filename, write_workbook
from ..filters import ALL_STATUSES
from ..importer import ImportResult, SpreadsheetImportError, import_patents, read_spreadsheet
from ..models import Patent, PatentStatus
from ..notifier import render_annuity_reminder
from ..service import current_view, get_dashboard_stats
from ..store import PatentNotFoundError
from .tasks import TaskAlreadyRunningError

logger = logging.getLogger(__name__)

bp = Blueprint("main", __name__)

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _get_store():
    return current_app.config["STORE"]


def _get_config():
    return current_app.config["PV_CONFIG"]


def _get_assistant():
    return current_app.config["ASSISTANT"]


def _get_notifier():
    return current_app.config["NOTIFIER"]


def _get_task_manager():
    return current_app.config["TASK_MANAGER"]


def _window_days() -> int:
    return _get_config().alerts.window_days


def _view_from_args(args) -> list[Patent]:
    """Filtered view for q/status request parameters. Raises ValueError on a bad status."""
    return current_view(_get_store(), args.get("q", ""), args.get("status"))


def _bad_status():
    valid = [ALL_STATUSES] + [s.name for s in PatentStatus]
    return jsonify({"error": f"Invalid status. Must be one of: {valid}"}), 400


def _import_response(result: ImportResult):
    return {
        "added": result.added_count,
        "duplicates": result.duplicate_count,
        "message": result.message,
        "patents": [p.to_dict() for p in result.accepted],
    }


# --- Page Routes ---


@bp.route("/")
def dashboard():
    """Dashboard with stats, alert badge and the filtered patent table."""
    search_term = request.args.get("q", "")
    status_filter = request.args.get("status", ALL_STATUSES)
    today = date.today()

    try:
        patents = _view_from_args(request.args)
    except ValueError:
        status_filter = ALL_STATUSES
        patents = _get_store().list()

    stats = get_dashboard_stats(patents, today, _window_days())
    alert_count = count_annuity_alerts(_get_store().list(), today, _window_days())

    return render_template(
        "dashboard.html",
        patents=patents,
        stats=stats,
        alert_count=alert_count,
        search_term=search_term,
        status_filter=status_filter,
        statuses=list(PatentStatus),
        ai_available=_get_assistant().available,
        window_days=_window_days(),
        today=today,
    )


# --- Patent CRUD ---


@bp.route("/api/patents")
def api_list_patents():
    try:
        patents = _view_from_args(request.args)
    except ValueError:
        return _bad_status()
    return jsonify({"patents": [p.to_dict() for p in patents], "total": len(patents)})


@bp.route("/api/patents", methods=["POST"])
def api_create_patent():
    """Manual entry. Goes through the same duplicate check as an import."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON object"}), 400

    try:
        patent = Patent.from_dict(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    result = import_patents(_get_store(), patent)
    if not result.accepted:
        return jsonify({"error": result.message, **_import_response(result)}), 409
    return jsonify(result.accepted[0].to_dict()), 201


@bp.route("/api/patents/<patent_id>")
def api_get_patent(patent_id):
    patent = _get_store().get(patent_id)
    if not patent:
        return jsonify({"error": f"Patent {patent_id} not found"}), 404
    return jsonify(patent.to_dict())


@bp.route("/api/patents/<patent_id>", methods=["PUT"])
def api_update_patent(patent_id):
    """Replace a whole record."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Expected a JSON object"}), 400

    try:
        patent = replace(Patent.from_dict(data), id=patent_id)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    try:
        stored = _get_store().replace(patent)
    except PatentNotFoundError:
        return jsonify({"error": f"Patent {patent_id} not found"}), 404
    return jsonify(stored.to_dict())


@bp.route("/api/patents/<patent_id>", methods=["DELETE"])
def api_delete_patent(patent_id):
    """Delete a record. Requires confirm=true (query string or JSON body)."""
    data = request.get_json(silent=True) or {}
    confirmed = request.args.get("confirm", "").lower() == "true" or data.get("confirm") is True
    store = _get_store()

    patent = store.get(patent_id)
    if not patent:
        return jsonify({"error": f"Patent {patent_id} not found"}), 404
    if not confirmed:
        return jsonify({
            "error": "Deletion requires confirmation (confirm=true)",
            "name": patent.name,
        }), 400

    try:
        store.remove(patent_id)
    except PatentNotFoundError:
        return jsonify({"error": f"Patent {patent_id} not found"}), 404
    return jsonify({"success": True, "id": patent_id})


# --- Import / Export ---


@bp.route("/api/import", methods=["POST"])
def api_import():
    """Import one record (JSON object) or a batch (JSON list)."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list) or not data or not all(isinstance(d, dict) for d in data):
        return jsonify({"error": "Expected a JSON object or a non-empty list of objects"}), 400

    try:
        incoming = [Patent.from_dict(d, require_name=False) for d in data]
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    result = import_patents(_get_store(), incoming)
    return jsonify(_import_response(result))


@bp.route("/api/import/spreadsheet", methods=["POST"])
def api_import_spreadsheet():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "Missing 'file' upload"}), 400

    warnings: list[str] = []
    try:
        incoming = read_spreadsheet(upload.stream, warnings)
    except SpreadsheetImportError as e:
        return jsonify({"error": str(e)}), 400

    if not incoming:
        return jsonify({"error": "No patent rows found in spreadsheet"}), 400

    result = import_patents(_get_store(), incoming)
    return jsonify({**_import_response(result), "warnings": warnings})


@bp.route("/api/export")
def api_export():
    """Download the current filtered view as .xlsx."""
    try:
        patents = _view_from_args(request.args)
    except ValueError:
        return _bad_status()

    output = write_workbook(patents)
    return send_file(
        output,
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=export_filename(),
    )


# --- Alerts and stats ---


@bp.route("/api/alerts")
def api_alerts():
    upcoming = upcoming_annuities(_get_store().list(), date.today(), _window_days())
    return jsonify({
        "count": len(upcoming),
        "window_days": _window_days(),
        "patents": [p.to_dict() for p in upcoming],
    })


@bp.route("/api/stats")
def api_stats():
    try:
        patents = _view_from_args(request.args)
    except ValueError:
        return _bad_status()
    return jsonify(get_dashboard_stats(patents, date.today(), _window_days()).to_dict())


# --- AI assistant ---


@bp.route("/api/chat", methods=["POST"])
def api_chat():
    """Start a chat request. One request in flight per conversation."""
    data = request.get_json(silent=True) or {}
    message = str(data.get("message") or "").strip()
    if not message:
        return jsonify({"error": "Missing 'message' field"}), 400

    conversation_id = str(data.get("conversation_id") or "default")
    context = None
    if data.get("use_context", True):
        try:
            context = current_view(_get_store(), data.get("q", ""), data.get("status"))
        except ValueError:
            return _bad_status()

    try:
        task_id = _get_task_manager().start_task(
            f"chat:{conversation_id}",
            _run_chat_task,
            _get_assistant(),
            message,
            context,
            conversation_id,
            exclusive=True,
        )
    except TaskAlreadyRunningError:
        return jsonify({"error": "A request for this conversation is already running"}), 409

    return jsonify({"task_id": task_id})


@bp.route("/api/chat/<conversation_id>", methods=["DELETE"])
def api_reset_chat(conversation_id):
    _get_assistant().reset_conversation(conversation_id)
    return jsonify({"success": True})


@bp.route("/api/parse/text", methods=["POST"])
def api_parse_text():
    """Start extracting a patent record from pasted text."""
    data = request.get_json(silent=True) or {}
    text = str(data.get("text") or "")
    if not text.strip():
        return jsonify({"error": "Missing 'text' field"}), 400

    task_id = _get_task_manager().start_task("parse", _run_parse_text_task, _get_assistant(), text)
    return jsonify({"task_id": task_id})


@bp.route("/api/parse/file", methods=["POST"])
def api_parse_file():
    """Start extracting a patent record from an uploaded document."""
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "Missing 'file' upload"}), 400

    payload = upload.read()
    if not payload:
        return jsonify({"error": "Uploaded file is empty"}), 400

    task_id = _get_task_manager().start_task(
        "parse",
        _run_parse_file_task,
        _get_assistant(),
        payload,
        upload.mimetype or "application/pdf",
        upload.filename,
    )
    return jsonify({"task_id": task_id})


@bp.route("/api/patents/<patent_id>/risk", methods=["POST"])
def api_patent_risk(patent_id):
    patent = _get_store().get(patent_id)
    if not patent:
        return jsonify({"error": f"Patent {patent_id} not found"}), 404

    try:
        task_id = _get_task_manager().start_task(
            f"risk:{patent.id}", _run_risk_task, _get_assistant(), patent, exclusive=True,
        )
    except TaskAlreadyRunningError:
        return jsonify({"error": "An analysis for this patent is already running"}), 409
    return jsonify({"task_id": task_id})


@bp.route("/api/tasks/<task_id>")
def api_task_status(task_id):
    """Get task status for polling."""
    task = _get_task_manager().get_task(task_id)
    if not task:
        return jsonify({"error": "Task not found"}), 404
    return jsonify(task.to_dict())


# --- Reminder e-mail ---


@bp.route("/api/patents/<patent_id>/email-preview")
def api_email_preview(patent_id):
    patent = _get_store().get(patent_id)
    if not patent:
        return jsonify({"error": f"Patent {patent_id} not found"}), 404

    subject, html = render_annuity_reminder(patent, date.today())
    return jsonify({
        "subject": subject,
        "html": html,
        "recipients": _get_notifier().recipients_for(patent),
    })


@bp.route("/api/patents/<patent_id>/email", methods=["POST"])
def api_send_email(patent_id):
    patent = _get_store().get(patent_id)
    if not patent:
        return jsonify({"error": f"Patent {patent_id} not found"}), 404

    if not _get_notifier().send_annuity_reminder(patent, date.today()):
        return jsonify({"error": "Failed to send reminder email"}), 502
    return jsonify({"success": True})


# --- Task wrapper functions ---


def _run_chat_task(assistant, message, context, conversation_id, progress_callback=None):
    if progress_callback:
        progress_callback("Waiting for assistant...")
    answer = assistant.chat(message, context_patents=context, conversation_id=conversation_id)
    return {"answer": answer}


def _run_parse_text_task(assistant, text, progress_callback=None):
    if progress_callback:
        progress_callback("Extracting patent data...")
    return {"patent": assistant.parse_patent_from_text(text)}


def _run_parse_file_task(assistant, payload, mime_type, filename, progress_callback=None):
    if progress_callback:
        progress_callback(f"Extracting patent data from {filename}...")
    return {"patent": assistant.parse_patent_from_file(payload, mime_type, filename)}


def _run_risk_task(assistant, patent, progress_callback=None):
    if progress_callback:
        progress_callback("Analyzing maintenance risk...")
    return {"analysis": assistant.analyze_risk(patent)}
