"""JSON endpoints mirroring the form actions, plus server-side signature rendering."""
from flask import Blueprint, current_app, jsonify, request
from werkzeug.datastructures import MultiDict

from models import COMPLAINT_STATUSES
from utils.complaint_store import ComplaintStoreError, get_store
from utils.signature_raster import replay_events
from .complaints import (
    STATUS_FAILED_MESSAGE,
    STATUS_UPDATED_MESSAGE,
    SUBMIT_FAILED_MESSAGE,
    SUBMITTED_MESSAGE,
    VALIDATION_FAILED_MESSAGE,
    ComplaintForm,
    change_status,
    store_submission,
)

api_bp = Blueprint("api", __name__, url_prefix="/api")

MAX_REPLAY_EVENTS = 20_000


def _payload() -> dict:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


@api_bp.route("/complaints", methods=["GET"])
def list_complaints():
    return jsonify([c.to_dict() for c in get_store().list()])


@api_bp.route("/complaints", methods=["POST"])
def create_complaint():
    raw = {key: "" if value is None else str(value) for key, value in _payload().items()}
    form = ComplaintForm(formdata=MultiDict(raw), meta={"csrf": False})
    submission = form.validated_submission()
    if submission is None:
        return (
            jsonify({"success": False, "message": VALIDATION_FAILED_MESSAGE, "errors": form.field_errors()}),
            400,
        )

    try:
        record = store_submission(submission)
    except ComplaintStoreError:
        return jsonify({"success": False, "message": SUBMIT_FAILED_MESSAGE}), 500

    return jsonify({"success": True, "message": SUBMITTED_MESSAGE, "complaint": record.to_dict()}), 201


@api_bp.route("/complaints/<string:complaint_id>/status", methods=["PATCH", "POST"])
def update_complaint_status(complaint_id):
    status = _payload().get("status")
    if status not in COMPLAINT_STATUSES:
        return jsonify({"success": False, "message": f"Status must be one of: {', '.join(COMPLAINT_STATUSES)}"}), 400

    try:
        record = change_status(complaint_id, status)
    except ComplaintStoreError:
        return jsonify({"success": False, "message": STATUS_FAILED_MESSAGE}), 500
    if record is None:
        return jsonify({"success": False, "message": STATUS_FAILED_MESSAGE}), 404
    return jsonify({"success": True, "message": STATUS_UPDATED_MESSAGE, "complaint": record.to_dict()})


@api_bp.route("/signatures/render", methods=["POST"])
def render_signature():
    data = request.get_json(silent=True) or {}
    events = data.get("events")
    if not isinstance(events, list) or not all(isinstance(e, dict) for e in events):
        return jsonify({"success": False, "message": "events must be a list of pointer events"}), 400
    if len(events) > MAX_REPLAY_EVENTS:
        return jsonify({"success": False, "message": "Too many pointer events"}), 400

    try:
        width = float(data.get("width", current_app.config.get("SIGNATURE_CSS_WIDTH", 400)))
        height = float(data.get("height", current_app.config.get("SIGNATURE_CSS_HEIGHT", 200)))
        ratio = float(data.get("pixelRatio", current_app.config.get("SIGNATURE_PIXEL_RATIO", 1)))
        if not (0 < width <= 4000 and 0 < height <= 4000 and 0 < ratio <= 4):
            raise ValueError("Surface size out of range")
        surface = replay_events(
            events,
            width,
            height,
            ratio,
            left=float(data.get("left", 0)),
            top=float(data.get("top", 0)),
        )
    except (TypeError, ValueError) as exc:
        current_app.logger.info("Signature replay rejected", extra={"error": str(exc)})
        return jsonify({"success": False, "message": str(exc)}), 400

    return jsonify({"success": True, "signature": surface.value, "hasContent": surface.has_content})
