"""Complaint intake, detail, status update and export blueprint."""
import io
from typing import Dict, List, Optional

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    send_file,
    url_for,
)
from flask_wtf import FlaskForm
from wtforms import HiddenField, SelectField, StringField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, Length, ValidationError

from models import COMPLAINT_STATUSES, WIRE_NAMES, ComplaintRecord, ComplaintSubmission
from utils.complaint_store import ComplaintStoreError, get_store
from utils.image_utils import (
    SIGNATURE_FILE_EXTENSIONS,
    SignatureDecodeError,
    compute_hash,
    decode_data_url,
    image_size,
    split_data_url,
)
from utils.pdf_generator import generate_complaints_report
from utils.report_export import export_csv, export_txt, format_timestamp

complaints_bp = Blueprint("complaints", __name__)

VALIDATION_FAILED_MESSAGE = "Validation failed. Please check your input."
SUBMITTED_MESSAGE = "Complaint submitted successfully!"
SUBMIT_FAILED_MESSAGE = "An unexpected error occurred on the server."
STATUS_UPDATED_MESSAGE = "Status updated successfully"
STATUS_FAILED_MESSAGE = "Failed to update status"

SIGNATURE_KINDS = ("user", "representative")


class SignatureImage:
    """Reject signature strings that do not decode to a raster image."""

    def __init__(self, message: str) -> None:
        self.message = message

    def __call__(self, form, field):
        if not field.data:
            return
        max_bytes = int(current_app.config.get("MAX_SIGNATURE_BYTES", 2 * 1024 * 1024))
        try:
            content = decode_data_url(field.data, max_bytes=max_bytes)
        except SignatureDecodeError as exc:
            current_app.logger.info("Rejected signature", extra={"field": field.name, "error": str(exc)})
            raise ValidationError(self.message) from exc
        current_app.logger.debug(
            "Signature accepted",
            extra={"field": field.name, "bytes": len(content), "size": image_size(content)},
        )


class ComplaintForm(FlaskForm):
    user_name = StringField(
        "User Name", name="userName", validators=[DataRequired("User name is required.")]
    )
    room_number = StringField(
        "Room Number", name="roomNumber", validators=[DataRequired("Room number is required.")]
    )
    section = StringField("Section", name="section", validators=[DataRequired("Section is required.")])
    product_type = StringField(
        "Product Type", name="productType", validators=[DataRequired("Product type is required.")]
    )
    product_serial_number = StringField(
        "Product Serial Number",
        name="productSerialNumber",
        validators=[DataRequired("Product Serial Number is required.")],
    )
    problem_description = TextAreaField(
        "Problem Description",
        name="problemDescription",
        validators=[Length(min=10, message="Problem description must be at least 10 characters.")],
    )
    user_signature = HiddenField(
        "User Signature",
        name="userSignature",
        validators=[
            DataRequired("User signature is required."),
            SignatureImage("User signature is not a valid image."),
        ],
    )
    representative_name = StringField(
        "Representative Name",
        name="representativeName",
        validators=[DataRequired("Representative name is required.")],
    )
    solution = TextAreaField(
        "Solution Provided",
        name="solution",
        validators=[Length(min=10, message="Solution must be at least 10 characters.")],
    )
    representative_signature = HiddenField(
        "Representative Signature",
        name="representativeSignature",
        validators=[
            DataRequired("Representative signature is required."),
            SignatureImage("Representative signature is not a valid image."),
        ],
    )
    submit = SubmitField("Submit Complaint")

    def field_errors(self) -> Dict[str, List[str]]:
        """Errors keyed by wire field name."""
        return {field.name: list(field.errors) for field in self if field.errors}

    def validated_submission(self) -> Optional[ComplaintSubmission]:
        if not self.validate():
            return None
        return ComplaintSubmission(**{attr: self[attr].data or "" for attr in WIRE_NAMES})


class StatusForm(FlaskForm):
    status = SelectField(
        "Status",
        choices=[(s, s) for s in COMPLAINT_STATUSES],
        validators=[DataRequired()],
    )
    submit = SubmitField("Update status")


def store_submission(submission: ComplaintSubmission) -> ComplaintRecord:
    record = get_store().append(submission)
    current_app.logger.info(
        "complaint_submitted",
        extra={"complaint_id": record.id, "product_type": record.product_type, "section": record.section},
    )
    return record


def change_status(complaint_id: str, status: str) -> Optional[ComplaintRecord]:
    """Apply a status change; ``None`` when the complaint does not exist."""
    record = get_store().update_status(complaint_id, status)
    if record is None:
        current_app.logger.warning("Status update for unknown complaint", extra={"complaint_id": complaint_id})
    else:
        current_app.logger.info("complaint_status_changed", extra={"complaint_id": complaint_id, "status": status})
    return record


def filtered_complaints(status_filter: Optional[str]) -> List[ComplaintRecord]:
    complaints = get_store().list()
    if status_filter and status_filter in COMPLAINT_STATUSES:
        complaints = [c for c in complaints if c.status == status_filter]
    return complaints


def _complaint_or_404(complaint_id: str) -> ComplaintRecord:
    complaint = get_store().get(complaint_id)
    if not complaint:
        abort(404)
    return complaint


@complaints_bp.route("/complaints", methods=["POST"])
def submit_complaint():
    form = ComplaintForm()
    submission = form.validated_submission()
    if submission is None:
        current_app.logger.info("Complaint validation failed", extra={"fields": sorted(form.field_errors())})
        flash(VALIDATION_FAILED_MESSAGE, "danger")
        return (
            render_template(
                "index.html",
                active_tab="new",
                form=form,
                complaints=get_store().list(),
                status_filter=None,
                status_options=COMPLAINT_STATUSES,
                page_title="New Complaint",
            ),
            400,
        )

    try:
        store_submission(submission)
    except ComplaintStoreError:
        flash(SUBMIT_FAILED_MESSAGE, "danger")
        return redirect(url_for("main.index", tab="new"))

    flash(SUBMITTED_MESSAGE, "success")
    return redirect(url_for("main.index", tab="list"))


@complaints_bp.route("/complaints/<string:complaint_id>", methods=["GET"])
def complaint_detail(complaint_id):
    complaint = _complaint_or_404(complaint_id)
    status_form = StatusForm(status=complaint.status)
    return render_template(
        "complaints/detail.html",
        complaint=complaint,
        status_form=status_form,
        page_title=f"Complaint Details #{complaint.id}",
    )


@complaints_bp.route("/complaints/<string:complaint_id>/status", methods=["POST"])
def update_status(complaint_id):
    form = StatusForm()
    if not form.validate_on_submit():
        flash("Choose a valid status.", "warning")
        return redirect(url_for("complaints.complaint_detail", complaint_id=complaint_id))

    try:
        record = change_status(complaint_id, form.status.data)
    except ComplaintStoreError:
        record = None
    if record is None:
        flash(STATUS_FAILED_MESSAGE, "danger")
        if get_store().get(complaint_id) is None:
            return redirect(url_for("main.index", tab="list"))
        return redirect(url_for("complaints.complaint_detail", complaint_id=complaint_id))

    flash(f"Complaint #{record.id} marked as {record.status}.", "success")
    return redirect(url_for("complaints.complaint_detail", complaint_id=complaint_id))


@complaints_bp.route("/complaints/<string:complaint_id>/signatures/<string:which>.png", methods=["GET"])
def signature_image(complaint_id, which):
    if which not in SIGNATURE_KINDS:
        abort(404)
    complaint = _complaint_or_404(complaint_id)
    value = complaint.signature(which)
    try:
        content = decode_data_url(value)
    except SignatureDecodeError:
        current_app.logger.warning("Stored signature unreadable", extra={"complaint_id": complaint_id, "which": which})
        abort(404)
    # Served as stored, so a JPEG signature keeps its own type.
    mimetype, _payload = split_data_url(value)
    return send_file(
        io.BytesIO(content),
        mimetype=mimetype,
        download_name=f"{which}-signature.{SIGNATURE_FILE_EXTENSIONS[mimetype]}",
    )


@complaints_bp.route("/complaints/export/<string:fmt>", methods=["GET"])
def export_complaints(fmt):
    complaints = get_store().list()
    if fmt == "csv":
        payload = export_csv(complaints).encode("utf-8")
        mimetype, filename = "text/csv", "complaints.csv"
    elif fmt == "txt":
        payload = export_txt(complaints).encode("utf-8")
        mimetype, filename = "text/plain", "complaints.txt"
    elif fmt == "pdf":
        payload = generate_complaints_report(complaints)
        mimetype, filename = "application/pdf", "complaints-report.pdf"
    else:
        abort(404)

    current_app.logger.info(
        "complaints_exported",
        extra={"format": fmt, "count": len(complaints), "checksum": compute_hash(payload)},
    )
    return send_file(io.BytesIO(payload), mimetype=mimetype, as_attachment=True, download_name=filename)


@complaints_bp.app_template_filter("status_badge")
def status_badge_class(status: Optional[str]) -> str:
    return "closed" if status == "Closed" else "open"


@complaints_bp.app_template_filter("timestamp")
def timestamp_filter(value) -> str:
    return format_timestamp(value) if value else ""
