"""Blueprint registration and the tabbed page shell."""
from flask import Blueprint, render_template, request

from models import COMPLAINT_STATUSES
from .api import api_bp
from .complaints import ComplaintForm, complaints_bp, filtered_complaints

main_bp = Blueprint("main", __name__)

TABS = ("new", "list")


@main_bp.route("/", methods=["GET"])
def index():
    active_tab = request.args.get("tab", "new")
    if active_tab not in TABS:
        active_tab = "new"
    status_filter = request.args.get("status") or None
    if status_filter not in COMPLAINT_STATUSES:
        status_filter = None

    return render_template(
        "index.html",
        active_tab=active_tab,
        form=ComplaintForm(),
        complaints=filtered_complaints(status_filter),
        status_filter=status_filter,
        status_options=COMPLAINT_STATUSES,
        page_title="SignAssist",
    )


__all__ = ["main_bp", "complaints_bp", "api_bp"]
