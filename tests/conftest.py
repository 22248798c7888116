"""
Complaint desk - test configuration and fixtures
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Keep the module-level WSGI app from writing logs into the working tree.
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="complaints-logs-"))
os.environ.setdefault("COMPLAINT_STORE", "memory")

from app import create_app
from models import ComplaintSubmission
from utils.complaint_store import STORE_EXTENSION_KEY
from utils.signature_raster import replay_events, strokes_to_events


def draw_signature(strokes=None, width=40, height=20, pixel_ratio=1.0) -> str:
    strokes = strokes or [[(4, 10), (12, 4), (20, 14), (34, 6)]]
    return replay_events(strokes_to_events(strokes), width, height, pixel_ratio).value


@pytest.fixture
def signature() -> str:
    return draw_signature()


@pytest.fixture
def complaint_payload(signature) -> dict:
    """A complete, valid submission using wire field names."""
    return {
        "userName": "John Doe",
        "roomNumber": "101",
        "section": "Cardiology",
        "productType": "Printer",
        "productSerialNumber": "SN123456789",
        "problemDescription": "Paper jams, then the tray, rollers and feeder stop.",
        "userSignature": signature,
        "representativeName": "Jane Smith",
        "solution": "Replaced the feed rollers and cleaned the tray.",
        "representativeSignature": draw_signature([[(2, 2), (38, 18)]]),
    }


@pytest.fixture
def submission(complaint_payload) -> ComplaintSubmission:
    return ComplaintSubmission(
        user_name=complaint_payload["userName"],
        room_number=complaint_payload["roomNumber"],
        section=complaint_payload["section"],
        product_type=complaint_payload["productType"],
        product_serial_number=complaint_payload["productSerialNumber"],
        problem_description=complaint_payload["problemDescription"],
        user_signature=complaint_payload["userSignature"],
        representative_name=complaint_payload["representativeName"],
        solution=complaint_payload["solution"],
        representative_signature=complaint_payload["representativeSignature"],
    )


class StepClock:
    """Deterministic clock advancing by ``step`` on every call."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def step_clock() -> StepClock:
    return StepClock()


@pytest.fixture
def app(tmp_path):
    application = create_app("testing", {"COMPLAINT_STORE": "memory", "LOG_DIR": str(tmp_path / "logs")})
    yield application


@pytest.fixture
def sql_app(tmp_path):
    application = create_app("testing", {"COMPLAINT_STORE": "sql", "LOG_DIR": str(tmp_path / "logs")})
    with application.app_context():
        yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions[STORE_EXTENSION_KEY]
