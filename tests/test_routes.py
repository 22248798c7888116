import base64
import csv
import io
from datetime import datetime

import pytest
from PIL import Image

from conftest import draw_signature
from routes.complaints import (
    STATUS_FAILED_MESSAGE,
    SUBMIT_FAILED_MESSAGE,
    SUBMITTED_MESSAGE,
    VALIDATION_FAILED_MESSAGE,
)
from utils.complaint_store import STORE_EXTENSION_KEY, ComplaintStoreError, SqlComplaintStore


def _submit(client, payload):
    return client.post("/complaints", data=payload)


def _seed(client, payload):
    response = client.post("/api/complaints", json=payload)
    assert response.status_code == 201
    return response.get_json()["complaint"]


class TestIndex:
    def test_new_tab_is_default(self, client):
        response = client.get("/")
        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert 'name="userSignature"' in body
        assert 'name="representativeSignature"' in body
        assert "Draw your signature here" in body
        assert "js/signature_pad.js" in body

    def test_unknown_tab_falls_back_to_form(self, client):
        body = client.get("/?tab=bogus").get_data(as_text=True)
        assert 'name="productSerialNumber"' in body

    def test_list_tab_empty_state(self, client):
        body = client.get("/?tab=list").get_data(as_text=True)
        assert "No Complaints Yet" in body
        assert "/complaints/export/csv" in body

    def test_list_tab_filters_by_status(self, client, complaint_payload):
        first = _seed(client, complaint_payload)
        _seed(client, dict(complaint_payload, userName="Second User"))
        client.patch(f"/api/complaints/{first['id']}/status", json={"status": "Closed"})

        body = client.get("/?tab=list&status=Closed").get_data(as_text=True)
        assert "John Doe" in body
        assert "Second User" not in body

        body = client.get("/?tab=list&status=Whatever").get_data(as_text=True)
        assert "John Doe" in body and "Second User" in body

    def test_security_headers(self, client):
        response = client.get("/")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "data:" in response.headers["Content-Security-Policy"]


class TestSubmitForm:
    def test_valid_submission_is_stored_open(self, client, store, complaint_payload):
        start = datetime.now().astimezone()
        response = _submit(client, complaint_payload)

        assert response.status_code == 302
        assert "tab=list" in response.headers["Location"]
        records = store.list()
        assert len(records) == 1
        record = records[0]
        assert record.status == "Open"
        assert record.created_at >= start
        assert record.user_signature == complaint_payload["userSignature"]
        assert record.problem_description == complaint_payload["problemDescription"]

        body = client.get(response.headers["Location"]).get_data(as_text=True)
        assert SUBMITTED_MESSAGE in body
        assert "John Doe" in body

    def test_invalid_submission_is_rejected(self, client, store, complaint_payload):
        payload = dict(complaint_payload, userName="", problemDescription="too short")
        response = _submit(client, payload)

        assert response.status_code == 400
        body = response.get_data(as_text=True)
        assert VALIDATION_FAILED_MESSAGE in body
        assert "User name is required." in body
        assert "Problem description must be at least 10 characters." in body
        assert len(store) == 0

    def test_missing_signature_is_rejected(self, client, store, complaint_payload):
        payload = dict(complaint_payload, representativeSignature="")
        response = _submit(client, payload)
        assert response.status_code == 400
        assert "Representative signature is required." in response.get_data(as_text=True)
        assert len(store) == 0


class TestApi:
    def test_create_and_list(self, client, complaint_payload):
        response = client.post("/api/complaints", json=complaint_payload)
        assert response.status_code == 201
        data = response.get_json()
        assert data["success"] is True
        assert data["message"] == SUBMITTED_MESSAGE
        complaint = data["complaint"]
        assert complaint["status"] == "Open"
        assert complaint["productSerialNumber"] == "SN123456789"
        datetime.fromisoformat(complaint["createdAt"])

        listed = client.get("/api/complaints").get_json()
        assert [c["id"] for c in listed] == [complaint["id"]]

    def test_list_is_newest_first(self, client, complaint_payload):
        first = _seed(client, complaint_payload)
        second = _seed(client, dict(complaint_payload, userName="Second User"))
        listed = client.get("/api/complaints").get_json()
        assert [c["id"] for c in listed] == [second["id"], first["id"]]

    def test_errors_name_exactly_the_invalid_fields(self, client, complaint_payload):
        payload = dict(complaint_payload, roomNumber="", solution="short", userSignature="not-an-image")
        response = client.post("/api/complaints", json=payload)

        assert response.status_code == 400
        data = response.get_json()
        assert data["success"] is False
        assert data["message"] == VALIDATION_FAILED_MESSAGE
        assert set(data["errors"]) == {"roomNumber", "solution", "userSignature"}
        assert data["errors"]["userSignature"] == ["User signature is not a valid image."]
        assert client.get("/api/complaints").get_json() == []

    def test_missing_fields_are_reported(self, client):
        response = client.post("/api/complaints", json={})
        errors = response.get_json()["errors"]
        assert response.status_code == 400
        assert set(errors) == {
            "userName",
            "roomNumber",
            "section",
            "productType",
            "productSerialNumber",
            "problemDescription",
            "userSignature",
            "representativeName",
            "solution",
            "representativeSignature",
        }

    def test_status_update(self, client, complaint_payload):
        complaint = _seed(client, complaint_payload)

        response = client.patch(f"/api/complaints/{complaint['id']}/status", json={"status": "Closed"})
        assert response.status_code == 200
        assert response.get_json()["complaint"]["status"] == "Closed"
        assert client.get("/api/complaints").get_json()[0]["status"] == "Closed"

    def test_status_update_unknown_id(self, client, complaint_payload):
        _seed(client, complaint_payload)
        response = client.patch("/api/complaints/999/status", json={"status": "Closed"})
        assert response.status_code == 404
        assert response.get_json()["message"] == STATUS_FAILED_MESSAGE
        assert client.get("/api/complaints").get_json()[0]["status"] == "Open"

    def test_status_update_rejects_unknown_status(self, client, complaint_payload):
        complaint = _seed(client, complaint_payload)
        response = client.patch(f"/api/complaints/{complaint['id']}/status", json={"status": "Pending"})
        assert response.status_code == 400

    def test_render_signature(self, client):
        events = [
            {"type": "pointerdown", "x": 110, "y": 60},
            {"type": "pointermove", "x": 180, "y": 90},
            {"type": "pointerup"},
        ]
        response = client.post(
            "/api/signatures/render",
            json={"width": 200, "height": 100, "pixelRatio": 2, "left": 100, "top": 50, "events": events},
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["hasContent"] is True
        assert data["signature"].startswith("data:image/png;base64,")

    @pytest.mark.parametrize(
        "body",
        [
            {"events": "nope"},
            {"events": [{"type": "wiggle"}]},
            {"events": [], "width": -5},
            {"events": [], "pixelRatio": "x"},
        ],
    )
    def test_render_signature_rejects_bad_input(self, client, body):
        response = client.post("/api/signatures/render", json=body)
        assert response.status_code == 400
        assert response.get_json()["success"] is False


class TestDetail:
    def test_detail_page(self, client, complaint_payload):
        complaint = _seed(client, complaint_payload)
        body = client.get(f"/complaints/{complaint['id']}").get_data(as_text=True)
        assert f"Complaint Details #{complaint['id']}" in body
        assert "Replaced the feed rollers" in body
        assert f"/complaints/{complaint['id']}/signatures/user.png" in body

    def test_unknown_complaint_is_404(self, client):
        response = client.get("/complaints/404")
        assert response.status_code == 404

    def test_signature_image(self, client, complaint_payload):
        complaint = _seed(client, complaint_payload)
        response = client.get(f"/complaints/{complaint['id']}/signatures/representative.png")
        assert response.status_code == 200
        assert response.mimetype == "image/png"
        assert Image.open(io.BytesIO(response.data)).size == (40, 20)

        assert client.get(f"/complaints/{complaint['id']}/signatures/witness.png").status_code == 404

    def test_status_form_closes_complaint(self, client, store, complaint_payload):
        complaint = _seed(client, complaint_payload)
        response = client.post(f"/complaints/{complaint['id']}/status", data={"status": "Closed"})
        assert response.status_code == 302
        assert store.get(complaint["id"]).status == "Closed"

        body = client.get(response.headers["Location"]).get_data(as_text=True)
        assert f"Complaint #{complaint['id']} marked as Closed." in body

    def test_status_form_unknown_complaint(self, client, store, complaint_payload):
        _seed(client, complaint_payload)
        response = client.post("/complaints/999/status", data={"status": "Closed"}, follow_redirects=True)
        assert STATUS_FAILED_MESSAGE in response.get_data(as_text=True)
        assert [r.status for r in store.list()] == ["Open"]


class TestExports:
    def test_csv_export_end_to_end(self, client, complaint_payload):
        _submit(client, complaint_payload)
        response = client.get("/complaints/export/csv")

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment" in response.headers["Content-Disposition"]
        rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
        assert len(rows) == 2
        assert rows[1][0] == "1"
        assert rows[1][2] == "Open"
        assert rows[1][8] == complaint_payload["problemDescription"]

    def test_txt_export(self, client, complaint_payload):
        _seed(client, complaint_payload)
        response = client.get("/complaints/export/txt")
        assert response.mimetype == "text/plain"
        assert response.get_data(as_text=True).startswith("ID: 1\n")

    def test_pdf_export(self, client, complaint_payload):
        _seed(client, complaint_payload)
        _seed(client, dict(complaint_payload, userSignature=draw_signature(pixel_ratio=2)))
        response = client.get("/complaints/export/pdf")
        assert response.mimetype == "application/pdf"
        assert response.data.startswith(b"%PDF")

    def test_unknown_format_is_404(self, client):
        assert client.get("/complaints/export/xlsx").status_code == 404


class TestSeedCommand:
    def test_seed_demo_persists_with_sql_store(self, sql_app):
        result = sql_app.test_cli_runner().invoke(args=["seed-demo", "--count", "2"])

        assert result.exit_code == 0, result.output
        assert "Seeded 2 complaint(s)." in result.output
        store = sql_app.extensions[STORE_EXTENSION_KEY]
        assert isinstance(store, SqlComplaintStore)
        records = store.list()
        assert len(records) == 2
        assert all(r.status == "Open" for r in records)
        assert all(r.user_signature.startswith("data:image/png;base64,") for r in records)


def _jpeg_data_url(size=(40, 20)):
    buf = io.BytesIO()
    Image.new("RGB", size, (255, 255, 255)).save(buf, format="JPEG")
    return "data:image/jpeg;base64," + base64.b64encode(buf.getvalue()).decode("ascii"), buf.getvalue()


class TestSignatureTypes:
    def test_jpeg_signature_is_served_as_jpeg(self, client, complaint_payload):
        value, content = _jpeg_data_url()
        complaint = _seed(client, dict(complaint_payload, userSignature=value))

        response = client.get(f"/complaints/{complaint['id']}/signatures/user.png")
        assert response.status_code == 200
        assert response.mimetype == "image/jpeg"
        assert response.data == content
        assert "user-signature.jpg" in response.headers["Content-Disposition"]

        png = client.get(f"/complaints/{complaint['id']}/signatures/representative.png")
        assert png.mimetype == "image/png"
        assert "representative-signature.png" in png.headers["Content-Disposition"]


class TestOversizedIds:
    HUGE = "99999999999999999999999"

    def test_sql_lookups_treat_huge_ids_as_missing(self, sql_app, complaint_payload):
        client = sql_app.test_client()
        _seed(client, complaint_payload)

        assert client.get(f"/complaints/{self.HUGE}").status_code == 404
        assert client.get(f"/complaints/{self.HUGE}/signatures/user.png").status_code == 404

        response = client.patch(f"/api/complaints/{self.HUGE}/status", json={"status": "Closed"})
        assert response.status_code == 404
        assert response.get_json()["message"] == STATUS_FAILED_MESSAGE

        response = client.post(f"/complaints/{self.HUGE}/status", data={"status": "Closed"}, follow_redirects=True)
        assert STATUS_FAILED_MESSAGE in response.get_data(as_text=True)
        assert [c["status"] for c in client.get("/api/complaints").get_json()] == ["Open"]


class TestStoreFailures:
    @staticmethod
    def _failing(*args, **kwargs):
        raise ComplaintStoreError("database unavailable")

    def test_form_submit_reports_store_failure(self, client, store, monkeypatch, complaint_payload):
        monkeypatch.setattr(store, "append", self._failing)

        response = _submit(client, complaint_payload)
        assert response.status_code == 302
        assert "tab=new" in response.headers["Location"]
        body = client.get(response.headers["Location"]).get_data(as_text=True)
        assert SUBMIT_FAILED_MESSAGE in body
        assert SUBMITTED_MESSAGE not in body
        assert len(store) == 0

    def test_api_submit_reports_store_failure(self, client, store, monkeypatch, complaint_payload):
        monkeypatch.setattr(store, "append", self._failing)

        response = client.post("/api/complaints", json=complaint_payload)
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "message": SUBMIT_FAILED_MESSAGE}
        assert len(store) == 0

    def test_form_status_update_reports_store_failure(self, client, store, monkeypatch, complaint_payload):
        complaint = _seed(client, complaint_payload)
        monkeypatch.setattr(store, "update_status", self._failing)

        response = client.post(f"/complaints/{complaint['id']}/status", data={"status": "Closed"})
        assert response.status_code == 302
        assert response.headers["Location"].endswith(f"/complaints/{complaint['id']}")
        body = client.get(response.headers["Location"]).get_data(as_text=True)
        assert STATUS_FAILED_MESSAGE in body
        assert store.get(complaint["id"]).status == "Open"

    def test_api_status_update_reports_store_failure(self, client, store, monkeypatch, complaint_payload):
        complaint = _seed(client, complaint_payload)
        monkeypatch.setattr(store, "update_status", self._failing)

        response = client.patch(f"/api/complaints/{complaint['id']}/status", json={"status": "Closed"})
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "message": STATUS_FAILED_MESSAGE}
        assert store.get(complaint["id"]).status == "Open"
        assert len(store) == 1
