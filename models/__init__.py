"""Complaint record types and the SQL table backing the persistent store."""
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone

from extensions import db


COMPLAINT_STATUSES: tuple[str, ...] = (
    "Open",
    "Closed",
)

DEFAULT_STATUS = "Open"

# Wire (form / JSON) name for each record attribute.
WIRE_NAMES: dict[str, str] = {
    "user_name": "userName",
    "room_number": "roomNumber",
    "section": "section",
    "product_type": "productType",
    "product_serial_number": "productSerialNumber",
    "problem_description": "problemDescription",
    "user_signature": "userSignature",
    "representative_name": "representativeName",
    "solution": "solution",
    "representative_signature": "representativeSignature",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ComplaintSubmission:
    """Validated complaint fields. Built by ``ComplaintForm.validated_submission`` only."""

    user_name: str
    room_number: str
    section: str
    product_type: str
    product_serial_number: str
    problem_description: str
    user_signature: str
    representative_name: str
    solution: str
    representative_signature: str


@dataclass
class ComplaintRecord:
    id: str
    user_name: str
    room_number: str
    section: str
    product_type: str
    product_serial_number: str
    problem_description: str
    user_signature: str
    representative_name: str
    solution: str
    representative_signature: str
    status: str
    created_at: datetime

    @classmethod
    def create(cls, record_id: str, submission: ComplaintSubmission, created_at: datetime) -> "ComplaintRecord":
        return cls(id=record_id, status=DEFAULT_STATUS, created_at=created_at, **asdict(submission))

    def signature(self, which: str) -> str:
        if which == "user":
            return self.user_signature
        if which == "representative":
            return self.representative_signature
        raise KeyError(which)

    def to_dict(self) -> dict:
        payload = {"id": self.id}
        for f in fields(ComplaintSubmission):
            payload[WIRE_NAMES[f.name]] = getattr(self, f.name)
        payload["status"] = self.status
        payload["createdAt"] = self.created_at.isoformat()
        return payload


class Complaint(db.Model):
    __tablename__ = "complaints"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_name = db.Column(db.String(255), nullable=False)
    room_number = db.Column(db.String(64), nullable=False)
    section = db.Column(db.String(255), nullable=False)
    product_type = db.Column(db.String(64), nullable=False, index=True)
    product_serial_number = db.Column(db.String(128), nullable=False)
    problem_description = db.Column(db.Text, nullable=False)
    user_signature = db.Column(db.Text, nullable=False)
    representative_name = db.Column(db.String(255), nullable=False)
    solution = db.Column(db.Text, nullable=False)
    representative_signature = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=DEFAULT_STATUS, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    __table_args__ = (
        db.CheckConstraint("status IN ('Open','Closed')", name="ck_complaint_status_valid"),
    )

    def to_record(self) -> ComplaintRecord:
        created_at = self.created_at
        # SQLite drops tzinfo on the way back.
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return ComplaintRecord(
            id=str(self.id),
            user_name=self.user_name,
            room_number=self.room_number,
            section=self.section,
            product_type=self.product_type,
            product_serial_number=self.product_serial_number,
            problem_description=self.problem_description,
            user_signature=self.user_signature,
            representative_name=self.representative_name,
            solution=self.solution,
            representative_signature=self.representative_signature,
            status=self.status,
            created_at=created_at,
        )
