"""Complaint record stores: the in-memory reference store and a SQL-backed one."""
from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import COMPLAINT_STATUSES, Complaint, ComplaintRecord, ComplaintSubmission, utcnow

STORE_EXTENSION_KEY = "complaint_store"

# Largest value an INTEGER primary key can hold (signed 64-bit).
MAX_SQL_ID = 2**63 - 1


class ComplaintStoreError(Exception):
    """Raised when the store cannot complete an append or status update."""


class ComplaintStore(Protocol):
    def list(self) -> List[ComplaintRecord]: ...

    def get(self, complaint_id: str) -> Optional[ComplaintRecord]: ...

    def append(self, submission: ComplaintSubmission) -> ComplaintRecord: ...

    def update_status(self, complaint_id: str, status: str) -> Optional[ComplaintRecord]: ...


def _check_status(status: str) -> None:
    if status not in COMPLAINT_STATUSES:
        raise ValueError(f"Unknown complaint status: {status!r}")


class InMemoryComplaintStore:
    """Process-local list of records, newest first. Nothing survives a restart."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._records: List[ComplaintRecord] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def list(self) -> List[ComplaintRecord]:
        with self._lock:
            snapshot = [replace(r) for r in self._records]
        # Stable sort: records are kept newest-inserted first, so equal timestamps stay in reverse insertion order.
        return sorted(snapshot, key=lambda r: r.created_at, reverse=True)

    def get(self, complaint_id: str) -> Optional[ComplaintRecord]:
        with self._lock:
            for record in self._records:
                if record.id == str(complaint_id):
                    return replace(record)
        return None

    def append(self, submission: ComplaintSubmission) -> ComplaintRecord:
        with self._lock:
            record = ComplaintRecord.create(str(self._next_id), submission, self._clock())
            self._next_id += 1
            self._records.insert(0, record)
            return replace(record)

    def update_status(self, complaint_id: str, status: str) -> Optional[ComplaintRecord]:
        _check_status(status)
        with self._lock:
            for record in self._records:
                if record.id == str(complaint_id):
                    record.status = status
                    return replace(record)
        return None


class SqlComplaintStore:
    """Records in the ``complaints`` table, one transaction per mutation."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock

    @staticmethod
    def _lookup(complaint_id: str) -> Optional[Complaint]:
        try:
            pk = int(complaint_id)
        except (TypeError, ValueError):
            return None
        if not 0 < pk <= MAX_SQL_ID:
            return None
        return db.session.get(Complaint, pk)

    def list(self) -> List[ComplaintRecord]:
        rows = Complaint.query.order_by(Complaint.created_at.desc(), Complaint.id.desc()).all()
        return [row.to_record() for row in rows]

    def get(self, complaint_id: str) -> Optional[ComplaintRecord]:
        row = self._lookup(complaint_id)
        return row.to_record() if row else None

    def append(self, submission: ComplaintSubmission) -> ComplaintRecord:
        row = Complaint(
            user_name=submission.user_name,
            room_number=submission.room_number,
            section=submission.section,
            product_type=submission.product_type,
            product_serial_number=submission.product_serial_number,
            problem_description=submission.problem_description,
            user_signature=submission.user_signature,
            representative_name=submission.representative_name,
            solution=submission.solution,
            representative_signature=submission.representative_signature,
            created_at=self._clock(),
        )
        try:
            db.session.add(row)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("Database error while storing complaint")
            raise ComplaintStoreError("Could not store complaint") from exc
        return row.to_record()

    def update_status(self, complaint_id: str, status: str) -> Optional[ComplaintRecord]:
        _check_status(status)
        row = self._lookup(complaint_id)
        if row is None:
            return None
        try:
            row.status = status
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("Database error while updating complaint status")
            raise ComplaintStoreError("Could not update complaint status") from exc
        return row.to_record()


STORE_BACKENDS = {
    "memory": InMemoryComplaintStore,
    "sql": SqlComplaintStore,
}


def build_store(backend: str) -> ComplaintStore:
    try:
        return STORE_BACKENDS[backend]()
    except KeyError as exc:
        raise ValueError(f"Unknown COMPLAINT_STORE backend: {backend!r}") from exc


def get_store() -> ComplaintStore:
    return current_app.extensions[STORE_EXTENSION_KEY]
