"""CSV and plain-text exports of the complaint list."""
import csv
import io
from datetime import datetime
from typing import Iterable, List

from models import ComplaintRecord

CSV_HEADERS = [
    "ID",
    "Date",
    "Status",
    "User Name",
    "Room",
    "Section",
    "Product Type",
    "Product S/N",
    "Problem",
    "Solution",
    "Representative",
]

TXT_RULE = "-" * 36


def format_timestamp(value: datetime) -> str:
    """Render as ``Oct 19, 2026, 3:04 PM``."""
    hour = value.hour % 12 or 12
    return f"{value:%b} {value.day}, {value.year}, {hour}:{value:%M} {value:%p}"


def export_csv(records: Iterable[ComplaintRecord]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for c in records:
        writer.writerow(
            [
                c.id,
                format_timestamp(c.created_at),
                c.status,
                c.user_name,
                c.room_number,
                c.section,
                c.product_type,
                c.product_serial_number,
                c.problem_description,
                c.solution,
                c.representative_name,
            ]
        )
    return buf.getvalue()


def _txt_block(c: ComplaintRecord) -> str:
    lines: List[str] = [
        f"ID: {c.id}",
        f"Date: {format_timestamp(c.created_at)}",
        f"Status: {c.status}",
        f"User: {c.user_name}",
        f"Room: {c.room_number}",
        f"Section: {c.section}",
        f"Product Type: {c.product_type}",
        f"Product S/N: {c.product_serial_number}",
        f"Problem: {c.problem_description}",
        f"Solution: {c.solution}",
        f"Representative: {c.representative_name}",
        TXT_RULE,
    ]
    return "\n".join(lines)


def export_txt(records: Iterable[ComplaintRecord]) -> str:
    return "\n\n".join(_txt_block(c) for c in records)
