"""PDF generation for the paginated complaints report."""

import io
from typing import List, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from models import ComplaintRecord
from utils.image_utils import SignatureDecodeError, decode_data_url
from utils.report_export import format_timestamp


PAGE_SIZE = landscape(A4)
PAGE_MARGIN = 15 * mm
CONTENT_WIDTH = PAGE_SIZE[0] - (PAGE_MARGIN * 2)
LABEL_COLUMN_WIDTH = 50 * mm
SIGNATURE_WIDTH = 80 * mm
SIGNATURE_HEIGHT = 40 * mm
HEADER_FILL = colors.Color(231 / 255, 48 / 255, 48 / 255)


styles = getSampleStyleSheet()

TITLE_STYLE = ParagraphStyle(
    name="ReportTitle",
    parent=styles["Title"],
    fontName="Helvetica-Bold",
    fontSize=20,
    leading=24,
    alignment=0,
    spaceAfter=10,
    textColor=colors.black,
)

HEADING_STYLE = ParagraphStyle(
    name="ComplaintHeading",
    fontName="Helvetica-Bold",
    fontSize=14,
    leading=18,
    textColor=colors.black,
    spaceAfter=4,
    keepWithNext=True,
)

META_STYLE = ParagraphStyle(
    name="MetaText",
    fontName="Helvetica",
    fontSize=10,
    leading=12,
    textColor=colors.HexColor("#646464"),
)

SECTION_STYLE = ParagraphStyle(
    name="SectionHeading",
    fontName="Helvetica-Bold",
    fontSize=12,
    leading=15,
    textColor=colors.black,
    spaceBefore=6,
    spaceAfter=6,
    keepWithNext=True,
)

BODY_STYLE = ParagraphStyle(
    name="BodyText",
    fontName="Helvetica",
    fontSize=10,
    leading=13,
    textColor=colors.black,
    wordWrap="CJK",
    splitLongWords=True,
)

LABEL_STYLE = ParagraphStyle(
    name="LabelText",
    parent=BODY_STYLE,
    fontName="Helvetica-Bold",
)

HEAD_STYLE = ParagraphStyle(
    name="HeadText",
    parent=LABEL_STYLE,
    textColor=colors.white,
)


def _para(value: str, style: ParagraphStyle = BODY_STYLE) -> Paragraph:
    """Create a wrapping paragraph with safe escaping and soft line handling."""
    text = escape(str(value or "").strip())
    text = text.replace("\n", "<br/>")
    text = text if text else "N/A"
    return Paragraph(text, style)


def _field_table(c: ComplaintRecord) -> Table:
    rows = [
        ("User Name", c.user_name),
        ("Room Number", c.room_number),
        ("Section", c.section),
        ("Product Type", c.product_type),
        ("Product Serial Number", c.product_serial_number),
        ("Problem Description", c.problem_description),
        ("Representative Name", c.representative_name),
        ("Solution Provided", c.solution),
    ]
    table_rows = [[_para("Field", HEAD_STYLE), _para("Value", HEAD_STYLE)]]
    table_rows.extend([_para(label, LABEL_STYLE), _para(value, BODY_STYLE)] for label, value in rows)

    table = Table(
        table_rows,
        colWidths=[LABEL_COLUMN_WIDTH, CONTENT_WIDTH - LABEL_COLUMN_WIDTH],
        repeatRows=1,
        hAlign="LEFT",
    )
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("LEFTPADDING", (0, 0), (-1, -1), 4),
                ("RIGHTPADDING", (0, 0), (-1, -1), 4),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return table


def _signature_box(value: str) -> Table:
    """Fixed-size bordered box holding one signature image."""
    try:
        content = decode_data_url(value)
        cell = Image(
            io.BytesIO(content),
            width=SIGNATURE_WIDTH,
            height=SIGNATURE_HEIGHT,
            kind="proportional",
            mask="auto",
        )
    except SignatureDecodeError:
        cell = _para("Signature unavailable", META_STYLE)

    box = Table([[cell]], colWidths=[SIGNATURE_WIDTH], rowHeights=[SIGNATURE_HEIGHT], hAlign="LEFT")
    box.setStyle(
        TableStyle(
            [
                ("BOX", (0, 0), (-1, -1), 0.75, colors.black),
                ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                ("TOPPADDING", (0, 0), (-1, -1), 0),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
            ]
        )
    )
    return box


def _signature_block(c: ComplaintRecord) -> Table:
    half = CONTENT_WIDTH / 2
    table = Table(
        [
            [_para("User Signature", BODY_STYLE), _para("Representative Signature", BODY_STYLE)],
            [_signature_box(c.user_signature), _signature_box(c.representative_signature)],
        ],
        colWidths=[half, half],
        hAlign="LEFT",
    )
    table.setStyle(
        TableStyle(
            [
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 2 * mm),
            ]
        )
    )
    return table


def _complaint_section(c: ComplaintRecord) -> List:
    meta = Table(
        [[_para(f"Date: {format_timestamp(c.created_at)}", META_STYLE), _para(f"Status: {c.status}", META_STYLE)]],
        colWidths=[CONTENT_WIDTH / 2, CONTENT_WIDTH / 2],
        hAlign="LEFT",
    )
    meta.setStyle(TableStyle([("LEFTPADDING", (0, 0), (-1, -1), 0)]))
    return [
        Paragraph(escape(f"Complaint #{c.id}"), HEADING_STYLE),
        meta,
        Spacer(1, 4 * mm),
        _field_table(c),
        Spacer(1, 6 * mm),
        Paragraph("Signatures", SECTION_STYLE),
        _signature_block(c),
    ]


def generate_complaints_report(records: Sequence[ComplaintRecord]) -> bytes:
    """Build the landscape report, one page per complaint, and return the PDF bytes."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=PAGE_SIZE,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title="Complaints Report",
    )

    story: List = [Paragraph("Complaints Report", TITLE_STYLE)]
    if not records:
        story.append(_para("No complaints have been submitted yet.", BODY_STYLE))

    for index, complaint in enumerate(records):
        if index > 0:
            story.append(PageBreak())
        story.extend(_complaint_section(complaint))

    doc.build(story)
    return buf.getvalue()
