"""
Word document generation for external sharing reports.

create_sharing_report() builds the optional DOCX report: a summary table,
the threshold banner and the sharing events table. Documents are generated
using python-docx.
"""

from datetime import datetime

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor

from .bundle import ReportBundle
from .models import REPORT_COLUMNS
from .thresholds import Severity


# Columns shown in the Word table; More Info stays in the JSON export
DOCX_COLUMNS = REPORT_COLUMNS[:-1]

BANNER_COLORS = {
    Severity.WARNING: RGBColor(0x9C, 0x6A, 0x00),
    Severity.CRITICAL: RGBColor(0xA4, 0x26, 0x2C),
}


def create_sharing_report(bundle: ReportBundle, generated_at: datetime = None) -> Document:
    """
    Generate the external sharing Word report.

    Args:
        bundle: Aggregated rows for the run
        generated_at: Generation time shown in the header (default: now)

    Returns:
        A python-docx Document object ready to be saved
    """
    generated_at = generated_at or datetime.now()
    doc = Document()

    title = doc.add_heading('External Sharing Report', 0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    doc.add_paragraph(f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}")

    doc.add_heading('Summary', level=1)

    summary_data = [
        ('Date Range', f"{bundle.start.isoformat()} to {bundle.end.isoformat()}"),
        ('Total Records', str(bundle.total)),
        ('Severity', bundle.severity.value),
        ('Warning Threshold', str(bundle.warning_threshold)),
        ('Critical Threshold', str(bundle.critical_threshold)),
    ]

    summary_table = doc.add_table(rows=len(summary_data), cols=2)
    summary_table.style = 'Table Grid'
    for i, (label, value) in enumerate(summary_data):
        summary_table.rows[i].cells[0].text = label
        summary_table.rows[i].cells[1].text = value

    color = BANNER_COLORS.get(bundle.severity)
    if color is not None:
        banner = doc.add_paragraph()
        run = banner.add_run(
            f"{bundle.severity.value.upper()}: {bundle.total} external sharing events found"
        )
        run.bold = True
        run.font.color.rgb = color

    doc.add_heading('Sharing Events', level=1)

    if not bundle.rows:
        doc.add_paragraph("No external sharing events found.")
        return doc

    table = doc.add_table(rows=1, cols=len(DOCX_COLUMNS))
    table.style = 'Table Grid'

    for i, header in enumerate(DOCX_COLUMNS):
        cell = table.rows[0].cells[i]
        cell.text = header
        for paragraph in cell.paragraphs:
            for run in paragraph.runs:
                run.bold = True
                run.font.size = Pt(9)

    for record in bundle.to_records():
        cells = table.add_row().cells
        for i, column in enumerate(DOCX_COLUMNS):
            cells[i].text = str(record.get(column) or '')

    return doc
