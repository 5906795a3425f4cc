"""
Excel export of contact leads.
"""
from datetime import datetime
from io import BytesIO
from typing import Iterable, Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from app.models import ContactMessage

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

LEAD_COLUMNS = ["Name", "Email", "Phone", "Event Date", "Design ID", "Message", "Created At"]


def format_date(value: Optional[Union[str, datetime]]) -> str:
    """dd/mm/yyyy; unparseable strings are returned unchanged."""
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    return value.strftime("%d/%m/%Y")


def format_datetime(value: Optional[datetime]) -> str:
    """dd/mm/yyyy HH:MM in 24-hour time."""
    if not value:
        return ""
    return value.strftime("%d/%m/%Y %H:%M")


def build_leads_workbook(leads: Iterable[ContactMessage]) -> bytes:
    """
    Render leads as a single-sheet .xlsx file.

    Returns:
        bytes: Workbook content
    """
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "Leads"
    worksheet.append(LEAD_COLUMNS)

    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_alignment = Alignment(horizontal="center", vertical="center")
    for col in range(1, len(LEAD_COLUMNS) + 1):
        cell = worksheet.cell(row=1, column=col)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment

    for lead in leads:
        worksheet.append([
            lead.name or "",
            lead.email or "",
            lead.phone or "",
            format_date(lead.event_date),
            lead.design_id or "",
            lead.message or "",
            format_datetime(lead.created_at),
        ])

    for col, header in enumerate(LEAD_COLUMNS, start=1):
        width = max(
            [len(header)] + [len(str(c.value or "")) for c in worksheet[get_column_letter(col)]]
        )
        worksheet.column_dimensions[get_column_letter(col)].width = min(width + 2, 60)

    output = BytesIO()
    workbook.save(output)
    return output.getvalue()
