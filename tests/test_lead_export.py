"""
Tests for the lead workbook export.
"""
from datetime import datetime
from io import BytesIO

from openpyxl import load_workbook

from app.models import ContactMessage
from app.utils.lead_export import LEAD_COLUMNS, build_leads_workbook, format_date, format_datetime


def test_format_date():
    assert format_date("2026-05-01") == "01/05/2026"
    assert format_date(datetime(2026, 12, 31, 18, 30)) == "31/12/2026"
    assert format_date("after the holidays") == "after the holidays"
    assert format_date(None) == ""


def test_format_datetime():
    assert format_datetime(datetime(2026, 3, 4, 9, 5)) == "04/03/2026 09:05"
    assert format_datetime(None) == ""


def test_build_leads_workbook():
    leads = [
        ContactMessage(
            name="Dana",
            email="dana@example.com",
            phone="050-1234567",
            event_date="2026-05-01",
            design_id="FLORAL-003",
            message="Rose arch please",
            created_at=datetime(2026, 4, 1, 14, 0),
        ),
        ContactMessage(name="Avi", email="avi@example.com", message="Balloons"),
    ]

    sheet = load_workbook(BytesIO(build_leads_workbook(leads)))["Leads"]
    rows = list(sheet.iter_rows(values_only=True))

    assert list(rows[0]) == LEAD_COLUMNS
    assert rows[1] == (
        "Dana", "dana@example.com", "050-1234567", "01/05/2026", "FLORAL-003", "Rose arch please", "01/04/2026 14:00"
    )
    assert rows[2][0] == "Avi"
    assert sheet["A1"].font.bold


def test_empty_export_has_header_only():
    sheet = load_workbook(BytesIO(build_leads_workbook([])))["Leads"]
    assert sheet.max_row == 1
