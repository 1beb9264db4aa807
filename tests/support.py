"""Helpers for building test spreadsheets."""

from __future__ import annotations

from io import BytesIO
from typing import Any

from openpyxl import Workbook

RESULT_HEADERS = ["student_id", "mobile_number", "total_mark", "scored_mark", "status"]


def build_workbook(rows: list[list[Any]], headers: list[str] | None = None) -> bytes:
    """Render a header row plus data rows as .xlsx bytes."""
    wb = Workbook()
    ws = wb.active
    ws.append(headers if headers is not None else RESULT_HEADERS)
    for row in rows:
        ws.append(row)
    output = BytesIO()
    wb.save(output)
    return output.getvalue()


def valid_row(student_id: str = "S1", mobile_number: str = "9876543210") -> list[Any]:
    return [student_id, mobile_number, 100, 85, "Pass"]
