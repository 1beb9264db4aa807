"""Export of stored result rows to a single-sheet Excel workbook."""

import logging
import os
import re
import tempfile
from decimal import Decimal
from io import BytesIO
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font

from app.core.exceptions import ExportError
from app.schemas.exam import EXPORT_COLUMNS

logger = logging.getLogger(__name__)

SHEET_TITLE = "Exam Results"
COLUMN_WIDTHS = {
    "A": 15,  # student_id
    "B": 15,  # mobile_number
    "C": 12,  # total_mark
    "D": 12,  # scored_mark
    "E": 10,  # status
}


def _mark_value(value: Decimal | None) -> Any:
    if value is None:
        return ""
    value = Decimal(str(value))
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def project_row(row: Any) -> dict[str, Any]:
    """Keep only the five exported fields; absent marks become ''."""
    return {
        "student_id": row.student_id,
        "mobile_number": row.mobile_number,
        "total_mark": _mark_value(row.total_mark),
        "scored_mark": _mark_value(row.scored_mark),
        "status": row.status,
    }


def build_results_workbook(rows: list[Any]) -> bytes:
    """Render rows, in the given order, as .xlsx bytes."""
    try:
        wb = Workbook()
        ws = wb.active
        ws.title = SHEET_TITLE

        header_font = Font(bold=True)
        for col_idx, header in enumerate(EXPORT_COLUMNS, start=1):
            ws.cell(row=1, column=col_idx, value=header).font = header_font

        for row_idx, row in enumerate(rows, start=2):
            projected = project_row(row)
            for col_idx, column in enumerate(EXPORT_COLUMNS, start=1):
                value = projected[column]
                # '' is written as a truly empty cell
                ws.cell(row=row_idx, column=col_idx, value=None if value == "" else value)

        for col, width in COLUMN_WIDTHS.items():
            ws.column_dimensions[col].width = width

        output = BytesIO()
        wb.save(output)
        return output.getvalue()
    except Exception as e:
        raise ExportError(f"Failed to export Excel: {str(e)}")


def write_results_workbook(rows: list[Any], path: str | Path) -> Path:
    """Write the workbook to ``path``; the file appears only once complete."""
    path = Path(path)
    content = build_results_workbook(rows)

    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as handle:
            tmp_name = handle.name
            handle.write(content)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ExportError(f"Failed to export Excel: {str(e)}")

    logger.info(f"[EXPORT] Wrote {len(rows)} results to {path}")
    return path


def export_filename(title: str | None) -> str:
    """Download name for an exam's export, e.g. ``Midterm-2025-results.xlsx``."""
    base = re.sub(r"[^A-Za-z0-9._-]+", "-", (title or "").strip()).strip("-.")
    return f"{base or 'exam'}-results.xlsx"
