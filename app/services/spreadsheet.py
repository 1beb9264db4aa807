"""Spreadsheet parsing into raw header -> value rows."""

import logging
from io import BytesIO
from typing import Any

import xlrd
from openpyxl import load_workbook

from app.core.exceptions import UploadError

logger = logging.getLogger(__name__)

# Leading bytes of the two container formats
ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _read_xlsx(file_content: bytes) -> list[tuple[Any, ...]]:
    workbook = load_workbook(filename=BytesIO(file_content), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0] if workbook.worksheets else None
        if sheet is None:
            raise UploadError("Excel file has no worksheet")
        return list(sheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def _read_xls(file_content: bytes) -> list[tuple[Any, ...]]:
    book = xlrd.open_workbook(file_contents=file_content)
    if book.nsheets == 0:
        raise UploadError("Excel file has no worksheet")
    sheet = book.sheet_by_index(0)
    return [tuple(sheet.row_values(index)) for index in range(sheet.nrows)]


def read_rows(file_content: bytes) -> list[tuple[Any, ...]]:
    """Read every row of the first sheet as a tuple of cell values."""
    if file_content.startswith(ZIP_SIGNATURE):
        return _read_xlsx(file_content)
    if file_content.startswith(OLE2_SIGNATURE):
        return _read_xls(file_content)
    raise UploadError("Failed to parse Excel file: unrecognized file format")


def parse_excel(file_content: bytes) -> list[dict[str, Any]]:
    """Parse a spreadsheet and return one header -> value dict per data row.

    The first row holds the headers; fully empty data rows are skipped.
    Header text is trimmed but its case is kept, since aliases are
    case-specific.
    """
    try:
        rows = read_rows(file_content)
        logger.debug(f"[EXCEL PARSE] Total raw rows in Excel (including header): {len(rows)}")

        if not rows:
            raise UploadError("Excel file is empty")

        headers = [str(h).strip() if h is not None else "" for h in rows[0]]
        logger.debug(f"[EXCEL PARSE] Detected headers: {headers}")

        data = []
        skipped_empty_rows = 0
        for row in rows[1:]:
            row_dict = {}
            for i, value in enumerate(row):
                if i < len(headers) and headers[i]:
                    row_dict[headers[i]] = value
            if all(_is_blank(v) for v in row_dict.values()):
                skipped_empty_rows += 1
                continue
            data.append(row_dict)

        logger.info(f"[EXCEL PARSE] Summary: {len(data)} data rows extracted, {skipped_empty_rows} empty rows skipped")
        return data

    except UploadError:
        raise
    except Exception as e:
        raise UploadError(f"Failed to parse Excel file: {str(e)}")
