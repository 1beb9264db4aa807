"""Business-rule validation for canonical result rows."""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from app.models.exam import MARK_PRECISION, MARK_SCALE
from app.schemas.exam import CanonicalResultRow
from app.schemas.upload import RowErrorResponse

MOBILE_NUMBER_PATTERN = re.compile(r"[0-9]{10}")

# Row index used for errors that concern the batch as a whole
BATCH_ROW = 0

# Smallest mark the mark columns cannot hold
MARK_LIMIT = Decimal(10) ** (MARK_PRECISION - MARK_SCALE)


@dataclass(frozen=True)
class RowError:
    """A rule violation tagged with its 1-based row index."""

    row: int
    message: str

    def __str__(self) -> str:
        if self.row == BATCH_ROW:
            return self.message
        return f"Row {self.row}: {self.message}"

    def to_response(self) -> RowErrorResponse:
        return RowErrorResponse(row=self.row, message=self.message)


def is_valid_mobile_number(value: str) -> bool:
    return bool(MOBILE_NUMBER_PATTERN.fullmatch(value.strip()))


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, Decimal):
        return value.is_finite()
    if isinstance(value, (int, float)):
        return Decimal(str(value)).is_finite()
    return False


def _format_mark(value: Decimal) -> str:
    # 80.00 -> "80", 72.50 -> "72.5"
    return format(value.normalize(), "f")


def _decimal_places(value: Decimal) -> int:
    # trailing zeros do not count: 85.50 has one place
    _, digits, exponent = value.as_tuple()
    if not any(digits):
        return 0
    while exponent < 0 and digits[-1] == 0:
        digits = digits[:-1]
        exponent += 1
    return max(-exponent, 0)


def _check_mark(label: str, value: Any) -> list[str]:
    if value is None:
        return []
    if not _is_number(value):
        return [f"{label} must be a number"]
    if value < 0:
        return [f"{label} cannot be negative"]

    mark = Decimal(str(value))
    if _decimal_places(mark) > MARK_SCALE:
        return [f"{label} cannot have more than {MARK_SCALE} decimal places"]
    if mark >= MARK_LIMIT:
        return [f"{label} must be less than {MARK_LIMIT}"]
    return []


def validate_row(row: CanonicalResultRow, index: int) -> list[RowError]:
    """Collect every rule the row breaks, in rule order."""
    messages: list[str] = []

    if not row.student_id.strip():
        messages.append("Student ID is required")

    mobile = row.mobile_number.strip()
    if not mobile:
        messages.append("Mobile number is required")
    elif not is_valid_mobile_number(mobile):
        messages.append("Invalid mobile number format (should be 10 digits)")

    messages.extend(_check_mark("Total mark", row.total_mark))
    messages.extend(_check_mark("Scored mark", row.scored_mark))

    total, scored = row.total_mark, row.scored_mark
    if _is_number(total) and _is_number(scored) and scored > total:
        messages.append(
            f"Scored mark ({_format_mark(Decimal(str(scored)))}) cannot be greater "
            f"than total mark ({_format_mark(Decimal(str(total)))})"
        )

    return [RowError(row=index, message=message) for message in messages]


def validate_rows(rows: list[CanonicalResultRow], allow_empty: bool = False) -> list[RowError]:
    """Validate a whole batch; an empty list means it may be persisted."""
    if not rows and not allow_empty:
        return [RowError(row=BATCH_ROW, message="No data found in the Excel file")]

    errors: list[RowError] = []
    for index, row in enumerate(rows, start=1):
        errors.extend(validate_row(row, index))
    return errors
