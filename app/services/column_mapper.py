"""Header alias mapping from raw spreadsheet rows to canonical result rows."""

from decimal import Decimal
from typing import Any

from app.models.exam import DEFAULT_STATUS
from app.schemas.exam import NUMBER_TEXT_PATTERN, CanonicalResultRow

# Accepted header spellings per canonical field, in lookup order
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "student_id": ("student_id", "STUDENTID", "studentid", "Student ID"),
    "mobile_number": ("mobile_number", "mobilenumber", "MOBILENUMBER", "mobile", "Mobile Number"),
    "total_mark": ("total_mark", "TOTAL MARK", "TOTAL_MARK", "total mark", "Total Mark"),
    "scored_mark": (
        "scored_mark",
        "SCOREDMARKS",
        "SCOREDMAKRS",  # misspelling found in real uploads
        "scoredmarks",
        "scored mark",
        "Scored Mark",
    ),
    "status": ("status", "STATUS", "Status"),
}


def lookup(raw: dict[str, Any], field: str) -> Any:
    """Return the first non-missing cell among the field's aliases, else None."""
    for alias in COLUMN_ALIASES[field]:
        value = raw.get(alias)
        if value is not None:
            return value
    return None


def to_number(value: Any) -> Decimal | None:
    """Lenient numeric coercion.

    Blank or missing cells and anything that does not parse as a finite
    number become None instead of raising.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        number = Decimal(str(value))
        return number if number.is_finite() else None
    text = str(value).strip()
    # ASCII digits only, no "_" grouping
    if not NUMBER_TEXT_PATTERN.fullmatch(text):
        return None
    return Decimal(text)


def to_text(value: Any) -> str:
    """Stringify a cell, trimming it.

    Spreadsheets store long digit strings such as phone numbers as floats,
    so integral floats lose their ``.0``.
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def map_row(raw: dict[str, Any]) -> CanonicalResultRow:
    """Translate one raw tabular row into a canonical result row."""
    return CanonicalResultRow(
        student_id=to_text(lookup(raw, "student_id")),
        mobile_number=to_text(lookup(raw, "mobile_number")),
        total_mark=to_number(lookup(raw, "total_mark")),
        scored_mark=to_number(lookup(raw, "scored_mark")),
        status=to_text(lookup(raw, "status")) or DEFAULT_STATUS,
    )


def map_rows(raws: list[dict[str, Any]]) -> list[CanonicalResultRow]:
    return [map_row(raw) for raw in raws]
