"""Exam and result schemas."""

import re
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import field_validator

from app.models.exam import DEFAULT_STATUS
from app.schemas.common import BaseSchema, TimestampSchema
from app.schemas.upload import BatchStatus, RowErrorResponse

# Prefix of client-generated ids for rows not yet in the store
PLACEHOLDER_ID_PREFIX = "temp-"

EXPORT_COLUMNS = ("student_id", "mobile_number", "total_mark", "scored_mark", "status")

# Plain decimal notation with ASCII digits, e.g. "85", "-2.5", ".5", "1e2"
NUMBER_TEXT_PATTERN = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


# ==========================================
# Result Row Schemas
# ==========================================

class CanonicalResultRow(BaseSchema):
    """The five-field normalized representation of one result."""

    student_id: str = ""
    mobile_number: str = ""
    total_mark: Decimal | None = None
    scored_mark: Decimal | None = None
    status: str = DEFAULT_STATUS

    @field_validator("student_id", "mobile_number", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("total_mark", "scored_mark", mode="before")
    @classmethod
    def check_mark_text(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        if isinstance(v, str) and not NUMBER_TEXT_PATTERN.fullmatch(v.strip()):
            raise ValueError("must be a number written with the digits 0-9")
        return v

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_STATUS
        return v


class ExamResultResponse(CanonicalResultRow, TimestampSchema):
    """Stored result row."""

    id: int
    exam_id: int


class EditableResultRow(CanonicalResultRow):
    """A row from the table editor.

    New rows carry a placeholder id (``temp-...``) or ``is_new``; existing rows
    carry the id the store assigned.
    """

    id: str
    is_new: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def is_placeholder(self) -> bool:
        return self.is_new or self.id.startswith(PLACEHOLDER_ID_PREFIX)


class ResultSaveRequest(BaseSchema):
    """Full edited row set for one exam."""

    rows: list[EditableResultRow]


class SaveResult(BaseSchema):
    """Outcome of saving an edited row set."""

    status: BatchStatus
    inserted_rows: int = 0
    updated_rows: int = 0
    errors: list[RowErrorResponse] = []
    rows: list[ExamResultResponse] = []
    message: str


class UploadPreview(BaseSchema):
    """Parsed and validated upload that has not been saved."""

    total_rows: int
    rows: list[CanonicalResultRow] = []
    errors: list[RowErrorResponse] = []
    message: str


# ==========================================
# Exam Schemas
# ==========================================

class ExamResponse(TimestampSchema):
    """Exam response schema."""

    id: int
    title: str
    exam_date: date | None


class ExamWithCount(ExamResponse):
    """Exam with the number of stored results."""

    result_count: int = 0


class ResultLookupResponse(BaseSchema):
    """Results matching one mobile number within an exam."""

    exam: ExamResponse
    mobile_number: str
    results: list[ExamResultResponse]
