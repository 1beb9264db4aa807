"""Upload schemas."""

import enum

from app.schemas.common import BaseSchema


class BatchStatus(str, enum.Enum):
    """Outcome of an all-or-nothing batch."""

    SUCCESS = "success"
    FAILED = "failed"


class RowErrorResponse(BaseSchema):
    """Validation error for one row (1-based; 0 means the whole batch)."""

    row: int
    message: str


class IngestionResult(BaseSchema):
    """Result of an exam spreadsheet upload."""

    status: BatchStatus
    exam_id: int | None = None
    total_rows: int
    inserted_rows: int = 0
    errors: list[RowErrorResponse] = []
    message: str
