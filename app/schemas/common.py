"""Shared schema base and the API error envelope."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Reads ORM rows directly and trims surrounding whitespace from text."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class TimestampSchema(BaseSchema):
    created_at: datetime
    updated_at: datetime


class ErrorDetail(BaseSchema):
    code: str
    message: str
    details: dict[str, Any] = {}


class ErrorResponse(BaseSchema):
    """Body of every non-2xx response, from AppException and the app handlers."""

    success: bool = False
    error: ErrorDetail


class MessageResponse(BaseSchema):
    """Confirmation for logout and deletes."""

    message: str


def error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict:
    return ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details or {})
    ).model_dump(mode="json")
