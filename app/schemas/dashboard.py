"""Dashboard schemas."""

from decimal import Decimal

from app.schemas.common import BaseSchema
from app.schemas.exam import ExamResponse


class StatusBreakdown(BaseSchema):
    """Result counts per status."""

    passed: int = 0
    failed: int = 0
    pending: int = 0
    unrecognized: int = 0


class DashboardStats(BaseSchema):
    """Admin dashboard statistics."""

    total_exams: int
    total_results: int
    unique_students: int
    statuses: StatusBreakdown
    average_percentage: Decimal
    total_marks_awarded: Decimal
    recent_exams: list[ExamResponse] = []
