"""Database models package."""

from app.models.exam import DEFAULT_STATUS, Exam, ExamResult, ResultStatus
from app.models.user import User, UserRole, UserSession

__all__ = [
    # User
    "User",
    "UserRole",
    "UserSession",
    # Exam
    "Exam",
    "ExamResult",
    "ResultStatus",
    "DEFAULT_STATUS",
]
