"""Exam and exam result models."""

import enum
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.base import IDMixin, IdType, TimestampMixin

DEFAULT_STATUS = "Pending"

# Marks are stored as NUMERIC(10, 2)
MARK_PRECISION = 10
MARK_SCALE = 2


class ResultStatus(str, enum.Enum):
    """Closed set of result statuses used for reporting."""

    PASS = "Pass"
    FAIL = "Fail"
    PENDING = "Pending"

    @classmethod
    def classify(cls, text: str | None) -> "ResultStatus | None":
        """Map stored status text onto the closed set.

        Blank text is Pending. Text that is not exactly one of the members
        (ignoring case and surrounding space) returns None.
        """
        normalized = (text or "").strip().lower()
        if not normalized:
            return cls.PENDING
        for member in cls:
            if member.value.lower() == normalized:
                return member
        return None


class Exam(Base, IDMixin, TimestampMixin):
    """A named exam owning its result rows."""

    __tablename__ = "exams"

    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    exam_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)

    # Relationships
    results: Mapped[list["ExamResult"]] = relationship(
        "ExamResult",
        back_populates="exam",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, title={self.title})>"


class ExamResult(Base, IDMixin, TimestampMixin):
    """One student's outcome in one exam."""

    __tablename__ = "exam_results"

    exam_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(String(100), nullable=False)
    mobile_number: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    total_mark: Mapped[Decimal | None] = mapped_column(
        Numeric(MARK_PRECISION, MARK_SCALE), nullable=True
    )
    scored_mark: Mapped[Decimal | None] = mapped_column(
        Numeric(MARK_PRECISION, MARK_SCALE), nullable=True
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_STATUS)

    # Relationships
    exam: Mapped["Exam"] = relationship("Exam", back_populates="results")

    def __repr__(self) -> str:
        return f"<ExamResult(exam_id={self.exam_id}, student_id={self.student_id})>"
