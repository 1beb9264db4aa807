"""Record store for exams and their result rows."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StoreError
from app.models.exam import Exam, ExamResult
from app.schemas.exam import CanonicalResultRow

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Surface database failures as StoreError carrying the driver's message."""
    try:
        yield
    except SQLAlchemyError as e:
        message = str(getattr(e, "orig", None) or e)
        logger.error(f"[STORE] {operation} failed: {message}")
        raise StoreError(message, details={"operation": operation}) from e


def _result_fields(row: CanonicalResultRow) -> dict:
    return {
        "student_id": row.student_id.strip(),
        "mobile_number": row.mobile_number.strip(),
        "total_mark": row.total_mark,
        "scored_mark": row.scored_mark,
        "status": row.status,
    }


class ResultStore:
    """CRUD verbs over the Exams and Results collections.

    Batch writes run inside a SAVEPOINT, so a failed batch leaves the
    surrounding session usable for compensating work.
    """

    def __init__(self, db: Session):
        self.db = db

    # ==========================================
    # Exams
    # ==========================================

    def create_exam(self, title: str, exam_date: date | None = None) -> Exam:
        exam = Exam(title=title, exam_date=exam_date)
        with _store_errors("create_exam"), self.db.begin_nested():
            self.db.add(exam)
            self.db.flush()
        logger.debug(f"[STORE] Created exam {exam.id} ({exam.title!r})")
        return exam

    def get_exam(self, exam_id: int) -> Exam | None:
        with _store_errors("get_exam"):
            return self.db.get(Exam, exam_id)

    def list_exams_by_date(self) -> list[Exam]:
        """Exams newest first by exam date; undated exams last."""
        with _store_errors("list_exams_by_date"):
            result = self.db.execute(
                select(Exam).order_by(
                    Exam.exam_date.desc().nulls_last(),
                    Exam.created_at.desc(),
                    Exam.id.desc(),
                )
            )
            return list(result.scalars().all())

    def count_exams(self) -> int:
        with _store_errors("count_exams"):
            return self.db.execute(select(func.count(Exam.id))).scalar() or 0

    def recent_exams(self, limit: int = 5) -> list[Exam]:
        with _store_errors("recent_exams"):
            result = self.db.execute(
                select(Exam).order_by(Exam.created_at.desc(), Exam.id.desc()).limit(limit)
            )
            return list(result.scalars().all())

    def delete_exam(self, exam_id: int) -> bool:
        """Delete an exam together with its results."""
        with _store_errors("delete_exam"), self.db.begin_nested():
            self.db.execute(delete(ExamResult).where(ExamResult.exam_id == exam_id))
            deleted = self.db.execute(delete(Exam).where(Exam.id == exam_id)).rowcount
        logger.debug(f"[STORE] Deleted exam {exam_id}: {bool(deleted)}")
        return bool(deleted)

    # ==========================================
    # Results
    # ==========================================

    def insert_results(self, exam_id: int, rows: list[CanonicalResultRow]) -> list[ExamResult]:
        """Insert all rows for an exam as one batch."""
        records = [ExamResult(exam_id=exam_id, **_result_fields(row)) for row in rows]
        with _store_errors("insert_results"), self.db.begin_nested():
            self.db.add_all(records)
            self.db.flush()
        logger.debug(f"[STORE] Inserted {len(records)} results for exam {exam_id}")
        return records

    def upsert_results(
        self,
        exam_id: int,
        rows: list[tuple[int, CanonicalResultRow]],
    ) -> list[ExamResult]:
        """Replace each (id, row) pair in full, inserting ids the store lacks."""
        with _store_errors("upsert_results"), self.db.begin_nested():
            records = [
                self.db.merge(ExamResult(id=result_id, exam_id=exam_id, **_result_fields(row)))
                for result_id, row in rows
            ]
            self.db.flush()
        logger.debug(f"[STORE] Upserted {len(records)} results for exam {exam_id}")
        return records

    def list_results(self, exam_id: int) -> list[ExamResult]:
        with _store_errors("list_results"):
            result = self.db.execute(
                select(ExamResult)
                .where(ExamResult.exam_id == exam_id)
                .order_by(ExamResult.created_at.asc(), ExamResult.id.asc())
            )
            return list(result.scalars().all())

    def list_all_results(self) -> list[ExamResult]:
        with _store_errors("list_all_results"):
            result = self.db.execute(select(ExamResult).order_by(ExamResult.id))
            return list(result.scalars().all())

    def find_results_by_mobile(self, exam_id: int, mobile_number: str) -> list[ExamResult]:
        with _store_errors("find_results_by_mobile"):
            result = self.db.execute(
                select(ExamResult)
                .where(
                    ExamResult.exam_id == exam_id,
                    ExamResult.mobile_number == mobile_number.strip(),
                )
                .order_by(ExamResult.id)
            )
            return list(result.scalars().all())

    def get_result(self, result_id: int) -> ExamResult | None:
        with _store_errors("get_result"):
            return self.db.get(ExamResult, result_id)

    def get_result_ids(self, result_ids: list[int]) -> dict[int, int]:
        """Map each existing result id to the exam that owns it."""
        if not result_ids:
            return {}
        with _store_errors("get_result_ids"):
            result = self.db.execute(
                select(ExamResult.id, ExamResult.exam_id).where(ExamResult.id.in_(result_ids))
            )
            return {row[0]: row[1] for row in result.all()}

    def delete_result(self, result_id: int) -> bool:
        with _store_errors("delete_result"), self.db.begin_nested():
            deleted = self.db.execute(delete(ExamResult).where(ExamResult.id == result_id)).rowcount
        return bool(deleted)

    def count_results(self, exam_id: int) -> int:
        with _store_errors("count_results"):
            return self.db.execute(
                select(func.count(ExamResult.id)).where(ExamResult.exam_id == exam_id)
            ).scalar() or 0

    def count_results_by_exam(self) -> dict[int, int]:
        with _store_errors("count_results_by_exam"):
            result = self.db.execute(
                select(ExamResult.exam_id, func.count(ExamResult.id)).group_by(ExamResult.exam_id)
            )
            return {row[0]: row[1] for row in result.all()}
