"""Exam service for result lookup, table edits and export."""

import logging

from app.core.exceptions import NotFoundError, ValidationError
from app.models.exam import Exam
from app.schemas.exam import (
    EditableResultRow,
    ExamResponse,
    ExamResultResponse,
    ExamWithCount,
    ResultLookupResponse,
    SaveResult,
)
from app.schemas.upload import BatchStatus
from app.services.export import build_results_workbook, export_filename
from app.services.row_validator import validate_rows
from app.services.store import ResultStore

logger = logging.getLogger(__name__)


class ExamService:
    """Exam and result management service."""

    def __init__(self, store: ResultStore):
        self.store = store

    def get_exam(self, exam_id: int) -> Exam:
        """Get exam by ID."""
        exam = self.store.get_exam(exam_id)
        if not exam:
            raise NotFoundError("Exam", str(exam_id))
        return exam

    def list_exams(self) -> list[ExamWithCount]:
        """All exams, latest exam date first, with their result counts."""
        exams = self.store.list_exams_by_date()
        counts = self.store.count_results_by_exam()
        return [
            ExamWithCount(
                id=exam.id,
                title=exam.title,
                exam_date=exam.exam_date,
                created_at=exam.created_at,
                updated_at=exam.updated_at,
                result_count=counts.get(exam.id, 0),
            )
            for exam in exams
        ]

    def delete_exam(self, exam_id: int) -> None:
        self.get_exam(exam_id)
        self.store.delete_exam(exam_id)
        logger.info(f"[EXAM] Deleted exam {exam_id} and its results")

    def list_results(self, exam_id: int) -> list[ExamResultResponse]:
        self.get_exam(exam_id)
        return [ExamResultResponse.model_validate(r) for r in self.store.list_results(exam_id)]

    def lookup(self, exam_id: int, mobile_number: str) -> ResultLookupResponse:
        """Results of one exam whose mobile number equals the trimmed input."""
        mobile_number = (mobile_number or "").strip()
        if not mobile_number:
            raise ValidationError("Mobile number is required")

        exam = self.get_exam(exam_id)
        results = self.store.find_results_by_mobile(exam_id, mobile_number)
        logger.debug(f"[RESULT LOOKUP] exam={exam_id} matched {len(results)} rows")

        return ResultLookupResponse(
            exam=ExamResponse.model_validate(exam),
            mobile_number=mobile_number,
            results=[ExamResultResponse.model_validate(r) for r in results],
        )

    def delete_result(self, exam_id: int, result_id: int) -> None:
        result = self.store.get_result(result_id)
        if not result or result.exam_id != exam_id:
            raise NotFoundError("Exam result", str(result_id))
        self.store.delete_result(result_id)

    def save_results(self, exam_id: int, rows: list[EditableResultRow]) -> SaveResult:
        """
        Reconcile an edited row set with the store.
        STRICT: any invalid row rejects the whole save.
        New rows are inserted as one batch, existing rows replaced by id as
        a second batch, and the exam's rows are then reloaded from the store.
        """
        self.get_exam(exam_id)

        errors = validate_rows(rows, allow_empty=True)
        if errors:
            logger.warning(f"[RESULT SAVE] exam={exam_id} rejected with {len(errors)} errors")
            return SaveResult(
                status=BatchStatus.FAILED,
                errors=[error.to_response() for error in errors],
                message=f"Validation failed: found {len(errors)} error(s) in the data",
            )

        new_rows = [row for row in rows if row.is_placeholder]
        existing_rows = [(self._store_id(row), row) for row in rows if not row.is_placeholder]

        owners = self.store.get_result_ids([result_id for result_id, _ in existing_rows])
        for result_id, _ in existing_rows:
            if owners.get(result_id, exam_id) != exam_id:
                raise NotFoundError("Exam result", str(result_id))

        if new_rows:
            self.store.insert_results(exam_id, new_rows)
        if existing_rows:
            self.store.upsert_results(exam_id, existing_rows)

        reloaded = self.store.list_results(exam_id)
        logger.info(
            f"[RESULT SAVE] exam={exam_id} inserted={len(new_rows)} updated={len(existing_rows)}"
        )
        return SaveResult(
            status=BatchStatus.SUCCESS,
            inserted_rows=len(new_rows),
            updated_rows=len(existing_rows),
            rows=[ExamResultResponse.model_validate(r) for r in reloaded],
            message=f"Updated {len(new_rows) + len(existing_rows)} record(s)",
        )

    def export_results(self, exam_id: int) -> tuple[str, bytes]:
        """Reload an exam's rows and render them as a workbook."""
        exam = self.get_exam(exam_id)
        rows = self.store.list_results(exam_id)
        return export_filename(exam.title), build_results_workbook(rows)

    @staticmethod
    def _store_id(row: EditableResultRow) -> int:
        # ASCII digits only
        if not (row.id.isascii() and row.id.isdigit()):
            raise ValidationError(f"Invalid result id: {row.id}", details={"id": row.id})
        return int(row.id)
