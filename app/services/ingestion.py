"""Exam spreadsheet ingestion: parse, map, validate, then commit as one batch."""

import logging
from datetime import date

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import StoreError, UploadError
from app.schemas.exam import CanonicalResultRow, UploadPreview
from app.schemas.upload import BatchStatus, IngestionResult
from app.services.column_mapper import map_rows
from app.services.row_validator import validate_rows
from app.services.spreadsheet import parse_excel
from app.services.store import ResultStore

logger = logging.getLogger(__name__)

# Rows shown back to the uploader before the exam is created
PREVIEW_ROWS = 5


class IngestionService:
    """Turns an uploaded spreadsheet into a new exam with its results.

    Nothing is written unless every row passes validation. If inserting the
    rows fails after the exam was created, the exam is deleted again so an
    exam never exists without its rows.
    """

    def __init__(self, store: ResultStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or default_settings

    def check_file(self, file_content: bytes, content_type: str | None) -> None:
        """Reject files of the wrong type or size before any parsing."""
        media_type = (content_type or "").split(";")[0].strip().lower()
        if media_type not in self.settings.ALLOWED_CONTENT_TYPES:
            raise UploadError(
                "Invalid file type. Please upload an Excel file (.xlsx or .xls)",
                details={"content_type": content_type},
            )

        if len(file_content) > self.settings.max_upload_size_bytes:
            raise UploadError(
                f"File size exceeds {self.settings.MAX_UPLOAD_SIZE_MB}MB limit",
                details={"file_size": len(file_content)},
            )

    def read_file(self, file_content: bytes, content_type: str | None) -> list[CanonicalResultRow]:
        """Check, parse and map an uploaded file into canonical rows."""
        self.check_file(file_content, content_type)
        return map_rows(parse_excel(file_content))

    def preview(
        self,
        file_content: bytes,
        content_type: str | None,
        file_name: str | None = None,
    ) -> UploadPreview:
        """Parse, map and validate a file without writing anything."""
        rows = self.read_file(file_content, content_type)
        errors = validate_rows(rows)
        logger.info(
            f"[EXAM UPLOAD] Preview of {file_name}: {len(rows)} rows, {len(errors)} errors"
        )

        return UploadPreview(
            total_rows=len(rows),
            rows=rows[:PREVIEW_ROWS],
            errors=[error.to_response() for error in errors],
            message=f"Found {len(rows)} records",
        )

    def ingest(
        self,
        file_content: bytes,
        content_type: str | None,
        title: str,
        exam_date: date | None = None,
        file_name: str | None = None,
    ) -> IngestionResult:
        """Run the full upload pipeline for one file."""
        title = (title or "").strip()
        if not title:
            raise UploadError("Please provide an exam title")

        logger.info(f"[EXAM UPLOAD] Starting upload for file: {file_name}, title: {title!r}")
        logger.debug(f"[EXAM UPLOAD] File size: {len(file_content)} bytes, content type: {content_type}")

        rows = self.read_file(file_content, content_type)
        errors = validate_rows(rows)
        if errors:
            logger.warning(f"[EXAM UPLOAD] Validation failed with {len(errors)} errors; nothing was saved")
            return IngestionResult(
                status=BatchStatus.FAILED,
                total_rows=len(rows),
                errors=[error.to_response() for error in errors],
                message=f"Validation failed: found {len(errors)} error(s) in the data",
            )

        exam = self.store.create_exam(title, exam_date)
        try:
            inserted = self.store.insert_results(exam.id, rows)
        except StoreError as e:
            logger.error(f"[EXAM UPLOAD] Inserting results failed, removing exam {exam.id}: {e.message}")
            self._discard_exam(exam.id)
            raise

        logger.info(f"[EXAM UPLOAD] Upload complete - exam {exam.id} with {len(inserted)} results")
        return IngestionResult(
            status=BatchStatus.SUCCESS,
            exam_id=exam.id,
            total_rows=len(rows),
            inserted_rows=len(inserted),
            message=f"Created exam with {len(inserted)} results",
        )

    def _discard_exam(self, exam_id: int) -> None:
        try:
            self.store.delete_exam(exam_id)
        except StoreError as e:
            logger.exception(f"[EXAM UPLOAD] Could not remove exam {exam_id} after failed insert")
            raise StoreError(
                f"Results were not saved and exam {exam_id} could not be removed: {e.message}",
                details={"exam_id": exam_id},
            ) from e
