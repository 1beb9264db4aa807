"""Upload endpoints for Excel file processing."""

from datetime import date

from fastapi import APIRouter, File, Form, UploadFile

from app.core.dependencies import AdminSession, Store
from app.core.exceptions import UploadError
from app.schemas.exam import UploadPreview
from app.schemas.upload import IngestionResult
from app.services.ingestion import IngestionService

router = APIRouter()


@router.post("/exams", response_model=IngestionResult)
def upload_exam(
    context: AdminSession,
    store: Store,
    file: UploadFile = File(...),
    title: str = Form(...),
    exam_date: date | None = Form(None),
):
    """
    Create an exam from an Excel file of results.

    STRICT VALIDATION:
    - Every row is validated before anything is saved
    - Any invalid row rejects the whole file; the exam is not created
    - scored_mark must not exceed total_mark
    - Requires admin role

    Expected columns: student_id, mobile_number, total_mark, scored_mark, status
    (common spellings such as "Student ID" or "TOTAL MARK" are accepted)
    """
    if not file.filename:
        raise UploadError("No file provided")

    content = file.file.read()

    service = IngestionService(store)
    return service.ingest(
        file_content=content,
        content_type=file.content_type,
        title=title,
        exam_date=exam_date,
        file_name=file.filename,
    )


@router.post("/exams/preview", response_model=UploadPreview)
def preview_exam_upload(
    context: AdminSession,
    store: Store,
    file: UploadFile = File(...),
):
    """
    Parse and validate an Excel file without saving anything.

    Returns the record count, the first 5 mapped rows and every row error,
    so the file can be checked before it is uploaded.
    Requires admin role.
    """
    if not file.filename:
        raise UploadError("No file provided")

    service = IngestionService(store)
    return service.preview(
        file_content=file.file.read(),
        content_type=file.content_type,
        file_name=file.filename,
    )
