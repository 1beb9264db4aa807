"""Exam management and result lookup endpoints."""

from io import BytesIO

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from app.core.config import XLSX_CONTENT_TYPE
from app.core.dependencies import AdminSession, Store
from app.schemas.common import MessageResponse
from app.schemas.exam import (
    ExamResponse,
    ExamResultResponse,
    ExamWithCount,
    ResultLookupResponse,
    ResultSaveRequest,
    SaveResult,
)
from app.services.exam import ExamService

router = APIRouter()


@router.get("", response_model=list[ExamWithCount])
def list_exams(store: Store):
    """
    List exams, latest exam date first, with result counts.
    """
    return ExamService(store).list_exams()


@router.get("/{exam_id}", response_model=ExamResponse)
def get_exam(exam_id: int, store: Store):
    """
    Get exam by ID.
    """
    return ExamResponse.model_validate(ExamService(store).get_exam(exam_id))


@router.get("/{exam_id}/lookup", response_model=ResultLookupResponse)
def lookup_results(
    exam_id: int,
    store: Store,
    mobile_number: str = Query(..., description="Registered 10-digit mobile number"),
):
    """
    Look up a student's results in an exam by mobile number (exact match).
    """
    return ExamService(store).lookup(exam_id, mobile_number)


@router.delete("/{exam_id}", response_model=MessageResponse)
def delete_exam(exam_id: int, context: AdminSession, store: Store):
    """
    Delete an exam and all of its results.
    Requires admin role.
    """
    ExamService(store).delete_exam(exam_id)
    return MessageResponse(message="Exam deleted successfully")


@router.get("/{exam_id}/results", response_model=list[ExamResultResponse])
def list_exam_results(exam_id: int, context: AdminSession, store: Store):
    """
    List every result row of an exam.
    Requires admin role.
    """
    return ExamService(store).list_results(exam_id)


@router.put("/{exam_id}/results", response_model=SaveResult)
def save_exam_results(
    exam_id: int,
    request: ResultSaveRequest,
    context: AdminSession,
    store: Store,
):
    """
    Save the edited result table of an exam.

    - Rows with a ``temp-`` id (or ``is_new``) are inserted
    - Other rows replace the stored row with the same id
    - Any invalid row rejects the whole save
    - Returns the exam's rows as reloaded from the store
    Requires admin role.
    """
    return ExamService(store).save_results(exam_id, request.rows)


@router.delete("/{exam_id}/results/{result_id}", response_model=MessageResponse)
def delete_exam_result(
    exam_id: int,
    result_id: int,
    context: AdminSession,
    store: Store,
):
    """
    Delete one result row.
    Requires admin role.
    """
    ExamService(store).delete_result(exam_id, result_id)
    return MessageResponse(message="Result deleted successfully")


@router.get("/{exam_id}/export")
def export_exam_results(exam_id: int, context: AdminSession, store: Store):
    """
    Download an exam's results as an Excel file.
    Requires admin role.
    """
    filename, content = ExamService(store).export_results(exam_id)

    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
