"""Main API router aggregating all module routers."""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, dashboard, exams, uploads
from app.schemas.common import ErrorResponse

# Every route may answer with the standard error envelope
api_router = APIRouter(
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)

# Authentication
api_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Authentication"],
)

# Exams and result lookup (lookup is public, management needs admin)
api_router.include_router(
    exams.router,
    prefix="/exams",
    tags=["Exams"],
)

# Uploads (admin)
api_router.include_router(
    uploads.router,
    prefix="/uploads",
    tags=["Uploads"],
)

# Dashboard (admin)
api_router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["Dashboard"],
)
