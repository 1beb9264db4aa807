"""Main FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import engine
from app.core.exceptions import AppException, StoreError
from app.core.scheduler import start_scheduler, stop_scheduler
from app.middleware.logging import RequestLoggingMiddleware
from app.schemas.common import error_body

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Library loggers stay at WARNING even in debug mode
for noisy in ("sqlalchemy", "sqlalchemy.engine", "python_multipart", "apscheduler", "openpyxl"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

API_DESCRIPTION = """
Exam Results Portal API.

## Features

- **Excel Upload**: Admins create an exam from a spreadsheet of results
- **Strict Validation**: A file with any invalid row is rejected as a whole
- **Result Lookup**: Students find their results by mobile number
- **Table Editing**: Admins add, edit and delete result rows
- **Excel Export**: Download an exam's results as a spreadsheet

## Authentication

Admin endpoints require an `Authorization: Bearer <token>` header obtained
from `/auth/login`. Result lookup is public.

## Errors

Every error body has the shape
`{"success": false, "error": {"code": ..., "message": ..., "details": {}}}`.
"""


def jsonable_errors(exc: RequestValidationError) -> list:
    """Validation errors with non-JSON context (e.g. exceptions) stringified."""
    return jsonable_encoder(exc.errors(), custom_encoder={Exception: str})


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    yield
    logger.info("Shutting down application")
    stop_scheduler()
    engine.dispose()


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if isinstance(exc, StoreError):
            logger.error(f"[STORE] {request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content=error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                {"errors": jsonable_errors(exc)},
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse(
            status_code=500,
            content=error_body("INTERNAL_ERROR", "An internal server error occurred"),
        )


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=API_DESCRIPTION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
        }

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return app


app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
