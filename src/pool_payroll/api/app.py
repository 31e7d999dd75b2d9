"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pool_payroll import __version__
from pool_payroll.api.routes import (
    employees_router,
    health_router,
    pay_periods_router,
    payouts_router,
    payroll_records_router,
    time_entries_router,
)
from pool_payroll.database import dispose_db, init_db
from pool_payroll.errors import (
    DataAccessError,
    NotFoundError,
    PayrollError,
    StateConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: list[tuple[type[PayrollError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StateConflictError, status.HTTP_409_CONFLICT),
    (DataAccessError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def status_for(exc: PayrollError) -> int:
    """HTTP status code for a domain error."""
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Pool Payroll API",
        description="Payroll and daily percentage payouts for a pool sales company",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_exception_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Map domain errors to status codes."""
        code = status_for(exc)
        if isinstance(exc, DataAccessError):
            logger.exception("Data access failed on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=code,
                content={
                    "detail": "The database is unavailable, try again",
                    "code": exc.code,
                    "context": None,
                },
            )
        return JSONResponse(
            status_code=code,
            content={
                "detail": exc.message,
                "code": exc.code,
                "context": jsonable_encoder(exc.context) or None,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    for router in (
        employees_router,
        time_entries_router,
        pay_periods_router,
        payouts_router,
        payroll_records_router,
    ):
        app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
