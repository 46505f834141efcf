"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_ledger.api.routes import (
    components_router,
    health_router,
    ledgers_router,
    periods_router,
    reports_router,
)
from payroll_ledger.config import get_settings
from payroll_ledger.database import dispose_db, init_db
from payroll_ledger.directory import EmployeeDirectory, InMemoryEmployeeDirectory
from payroll_ledger.exceptions import (
    AuditImmutabilityError,
    ClosedPeriodError,
    DuplicatePayrollError,
    InvalidTransitionError,
    NotFoundError,
    PayrollError,
    PayrollValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first match wins
ERROR_STATUS: list[tuple[type[PayrollError], int]] = [
    (PayrollValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicatePayrollError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (ClosedPeriodError, status.HTTP_409_CONFLICT),
    (AuditImmutabilityError, status.HTTP_409_CONFLICT),
]


def status_for(exc: PayrollError) -> int:
    """HTTP status code for a domain error."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    init_db()
    yield
    # Shutdown
    await dispose_db()


def create_app(directory: EmployeeDirectory | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    ``directory`` is the employee lookup used for calculations. When omitted
    an empty in-memory directory is installed.
    """
    settings = get_settings()
    app = FastAPI(
        title="Payroll Ledger Engine API",
        description="Payroll calculation and ledger lifecycle",
        version=settings.engine_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.directory = directory if directory is not None else InMemoryEmployeeDirectory()

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_error_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Translate domain errors into {"detail", "code"} bodies."""
        status_code = status_for(exc)
        logger.info(
            "%s %s failed with %s: %s",
            request.method,
            request.url.path,
            exc.code,
            exc.message,
        )
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
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
    app.include_router(ledgers_router, prefix="/api/v1")
    app.include_router(periods_router, prefix="/api/v1")
    app.include_router(components_router, prefix="/api/v1")
    app.include_router(reports_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
