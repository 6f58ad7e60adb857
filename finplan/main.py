"""FastAPI application entrypoint."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finplan.api.router import api_router
from finplan.core.config import get_settings
from finplan.core.errors import (
    EmployeeNotFound,
    FinplanError,
    ForecastAdjustmentUnavailable,
    InvalidAsOfMonth,
    InvalidCutoffMonth,
    InvalidMonthRange,
    PartialWriteFailure,
    PlanningCopyUnavailable,
)
from finplan.core.logging_config import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[FinplanError], int] = {
    InvalidCutoffMonth: 422,
    InvalidMonthRange: 422,
    InvalidAsOfMonth: 422,
    EmployeeNotFound: 404,
    ForecastAdjustmentUnavailable: 409,
    PlanningCopyUnavailable: 409,
    PartialWriteFailure: 500,
}


def _status_code_for(exc: FinplanError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


async def handle_domain_error(request: Request, exc: FinplanError) -> JSONResponse:
    status_code = _status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, status_code, exc)
    content: dict[str, object] = {"detail": str(exc)}
    if isinstance(exc, PartialWriteFailure):
        content["months_written"] = exc.months_written
    return JSONResponse(status_code=status_code, content=content)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(FinplanError, handle_domain_error)
    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/", tags=["system"])
    def root() -> dict[str, str]:
        return {"service": settings.app_name, "status": "running"}

    return app


app = create_app()
