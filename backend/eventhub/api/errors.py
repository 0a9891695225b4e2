"""
Maps domain errors to JSON responses: {"error": <code>, "detail": <message>}.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from eventhub.core.errors import DomainError, ErrorCode
from eventhub.core.logging import get_logger

logger = get_logger(__name__)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.warning(
        "domain_error",
        error=exc.code.value,
        detail=exc.message,
        status_code=exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code.value, "detail": exc.message},
    )


async def validation_as_bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed input reported as 400 instead of FastAPI's default 422."""
    errors = exc.errors()
    logger.warning("request_validation_failed", errors=len(errors))
    detail = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in errors
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": ErrorCode.VALIDATION_ERROR.value, "detail": detail},
    )


def register_exception_handlers(app: FastAPI, validation_status_400: bool = False) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    if validation_status_400:
        app.add_exception_handler(RequestValidationError, validation_as_bad_request)
