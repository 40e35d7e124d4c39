"""Exception handlers for structured error responses."""

import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from ..exceptions import ErrorCode, FoldSnapException

logger = logging.getLogger(__name__)


async def foldsnap_exception_handler(request: Request, exc: FoldSnapException) -> JSONResponse:
    """
    Convert a FoldSnapException into its JSON error body.

    Caller-input errors are expected traffic, so they log at WARNING.

    Args:
        request: FastAPI request object
        exc: FoldSnapException instance

    Returns:
        JSONResponse with error details
    """
    logger.warning(
        f"FoldSnapException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are plain invalid arguments."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": ErrorCode.INVALID_ARGUMENT.value,
            "message": "Invalid request parameters.",
            "details": {"errors": errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything the folder layer did not anticipate (store outages, bugs) becomes a 500."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": ErrorCode.SERVER_ERROR.value,
            "message": "Internal server error.",
            "details": {},
        },
    )
