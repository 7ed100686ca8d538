from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from framework.logging.logger import get_logger
from framework.response import ResponseModel
from typing import Any
from framework.config import settings

logger = get_logger("exception_handler")

class BusinessException(Exception):
    """Base class for business exceptions."""
    def __init__(self, message: str, status_code: int = 200, code: int = 400, detail: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.detail = detail

def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    from .errors import (
        ConfigurationError,
        DeliveryError,
        InfrastructureError,
        StorageError,
        UpstreamError,
    )

    trace_id = getattr(request.state, "trace_id", "unknown")

    if isinstance(exc, BusinessException):
        logger.warning(f"Trace[{trace_id}] - BusinessError: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=ResponseModel.fail(code=exc.code, message=exc.message)
        )

    if isinstance(exc, RequestValidationError):
        logger.error(f"Trace[{trace_id}] - ValidationError: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=ResponseModel.fail(code=422, message="Invalid request parameters", data=exc.errors())
        )

    if isinstance(exc, StorageError):
        # Cause was already logged by the repository layer
        logger.critical(f"Trace[{trace_id}] - StorageError: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ResponseModel.fail(code=500, message="Service temporarily unavailable")
        )

    if isinstance(exc, ConfigurationError):
        logger.critical(f"Trace[{trace_id}] - ConfigurationError: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ResponseModel.fail(code=500, message="Internal server error")
        )

    if isinstance(exc, (DeliveryError, UpstreamError)):
        logger.error(f"Trace[{trace_id}] - {type(exc).__name__}: {exc.message} | cause: {exc.cause!r}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=ResponseModel.fail(code=502, message="Upstream service unavailable")
        )

    if isinstance(exc, InfrastructureError):
        logger.error(f"Trace[{trace_id}] - {type(exc).__name__}: {exc.message}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ResponseModel.fail(code=500, message="Internal server error")
        )

    logger.opt(exception=True).error(f"Trace[{trace_id}] - UncaughtException: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ResponseModel.fail(
            code=500,
            message="System busy, please try again later",
            data={"trace_id": trace_id} if settings.DEBUG else None
        )
    )
