import time
import uuid
from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from framework.logging.logger import _current_request

class LoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a trace id per request and logs start/finish with the duration."""

    # Probes hit these constantly; log them at DEBUG
    QUIET_PATHS = frozenset({"/health"})

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get("X-Trace-ID") or uuid.uuid4().hex
        request.state.trace_id = trace_id
        token = _current_request.set(request)
        level = "DEBUG" if request.url.path in self.QUIET_PATHS else "INFO"

        with logger.contextualize(trace_id=trace_id):
            start = time.perf_counter()
            logger.log(
                level,
                f"Request Started | {request.method} {request.url.path} | "
                f"Client: {request.client.host if request.client else 'unknown'}"
            )

            try:
                response = await call_next(request)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start) * 1000
                logger.error(f"Request Failed | Error: {e!r} | Duration: {elapsed_ms:.2f}ms")
                raise
            finally:
                _current_request.reset(token)

            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.log(
                level,
                f"Request Finished | {request.method} {request.url.path} | "
                f"Status: {response.status_code} | Duration: {elapsed_ms:.2f}ms"
            )
            response.headers["X-Trace-ID"] = trace_id
            response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}"
            return response
