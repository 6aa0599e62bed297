"""
Custom middleware for the FastAPI application.
"""
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import settings
from ..exceptions import internal_error_response
from .context import CORRELATION_ID_HEADER, begin_request, end_request

# Set up logging
logger = logging.getLogger(__name__)
performance_logger = logging.getLogger("vetclinic.performance")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware opening the request context and logging request and response
    information.

    Every response carries the correlation id and the processing time. The
    context is torn down whether the handler returns or raises. Unexpected
    errors are answered here with a generic 500 so the correlation id still
    reaches the client.
    """
    def __init__(self, app: ASGIApp, slow_request_threshold_ms: int = None):
        super().__init__(app)
        if slow_request_threshold_ms is None:
            slow_request_threshold_ms = settings.slow_request_threshold_ms
        self.slow_request_threshold_ms = slow_request_threshold_ms

    async def dispatch(self, request: Request, call_next):
        """
        Process the request and log information.

        Args:
            request: The incoming request
            call_next: The next middleware or endpoint handler

        Returns:
            Response: The response from the next handler
        """
        context = begin_request(request)
        correlation_id = context.correlation_id
        method, path = request.method, request.url.path

        logger.info(
            f"Incoming request: {method} {path} from {context.client_ip} | Correlation-ID: {correlation_id}",
            extra={"correlation_id": correlation_id, "client_ip": context.client_ip},
        )

        try:
            response = await call_next(request)
            duration_ms = context.finish()

            response.headers[CORRELATION_ID_HEADER] = correlation_id
            response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

            self._log_response(method, path, response.status_code, duration_ms, correlation_id, context.caller)
            return response
        except Exception as e:
            duration_ms = context.finish()
            logger.error(
                f"Request failed: {method} {path} - Error: {e} - Duration: {duration_ms:.2f}ms "
                f"| Correlation-ID: {correlation_id}",
                extra={"correlation_id": correlation_id},
                exc_info=e,
            )
            response = internal_error_response(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

            self._log_response(method, path, response.status_code, duration_ms, correlation_id, context.caller)
            return response
        finally:
            end_request(request)

    def _log_response(self, method: str, path: str, status_code: int, duration_ms: float, correlation_id: str, caller: str):
        message = (
            f"Response: {method} {path} - Status: {status_code} - Duration: {duration_ms:.2f}ms "
            f"| User: {caller} | Correlation-ID: {correlation_id}"
        )
        extra = {"correlation_id": correlation_id, "status_code": status_code, "duration_ms": duration_ms}
        if status_code >= 500:
            logger.error(message, extra=extra)
        elif status_code >= 400:
            logger.warning(message, extra=extra)
        else:
            logger.info(message, extra=extra)

        performance_logger.info(f"PERFORMANCE | {method} {path} | {duration_ms:.2f}ms | Status: {status_code}", extra=extra)
        if duration_ms > self.slow_request_threshold_ms:
            performance_logger.warning(
                f"SLOW REQUEST | {method} {path} took {duration_ms:.2f}ms "
                f"(threshold {self.slow_request_threshold_ms}ms) | Correlation-ID: {correlation_id}",
                extra=extra,
            )


def setup_middlewares(app):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
    """
    app.add_middleware(RequestLoggingMiddleware)
