"""Error handlers for the FastAPI application"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .base import ApplicationError, ErrorCode, ErrorLevel
from .error_context import ErrorContext, ErrorContextManager
from .logging import get_logger

logger = get_logger(__name__)

# HTTP status per application error code; anything unlisted is a 500
STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCode.CONTEXT_LENGTH_EXCEEDED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.AUTHENTICATION_FAILED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.DB_RECORD_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.EMBEDDING_FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.CIRCUIT_OPEN: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


class ErrorHandler:
    """Formats application errors into API responses"""

    def _format_response(
        self,
        error_context: ErrorContext,
        level: ErrorLevel,
    ) -> dict[str, Any]:
        response: dict[str, Any] = {
            "error": str(error_context.error),
            "error_code": ErrorCode.PROCESSING_FAILED.value,
            "level": level.value,
            "trace_id": error_context.trace_id,
            "timestamp": error_context.timestamp.isoformat(),
            "retryable": False,
        }

        if isinstance(error_context.error, ApplicationError):
            response["error_code"] = error_context.error.code.value
            response["details"] = error_context.error.details.model_dump()
            response["retryable"] = error_context.error.retryable

        return response

    def status_for(self, error: Exception) -> int:
        if isinstance(error, ApplicationError):
            return STATUS_BY_CODE.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        return status.HTTP_500_INTERNAL_SERVER_ERROR

    async def handle_async(self, error: Exception, level: ErrorLevel, context: dict[str, Any]) -> dict[str, Any]:
        """Handle error asynchronously"""
        async with ErrorContextManager(error, **context) as error_context:
            return self._format_response(error_context, level)


class GlobalErrorHandler(ErrorHandler):
    """Global error handler for FastAPI application"""

    async def handle_application_error(self, request: Request, error: ApplicationError) -> JSONResponse:
        body = await self.handle_async(error, error.level, {"path": request.url.path})
        status_code = self.status_for(error)
        logger.log(
            error.level.to_logging_level(),
            f"Request failed: {error.message}",
            path=request.url.path,
            error_code=error.code.value,
            status_code=status_code,
            trace_id=body["trace_id"],
        )
        return JSONResponse(status_code=status_code, content=body)


def register_error_handlers(app: FastAPI, handler: GlobalErrorHandler | None = None) -> None:
    """Render every :class:`ApplicationError` escaping an endpoint as structured JSON."""
    handler = handler or GlobalErrorHandler()
    app.add_exception_handler(ApplicationError, handler.handle_application_error)  # type: ignore[arg-type]
