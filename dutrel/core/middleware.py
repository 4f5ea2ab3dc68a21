from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
import logging
from typing import Sequence, Any

from dutrel.schemas.result import Error, Result, ErrorCode
from dutrel.core.exception import CustomException

logger = logging.getLogger(__name__)


class ExceptionHandlingMiddleware(BaseHTTPMiddleware):
    """
    Centralized exception handling middleware for consistent API responses.
    Catches all exceptions and transforms them into ``{ok: false, error, message}``
    envelopes.

    Exceptions FastAPI resolves itself (HTTP errors raised inside routes, request
    validation) never reach ``dispatch``; ``install_exception_handlers`` routes
    those through the same handlers.
    """

    def __init__(self, app, log_internal_errors: bool = True):
        super().__init__(app)
        self.log_internal_errors = log_internal_errors
        self._register_handlers()

    def _register_handlers(self):
        """Register exception type to handler method mappings"""
        self.EXCEPTION_HANDLERS = {
            CustomException: self._handle_custom_exception,
            ValidationError: self._handle_validation_error,
            RequestValidationError: self._handle_validation_error,
            ResponseValidationError: self._handle_validation_error,
            StarletteHTTPException: self._handle_http_exception,
        }

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as ex:
            return await self._handle_exception(ex, request)

    async def _handle_exception(self, ex: Exception, request: Request) -> JSONResponse:
        """
        Route exception to the appropriate handler.

        All registered handlers are expected to be asynchronous (async def).
        """
        for exc_type, handler in self.EXCEPTION_HANDLERS.items():
            if isinstance(ex, exc_type):
                return await handler(ex, request)

        return await self._handle_unhandled_exception(ex, request)

    async def _handle_custom_exception(
        self, ex: CustomException, request: Request
    ) -> JSONResponse:
        """Handle custom application exceptions"""
        error = Error(message=ex.detail, status_code=ex.status_code, code=ex.code)
        return self._create_error_response(error)

    async def _handle_validation_error(
        self,
        ex: ValidationError | RequestValidationError | ResponseValidationError,
        request: Request,
    ) -> JSONResponse:
        """Handle Pydantic validation errors"""
        if isinstance(ex, ResponseValidationError):
            # Our own serialization failed; the caller did nothing wrong.
            return await self._handle_unhandled_exception(ex, request)

        validation_message = self._format_validation_error(ex.errors())
        error = Error(
            message=validation_message,
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR,
        )
        return self._create_error_response(error)

    async def _handle_http_exception(
        self, ex: StarletteHTTPException, request: Request
    ) -> JSONResponse:
        """Handle framework HTTP exceptions (unknown route, wrong method, ...)"""
        error = Error(
            message=ex.detail if isinstance(ex.detail, str) else str(ex.detail),
            status_code=ex.status_code,
            code=self._infer_code_from_status(ex.status_code),
        )
        return self._create_error_response(error)

    async def _handle_unhandled_exception(
        self, ex: Exception, request: Request
    ) -> JSONResponse:
        """Handle unexpected exceptions"""
        if self.log_internal_errors:
            logger.error(
                f"Unhandled exception on {request.method} {request.url.path}",
                exc_info=ex,
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client": request.client.host if request.client else None,
                },
            )

        # Don't expose internal error details
        error = Error(
            message="Internal server error",
            status_code=500,
            code=ErrorCode.INTERNAL_ERROR,
        )
        return self._create_error_response(error)

    def _create_error_response(self, error: Error) -> JSONResponse:
        """Create standardized JSON error response"""
        return JSONResponse(
            status_code=error.status_code,
            content=Result.failure(error).model_dump(mode="json", by_alias=True),
        )

    def _format_validation_error(self, errors: Sequence[Any]) -> str:
        """Format validation errors into human-readable message"""
        messages = []
        for error in errors:
            loc = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            messages.append(f"{loc}: {msg}" if loc else msg)

        return "; ".join(messages) if messages else "Invalid request"

    def _infer_code_from_status(self, status_code: int) -> ErrorCode:
        """Infer error code from HTTP status code"""
        status_code_map = {
            401: ErrorCode.UNAUTHORIZED,
            403: ErrorCode.FORBIDDEN,
            404: ErrorCode.NOT_FOUND,
            422: ErrorCode.VALIDATION_ERROR,
        }
        if status_code in status_code_map:
            return status_code_map[status_code]
        elif status_code >= 500:
            return ErrorCode.INTERNAL_ERROR
        return ErrorCode.BAD_REQUEST


def install_exception_handlers(app: FastAPI, log_internal_errors: bool = True) -> None:
    """
    Register the middleware's handlers for the exceptions FastAPI catches itself.
    """
    handlers = ExceptionHandlingMiddleware(app, log_internal_errors=log_internal_errors)

    async def _handle(request: Request, ex: Exception) -> JSONResponse:
        return await handlers._handle_exception(ex, request)

    for exc_type in (CustomException, HTTPException, StarletteHTTPException, RequestValidationError):
        app.add_exception_handler(exc_type, _handle)
