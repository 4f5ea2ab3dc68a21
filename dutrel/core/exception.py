from fastapi import HTTPException
from typing import Any, Optional
from dutrel.schemas.result import ErrorCode


class CustomException(HTTPException):
    """Base exception class for all custom application exceptions"""

    def __init__(
        self,
        message: str,
        status_code: int,
        code: ErrorCode,
        headers: Optional[dict] = None
    ):
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code = code

    def __str__(self) -> str:
        return self.detail


class ResourceNotFoundException(CustomException):
    """Exception raised when a requested resource is not found"""

    def __init__(self, resource_name: str, resource_id: Optional[Any] = None):
        if resource_id:
            message = f"{resource_name} with ID '{resource_id}' was not found."
        else:
            message = f"{resource_name} was not found."

        super().__init__(
            message=message,
            status_code=404,
            code=ErrorCode.NOT_FOUND
        )


class AuthenticationException(CustomException):
    """Exception raised when the caller cannot be identified"""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
        )


class AuthorizationException(CustomException):
    """Exception raised when user lacks required permissions"""

    def __init__(
        self,
        permission: Optional[str] = None,
        message: Optional[str] = None,
        status_code: int = 403
    ):
        if message:
            error_message = message
        elif permission:
            error_message = f"You do not have permission to perform this action. Required permission: {permission}"
        else:
            error_message = "Access denied"

        super().__init__(
            message=error_message,
            status_code=status_code,
            code=ErrorCode.FORBIDDEN
        )


class ValidationException(CustomException):
    """Exception raised for business logic validation failures"""

    def __init__(self, message: str, field: Optional[str] = None):
        if field:
            error_message = f"Validation failed for '{field}': {message}"
        else:
            error_message = message

        super().__init__(
            message=error_message,
            status_code=400,
            code=ErrorCode.VALIDATION_ERROR
        )


class BadRequestException(CustomException):
    """Exception raised for malformed or invalid requests"""

    def __init__(self, message: str = "The request is invalid or malformed."):
        super().__init__(
            message=message,
            status_code=400,
            code=ErrorCode.BAD_REQUEST
        )
