from enum import Enum
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python, readable from ORM rows."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Error(BaseModel):
    message: str
    status_code: int
    code: ErrorCode


class Result(CamelModel):
    """
    Response envelope.

    Success responses subclass this and declare the payload keys, e.g.
    ``{"ok": true, "household": {...}}``.
    """

    ok: bool = True

    @classmethod
    def successful(cls, **payload):
        # Payload values may be ORM rows; read them by attribute
        return cls.model_validate({"ok": True, **payload}, from_attributes=True)

    @classmethod
    def failure(cls, error: Error) -> "Failure":
        return Failure(ok=False, error=error.code, message=error.message)


class Failure(Result):
    ok: bool = False
    error: ErrorCode
    message: str
