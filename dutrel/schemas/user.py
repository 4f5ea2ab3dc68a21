from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from dutrel.schemas.result import CamelModel, Result


class UserCreate(CamelModel):
    """Schema for registering a user."""
    email: EmailStr
    display_name: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("display_name")
    @classmethod
    def strip_display_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class UserSummary(CamelModel):
    id: int
    email: str
    display_name: Optional[str] = None


class UserResponse(UserSummary):
    """Schema for user response."""
    uuid: str
    is_active: bool
    credit_reporting_enabled: bool
    credit_reporting_since: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UserResult(Result):
    user: UserResponse
