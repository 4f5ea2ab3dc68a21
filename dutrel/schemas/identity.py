import re
from pydantic import field_validator
from typing import Any, Optional
from datetime import date, datetime, timezone

from dutrel.models.identity import IdentityStatus, VerificationMethod
from dutrel.schemas.result import CamelModel, Result


class IdentityUpsert(CamelModel):
    """
    Identity submission. Input is lenient: blank or malformed optional values are
    dropped rather than rejected, and an omitted country means US.
    """
    legal_full_name: Optional[str] = None
    dob: Optional[date] = None
    phone_e164: Optional[str] = None
    ssn_last4: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str = "US"
    method: Optional[VerificationMethod] = None
    # Non-production escape hatch for local testing
    force_verify: bool = False

    @field_validator(
        "legal_full_name",
        "phone_e164",
        "address_line1",
        "address_line2",
        "city",
        "state",
        "postal_code",
        mode="before",
    )
    @classmethod
    def trimmed_or_none(cls, v: Any) -> Optional[str]:
        if not isinstance(v, str):
            return None
        return v.strip() or None

    @field_validator("country", mode="before")
    @classmethod
    def default_country(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return "US"
        return v.strip()

    @field_validator("ssn_last4", mode="before")
    @classmethod
    def last4_digits(cls, v: Any) -> Optional[str]:
        if not isinstance(v, str):
            return None
        digits = re.sub(r"\D", "", v)
        return digits if len(digits) == 4 else None

    @field_validator("dob", mode="before")
    @classmethod
    def parse_dob(cls, v: Any) -> Optional[date]:
        if isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            # JavaScript-style millisecond timestamp
            try:
                return datetime.fromtimestamp(v / 1000, tz=timezone.utc).date()
            except (ValueError, OverflowError, OSError):
                return None
        if isinstance(v, str):
            try:
                return datetime.fromisoformat(v.strip().replace("Z", "+00:00")).date()
            except ValueError:
                return None
        return None

    @field_validator("method", mode="before")
    @classmethod
    def known_method(cls, v: Any) -> Optional[str]:
        if isinstance(v, str) and v in VerificationMethod.__members__:
            return v
        return None

    @field_validator("force_verify", mode="before")
    @classmethod
    def strict_true(cls, v: Any) -> bool:
        return v is True


class IdentityResponse(CamelModel):
    id: int
    user_id: int
    status: IdentityStatus
    method: Optional[VerificationMethod] = None
    legal_full_name: Optional[str] = None
    dob: Optional[date] = None
    phone_e164: Optional[str] = None
    ssn_last4: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: str
    verified_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    rejected_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class IdentityResult(Result):
    identity: Optional[IdentityResponse] = None
