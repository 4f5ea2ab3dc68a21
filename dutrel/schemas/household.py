from pydantic import Field, field_validator
from typing import List, Optional
from datetime import datetime

from dutrel.models.household import HouseholdRole
from dutrel.schemas.bucket import BucketSummary
from dutrel.schemas.result import CamelModel, Result
from dutrel.schemas.user import UserSummary


class HouseholdCreate(CamelModel):
    """Schema for creating a new household."""
    name: str = Field(..., min_length=1, max_length=100, description="Household name")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class HouseholdMemberCreate(CamelModel):
    """Schema for adding an existing user to a household."""
    user_id: int
    role: HouseholdRole = HouseholdRole.MEMBER
    succession_rank: Optional[int] = Field(None, ge=1)

    @field_validator("role")
    @classmethod
    def role_not_payer(cls, v: HouseholdRole) -> HouseholdRole:
        # A household has exactly one PAYER, assigned at creation
        if v == HouseholdRole.PAYER:
            raise ValueError("role must be SECONDARY_PAYER or MEMBER")
        return v


class HouseholdMemberResponse(CamelModel):
    """Schema for household member information."""
    id: int
    household_id: int
    user_id: int
    role: HouseholdRole
    succession_rank: int
    user: UserSummary
    created_at: Optional[datetime] = None


class HouseholdResponse(CamelModel):
    """Schema for household response."""
    id: int
    uuid: str
    name: str
    created_at: Optional[datetime] = None
    members: List[HouseholdMemberResponse] = []


class HouseholdDetailResponse(HouseholdResponse):
    buckets: List[BucketSummary] = []


class HouseholdResult(Result):
    household: HouseholdDetailResponse


class HouseholdListResult(Result):
    households: List[HouseholdResponse]


class HouseholdMemberResult(Result):
    member: HouseholdMemberResponse
