from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

from dutrel.models.bucket import (
    BucketCadence,
    BucketType,
    BucketVariability,
    CreditReportingProvider,
    CreditReportingStatus,
    FundingMode,
    ResponsibilityRole,
)
from dutrel.models.obligation import ObligationStatus, ReportingState
from dutrel.schemas.result import CamelModel, Result


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("name is required")
    return v


class BucketCreate(CamelModel):
    """
    Schema for creating a bucket.

    INDIVIDUAL buckets default ``owner_user_id`` to the caller and ignore
    ``member_household_member_ids``. GROUP buckets never store an owner.
    """
    household_id: int
    name: str = Field(..., min_length=1, max_length=200)
    type: BucketType
    cadence: BucketCadence = BucketCadence.MONTHLY
    variability: BucketVariability = BucketVariability.VARIABLE
    owner_user_id: Optional[int] = None
    buffer_target_cents: int = Field(0, ge=0)
    member_household_member_ids: List[int] = []
    responsible_household_member_ids: List[int] = []
    autopay_enabled_at: Optional[datetime] = None
    funding_mode: FundingMode = FundingMode.INTERNAL

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_required(v)


class BucketUpdate(CamelModel):
    """
    Schema for updating a bucket. Only the fields present in the request are applied;
    ``None`` clears the nullable timestamps.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    cadence: Optional[BucketCadence] = None
    variability: Optional[BucketVariability] = None
    buffer_target_cents: Optional[int] = Field(None, ge=0)
    notification_pause_until: Optional[datetime] = None
    autopay_enabled_at: Optional[datetime] = None
    member_household_member_ids: Optional[List[int]] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _strip_required(v)

    @model_validator(mode="after")
    def check_not_null(self):
        for field in ("name", "cadence", "variability", "buffer_target_cents", "member_household_member_ids"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class BucketSummary(CamelModel):
    id: int
    household_id: int
    name: str
    type: BucketType
    owner_user_id: Optional[int] = None


class BucketMemberResponse(CamelModel):
    id: int
    household_member_id: int


class BucketResponsibilityResponse(CamelModel):
    id: int
    household_member_id: int
    role: ResponsibilityRole


class ObligationSummary(CamelModel):
    id: int
    amount_cents: int
    due_date: Optional[datetime] = None
    status: ObligationStatus
    reporting_state: ReportingState


class BucketResponse(BucketSummary):
    """Schema for bucket response."""
    uuid: str
    cadence: BucketCadence
    variability: BucketVariability
    buffer_target_cents: int
    autopay_enabled_at: Optional[datetime] = None
    funding_mode: FundingMode
    notification_pause_until: Optional[datetime] = None
    credit_reporting_enabled: bool
    credit_reporting_status: CreditReportingStatus
    credit_reporting_provider: CreditReportingProvider
    credit_reporting_activated_at: Optional[datetime] = None
    credit_reporting_paused_at: Optional[datetime] = None
    credit_reporting_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    members: List[BucketMemberResponse] = []
    responsible_members: List[BucketResponsibilityResponse] = []


class BucketDetailResponse(BucketResponse):
    obligations: List[ObligationSummary] = []


class BucketResult(Result):
    bucket: BucketDetailResponse


class BucketListResult(Result):
    buckets: List[BucketResponse]


class BucketDeleteResult(Result):
    deleted_bucket_id: int
