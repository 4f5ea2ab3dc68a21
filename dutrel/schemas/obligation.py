from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

from dutrel.models.obligation import ObligationStatus, ReportingState
from dutrel.models.receipt import ReceiptStatus
from dutrel.schemas.bucket import BucketSummary
from dutrel.schemas.result import CamelModel, Result


class ObligationCreate(CamelModel):
    """Schema for opening an obligation on a bucket."""
    bucket_id: int
    amount_cents: int = Field(..., gt=0, description="Amount owed, in cents")
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    due_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.period_start and self.period_end and self.period_start > self.period_end:
            raise ValueError("periodStart must be before periodEnd")
        return self


class ObligationReopen(CamelModel):
    reason: str = Field(..., max_length=2000)

    @field_validator("reason")
    @classmethod
    def require_reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("reason is required")
        return v


class ReceiptSummary(CamelModel):
    id: int
    status: ReceiptStatus
    file_url: Optional[str] = None
    object_key: Optional[str] = None
    uploaded_by_user_id: int
    created_at: Optional[datetime] = None


class ObligationResponse(CamelModel):
    id: int
    uuid: str
    bucket_id: int
    amount_cents: int
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    due_date: Optional[datetime] = None
    status: ObligationStatus
    closed_at: Optional[datetime] = None
    closed_by_user_id: Optional[int] = None
    reopened_at: Optional[datetime] = None
    reopened_by_user_id: Optional[int] = None
    reopen_reason: Optional[str] = None
    reporting_state: ReportingState
    reporting_eligible_at: Optional[datetime] = None
    reporting_queued_at: Optional[datetime] = None
    reported_at: Optional[datetime] = None
    reporting_provider_ref: Optional[str] = None
    reporting_error: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    receipts: List[ReceiptSummary] = []


class ObligationDetailResponse(ObligationResponse):
    bucket: BucketSummary


class ObligationResult(Result):
    obligation: ObligationDetailResponse


class ObligationListResult(Result):
    obligations: List[ObligationResponse]
