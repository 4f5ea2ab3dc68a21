from pydantic import model_validator
from typing import List, Optional
from datetime import datetime

from dutrel.models.bucket import CreditReportingProvider
from dutrel.models.credit import CreditReportBatchStatus, CreditReportItemStatus
from dutrel.schemas.bucket import BucketResponse
from dutrel.schemas.result import CamelModel, Result


class CreditEnableRequest(CamelModel):
    bucket_id: int


class BatchPrepareRequest(CamelModel):
    bucket_id: int
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None

    @model_validator(mode="after")
    def check_period(self):
        if self.period_start and self.period_end and self.period_start > self.period_end:
            raise ValueError("periodStart must be before periodEnd")
        return self


class BatchSubmitRequest(CamelModel):
    batch_id: int


class CreditReportItemResponse(CamelModel):
    id: int
    batch_id: int
    obligation_id: int
    user_id: int
    status: CreditReportItemStatus
    amount_cents: int
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None


class CreditReportBatchResponse(CamelModel):
    id: int
    uuid: str
    bucket_id: int
    household_id: int
    provider: CreditReportingProvider
    status: CreditReportBatchStatus
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    created_by_user_id: int
    submitted_at: Optional[datetime] = None
    metadata_json: Optional[str] = None
    created_at: Optional[datetime] = None
    items: List[CreditReportItemResponse] = []


class CreditEnableResult(Result):
    bucket: BucketResponse


class BatchResult(Result):
    batch: CreditReportBatchResponse


class BatchPrepareResult(BatchResult):
    items_created: int


class BatchSubmitResult(BatchResult):
    items_updated: int
    obligations_updated: int
