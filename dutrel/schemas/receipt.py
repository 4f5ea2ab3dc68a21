from pydantic import Field, field_validator, model_validator
from typing import List, Literal, Optional, Union
from datetime import datetime

from dutrel.models.receipt import ReceiptStatus
from dutrel.schemas.result import CamelModel, Result
from dutrel.schemas.user import UserSummary
from dutrel.storage.types import StorageProvider


class ReceiptCreate(CamelModel):
    """
    Proof of payment for an OPEN obligation. Provide ``object_key`` from the
    upload-url endpoint, or a legacy ``file_url``.
    """
    obligation_id: int
    file_url: Optional[str] = Field(None, max_length=2048)
    object_key: Optional[str] = Field(None, max_length=1024)
    storage_provider: Optional[StorageProvider] = None

    @field_validator("file_url", "object_key")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def require_location(self):
        if not self.file_url and not self.object_key:
            raise ValueError("fileUrl or objectKey is required")
        return self


class ReceiptUploadUrlRequest(CamelModel):
    obligation_id: int
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: Optional[str] = Field(None, max_length=255)


class VerifyReceipt(CamelModel):
    action: Literal["VERIFY"]


class DisputeReceipt(CamelModel):
    action: Literal["DISPUTE"]
    reason: Optional[str] = Field(None, max_length=2000)

    @field_validator("reason")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


# Tagged on ``action``
ReceiptReview = Union[VerifyReceipt, DisputeReceipt]


class ReceiptResponse(CamelModel):
    id: int
    uuid: str
    obligation_id: int
    uploaded_by_user_id: int
    uploaded_by: Optional[UserSummary] = None
    storage_provider: Optional[StorageProvider] = None
    object_key: Optional[str] = None
    file_url: Optional[str] = None
    status: ReceiptStatus
    reviewed_by_user_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    dispute_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReceiptResult(Result):
    receipt: ReceiptResponse


class ReceiptListResult(Result):
    receipts: List[ReceiptResponse]
