from fastapi import APIRouter, Body, Depends, Query, status
from typing import Annotated
from sqlalchemy.orm import Session

from dutrel.database import get_db
from dutrel.dependencies import get_current_user
from dutrel.models.user import User
from dutrel.schemas.attachment import DownloadUrlResult, UploadUrlResult
from dutrel.schemas.receipt import (
    ReceiptCreate,
    ReceiptListResult,
    ReceiptResult,
    ReceiptReview,
    ReceiptUploadUrlRequest,
)
from dutrel.services.receipt_service import ReceiptService

router = APIRouter()


@router.get("", response_model=ReceiptListResult)
async def list_receipts(
    obligation_id: int = Query(..., alias="obligationId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List an obligation's receipts, newest first."""
    service = ReceiptService(db)
    receipts = service.list_receipts(obligation_id, current_user.id)
    return ReceiptListResult.successful(receipts=receipts)


@router.post("", response_model=ReceiptResult, status_code=status.HTTP_201_CREATED)
async def create_receipt(
    receipt_data: ReceiptCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit a receipt against an OPEN obligation."""
    service = ReceiptService(db)
    receipt = service.create_receipt(current_user.id, receipt_data)
    return ReceiptResult.successful(receipt=receipt)


@router.post("/upload-url", response_model=UploadUrlResult)
async def create_upload_url(
    upload_data: ReceiptUploadUrlRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reserve an object key for a receipt file and get a presigned upload URL."""
    service = ReceiptService(db)
    provider, key, signed = service.create_upload_url(current_user.id, upload_data)
    return UploadUrlResult.successful(
        storage_provider=provider,
        object_key=key,
        upload_url=signed.url,
        expires_in_seconds=signed.expires_in_seconds,
    )


@router.get("/{receipt_id}", response_model=ReceiptResult)
async def get_receipt(
    receipt_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = ReceiptService(db)
    receipt = service.get_receipt(receipt_id, current_user.id)
    return ReceiptResult.successful(receipt=receipt)


@router.get("/{receipt_id}/download-url", response_model=DownloadUrlResult)
async def get_download_url(
    receipt_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a short-lived URL for viewing the receipt file."""
    service = ReceiptService(db)
    url, expires_in = service.get_download_url(receipt_id, current_user.id)
    return DownloadUrlResult.successful(url=url, expires_in_seconds=expires_in)


@router.patch("/{receipt_id}", response_model=ReceiptResult)
async def review_receipt(
    receipt_id: int,
    review_data: Annotated[ReceiptReview, Body(discriminator="action")],
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """VERIFY (closes the obligation) or DISPUTE a receipt."""
    service = ReceiptService(db)
    receipt = service.review_receipt(receipt_id, current_user.id, review_data)
    return ReceiptResult.successful(receipt=receipt)
