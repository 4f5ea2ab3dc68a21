from fastapi import APIRouter, Body, Depends, status
from typing import Annotated
from sqlalchemy.orm import Session

from dutrel.database import get_db
from dutrel.dependencies import get_current_user
from dutrel.models.user import User
from dutrel.schemas.attachment import (
    AttachmentCreate,
    AttachmentDeleteResult,
    AttachmentListResult,
    AttachmentResult,
    AttachmentUpdate,
    DownloadUrlResult,
    UploadUrlRequest,
    UploadUrlResult,
)
from dutrel.services.attachment_service import AttachmentService

router = APIRouter()


@router.get("", response_model=AttachmentListResult)
async def list_attachments(
    bucket_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List a bucket's attachments, newest first."""
    service = AttachmentService(db)
    attachments = service.list_attachments(bucket_id, current_user.id)
    return AttachmentListResult.successful(attachments=attachments)


@router.post("", response_model=AttachmentResult, status_code=status.HTTP_201_CREATED)
async def create_attachment(
    bucket_id: int,
    attachment_data: Annotated[AttachmentCreate, Body(discriminator="kind")],
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """File a FILE, LINK or NOTE attachment."""
    service = AttachmentService(db)
    attachment = service.create_attachment(bucket_id, current_user.id, attachment_data)
    return AttachmentResult.successful(attachment=attachment)


@router.post("/upload-url", response_model=UploadUrlResult)
async def create_upload_url(
    bucket_id: int,
    upload_data: UploadUrlRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reserve an object key and get a presigned upload URL for it."""
    service = AttachmentService(db)
    provider, key, signed = service.create_upload_url(bucket_id, current_user.id, upload_data)
    return UploadUrlResult.successful(
        storage_provider=provider,
        object_key=key,
        upload_url=signed.url,
        expires_in_seconds=signed.expires_in_seconds,
    )


@router.get("/{attachment_id}/download-url", response_model=DownloadUrlResult)
async def get_download_url(
    bucket_id: int,
    attachment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a short-lived download URL for a FILE attachment."""
    service = AttachmentService(db)
    url, expires_in = service.get_download_url(bucket_id, attachment_id, current_user.id)
    return DownloadUrlResult.successful(url=url, expires_in_seconds=expires_in)


@router.patch("/{attachment_id}", response_model=AttachmentResult)
async def update_attachment(
    bucket_id: int,
    attachment_id: int,
    attachment_data: AttachmentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Rename, retype, pin or unpin an attachment."""
    service = AttachmentService(db)
    attachment = service.update_attachment(bucket_id, attachment_id, current_user.id, attachment_data)
    return AttachmentResult.successful(attachment=attachment)


@router.delete("/{attachment_id}", response_model=AttachmentDeleteResult)
async def delete_attachment(
    bucket_id: int,
    attachment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an attachment and its stored file."""
    service = AttachmentService(db)
    deleted_id = service.delete_attachment(bucket_id, attachment_id, current_user.id)
    return AttachmentDeleteResult.successful(deleted_attachment_id=deleted_id)
