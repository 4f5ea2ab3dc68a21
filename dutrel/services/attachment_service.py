import logging
import uuid
from sqlalchemy.orm import Session
from typing import Callable, List, Optional

from dutrel.config import settings
from dutrel.core.exception import BadRequestException, ResourceNotFoundException, ValidationException
from dutrel.database import transaction
from dutrel.models.attachment import AttachmentKind, BucketAttachment
from dutrel.repositories.action_log_repository import ActionLogRepository
from dutrel.repositories.attachment_repository import AttachmentRepository
from dutrel.schemas.attachment import (
    AttachmentCreate,
    AttachmentUpdate,
    FileAttachmentCreate,
    LinkAttachmentCreate,
    UploadUrlRequest,
)
from dutrel.services.permissions import PermissionService
from dutrel.storage import (
    SignedUrl,
    SignedUrlOp,
    StorageDriver,
    StorageProvider,
    attachment_key_prefix,
    build_attachment_object_key,
    get_default_storage_provider,
    get_storage_driver,
)

logger = logging.getLogger(__name__)


class AttachmentService:
    """Documents, links and notes filed under a bucket."""

    def __init__(
        self,
        db: Session,
        storage_factory: Callable[[Optional[StorageProvider]], StorageDriver] = get_storage_driver,
    ):
        self.db = db
        self.attachment_repo = AttachmentRepository(db)
        self.log_repo = ActionLogRepository(db)
        self.permissions = PermissionService(db)
        self.storage_factory = storage_factory

    def _get_attachment(self, bucket_id: int, attachment_id: int) -> BucketAttachment:
        attachment = self.attachment_repo.get_for_bucket(bucket_id, attachment_id)
        if not attachment:
            raise ResourceNotFoundException("Attachment", attachment_id)
        return attachment

    def list_attachments(self, bucket_id: int, user_id: int) -> List[BucketAttachment]:
        self.permissions.require_bucket_access(bucket_id, user_id)
        return self.attachment_repo.list_for_bucket(bucket_id)

    def create_upload_url(self, bucket_id: int, user_id: int, data: UploadUrlRequest) -> tuple[StorageProvider, str, SignedUrl]:
        """Reserve an object key under the bucket and presign a PUT for it."""
        bucket = self.permissions.require_bucket_manage(bucket_id, user_id)
        provider = get_default_storage_provider()
        key = build_attachment_object_key(bucket.household_id, bucket.id, uuid.uuid4().hex, data.filename)
        signed = self.storage_factory(provider).presign(
            key,
            SignedUrlOp.PUT,
            expires_in=settings.STORAGE_PRESIGN_TTL_SECONDS,
            content_type=data.content_type,
        )
        return provider, key, signed

    def create_attachment(self, bucket_id: int, user_id: int, data: AttachmentCreate) -> BucketAttachment:
        """
        File an attachment. Only the payload fields of the requested kind are stored.

        Raises:
            ValidationException: If a FILE object key lies outside the bucket or
                was never uploaded
        """
        bucket = self.permissions.require_bucket_manage(bucket_id, user_id)

        attachment = BucketAttachment(
            bucket_id=bucket.id,
            created_by_user_id=user_id,
            kind=AttachmentKind(data.kind),
            type=data.type,
            title=data.title,
            pinned_to_household=data.pinned_to_household,
            metadata_json=data.metadata_json,
        )

        if isinstance(data, FileAttachmentCreate):
            attachment.original_name = data.original_name
            attachment.sha256_hex = data.sha256_hex
            attachment.file_url = data.file_url
            attachment.mime_type = data.mime_type
            attachment.size_bytes = data.size_bytes
            if data.object_key:
                if not data.object_key.startswith(attachment_key_prefix(bucket.household_id, bucket.id)):
                    raise ValidationException("objectKey does not belong to this bucket", field="objectKey")
                provider = data.storage_provider or get_default_storage_provider()
                attachment.storage_provider = provider
                attachment.object_key = data.object_key
                if attachment.mime_type is None or attachment.size_bytes is None:
                    head = self.storage_factory(provider).head_object(data.object_key)
                    if not head.exists:
                        raise ValidationException("No uploaded object found for objectKey", field="objectKey")
                    attachment.mime_type = attachment.mime_type or head.content_type
                    if attachment.size_bytes is None:
                        attachment.size_bytes = head.content_length
        elif isinstance(data, LinkAttachmentCreate):
            attachment.url = data.url
        else:
            attachment.note_text = data.note_text

        with transaction(self.db):
            self.attachment_repo.add(attachment)
            self.log_repo.record(
                actor_user_id=user_id,
                action="BUCKET_ATTACHMENT_CREATE",
                entity_type="BUCKET_ATTACHMENT",
                entity_id=attachment.id,
                household_id=bucket.household_id,
                metadata={
                    "bucketId": bucket.id,
                    "attachmentId": attachment.id,
                    "kind": attachment.kind.value,
                    "type": attachment.type.value,
                    "pinnedToHousehold": attachment.pinned_to_household,
                },
            )

        self.db.refresh(attachment)
        logger.info("BUCKET_ATTACHMENT_CREATE attachment=%s bucket=%s actor=%s", attachment.id, bucket.id, user_id)
        return attachment

    def update_attachment(
        self, bucket_id: int, attachment_id: int, user_id: int, data: AttachmentUpdate
    ) -> BucketAttachment:
        bucket = self.permissions.require_bucket_manage(bucket_id, user_id)
        attachment = self._get_attachment(bucket_id, attachment_id)
        changes = data.model_dump(exclude_unset=True)

        with transaction(self.db):
            self.attachment_repo.update(attachment, changes)
            self.log_repo.record(
                actor_user_id=user_id,
                action="BUCKET_ATTACHMENT_UPDATE",
                entity_type="BUCKET_ATTACHMENT",
                entity_id=attachment.id,
                household_id=bucket.household_id,
                metadata={
                    "bucketId": bucket.id,
                    "attachmentId": attachment.id,
                    "changes": data.model_dump(mode="json", by_alias=True, exclude_unset=True),
                },
            )

        self.db.refresh(attachment)
        logger.info("BUCKET_ATTACHMENT_UPDATE attachment=%s actor=%s", attachment.id, user_id)
        return attachment

    def delete_attachment(self, bucket_id: int, attachment_id: int, user_id: int) -> int:
        """Delete the row, and the stored object when the attachment has one."""
        bucket = self.permissions.require_bucket_manage(bucket_id, user_id)
        attachment = self._get_attachment(bucket_id, attachment_id)
        provider, object_key = attachment.storage_provider, attachment.object_key

        with transaction(self.db):
            self.attachment_repo.remove(attachment)
            self.log_repo.record(
                actor_user_id=user_id,
                action="BUCKET_ATTACHMENT_DELETE",
                entity_type="BUCKET_ATTACHMENT",
                entity_id=attachment_id,
                household_id=bucket.household_id,
                metadata={"bucketId": bucket.id, "attachmentId": attachment_id, "objectKey": object_key},
            )
            # Last step, so a storage failure rolls the row deletion back
            if object_key:
                self.storage_factory(provider).delete_object(object_key)

        logger.info("BUCKET_ATTACHMENT_DELETE attachment=%s actor=%s", attachment_id, user_id)
        return attachment_id

    def get_download_url(self, bucket_id: int, attachment_id: int, user_id: int) -> tuple[str, Optional[int]]:
        """Presigned GET for stored files; legacy URLs are returned unchanged."""
        self.permissions.require_bucket_access(bucket_id, user_id)
        attachment = self._get_attachment(bucket_id, attachment_id)

        if attachment.kind != AttachmentKind.FILE:
            raise BadRequestException("Only FILE attachments can be downloaded")
        if attachment.object_key:
            signed = self.storage_factory(attachment.storage_provider).presign(
                attachment.object_key,
                SignedUrlOp.GET,
                expires_in=settings.STORAGE_PRESIGN_TTL_SECONDS,
            )
            return signed.url, signed.expires_in_seconds
        return attachment.file_url, None
