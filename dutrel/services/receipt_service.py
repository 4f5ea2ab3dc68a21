import logging
import uuid
from sqlalchemy.orm import Session
from typing import Callable, List, Optional, Union

from dutrel.config import settings
from dutrel.core.clock import utcnow
from dutrel.core.exception import ValidationException
from dutrel.database import transaction
from dutrel.models.obligation import Obligation, ObligationStatus
from dutrel.models.receipt import REVIEWABLE_RECEIPT_STATUSES, Receipt, ReceiptStatus
from dutrel.repositories.action_log_repository import ActionLogRepository
from dutrel.repositories.receipt_repository import ReceiptRepository
from dutrel.schemas.receipt import DisputeReceipt, ReceiptCreate, ReceiptUploadUrlRequest, VerifyReceipt
from dutrel.services.permissions import PermissionService
from dutrel.storage import (
    SignedUrl,
    SignedUrlOp,
    StorageDriver,
    StorageProvider,
    build_receipt_object_key,
    get_default_storage_provider,
    get_storage_driver,
    receipt_key_prefix,
)

logger = logging.getLogger(__name__)


class ReceiptService:
    """Proofs of payment and their review by coordinators."""

    def __init__(
        self,
        db: Session,
        storage_factory: Callable[[Optional[StorageProvider]], StorageDriver] = get_storage_driver,
    ):
        self.db = db
        self.receipt_repo = ReceiptRepository(db)
        self.log_repo = ActionLogRepository(db)
        self.permissions = PermissionService(db)
        self.storage_factory = storage_factory

    def _require_open(self, obligation: Obligation) -> None:
        if not obligation.is_open:
            raise ValidationException("Obligation is not OPEN")

    def list_receipts(self, obligation_id: int, user_id: int) -> List[Receipt]:
        self.permissions.require_obligation_view(obligation_id, user_id)
        return self.receipt_repo.list_for_obligation(obligation_id)

    def get_receipt(self, receipt_id: int, user_id: int) -> Receipt:
        return self.permissions.require_receipt_view(receipt_id, user_id)

    def get_download_url(self, receipt_id: int, user_id: int) -> tuple[str, Optional[int]]:
        """Presigned GET for a stored receipt file; a legacy ``file_url`` is returned unchanged."""
        receipt = self.permissions.require_receipt_view(receipt_id, user_id)
        if receipt.object_key:
            signed = self.storage_factory(receipt.storage_provider).presign(
                receipt.object_key,
                SignedUrlOp.GET,
                expires_in=settings.STORAGE_PRESIGN_TTL_SECONDS,
            )
            return signed.url, signed.expires_in_seconds
        return receipt.file_url, None

    def create_upload_url(self, user_id: int, data: ReceiptUploadUrlRequest) -> tuple[StorageProvider, str, SignedUrl]:
        obligation = self.permissions.require_obligation_view(data.obligation_id, user_id)
        self._require_open(obligation)
        bucket = obligation.bucket
        provider = get_default_storage_provider()
        key = build_receipt_object_key(
            bucket.household_id, bucket.id, obligation.id, uuid.uuid4().hex, data.filename
        )
        signed = self.storage_factory(provider).presign(
            key,
            SignedUrlOp.PUT,
            expires_in=settings.STORAGE_PRESIGN_TTL_SECONDS,
            content_type=data.content_type,
        )
        return provider, key, signed

    def create_receipt(self, user_id: int, data: ReceiptCreate) -> Receipt:
        """
        Submit a receipt for review. Any household member may submit one.

        Raises:
            ValidationException: If the obligation is not OPEN or the object key
                lies outside the obligation's receipt folder or was never uploaded
        """
        obligation = self.permissions.require_obligation_view(data.obligation_id, user_id)
        self._require_open(obligation)
        bucket = obligation.bucket

        receipt = Receipt(
            obligation_id=obligation.id,
            uploaded_by_user_id=user_id,
            file_url=data.file_url,
            status=ReceiptStatus.PENDING_PAYER_REVIEW,
        )
        if data.object_key:
            if not data.object_key.startswith(receipt_key_prefix(bucket.household_id, bucket.id, obligation.id)):
                raise ValidationException("objectKey does not belong to this obligation", field="objectKey")
            provider = data.storage_provider or get_default_storage_provider()
            if not self.storage_factory(provider).head_object(data.object_key).exists:
                raise ValidationException("No uploaded object found for objectKey", field="objectKey")
            receipt.object_key = data.object_key
            receipt.storage_provider = provider

        with transaction(self.db):
            self.receipt_repo.add(receipt)
            self.log_repo.record(
                actor_user_id=user_id,
                action="RECEIPT_CREATE",
                entity_type="RECEIPT",
                entity_id=receipt.id,
                household_id=bucket.household_id,
                metadata={"obligationId": obligation.id, "fileUrl": receipt.file_url, "objectKey": receipt.object_key},
            )

        self.db.refresh(receipt)
        logger.info("RECEIPT_CREATE receipt=%s obligation=%s actor=%s", receipt.id, obligation.id, user_id)
        return receipt

    def review_receipt(
        self, receipt_id: int, user_id: int, data: Union[VerifyReceipt, DisputeReceipt]
    ) -> Receipt:
        """
        Verify or dispute a receipt.

        VERIFY marks the receipt VERIFIED and closes its obligation in the same
        transaction, with the reviewer as ``closed_by_user_id``. DISPUTE leaves the
        obligation untouched.
        """
        receipt = self.permissions.require_receipt_review(receipt_id, user_id)
        obligation = receipt.obligation

        if receipt.status not in REVIEWABLE_RECEIPT_STATUSES:
            raise ValidationException(f"Receipt is already {receipt.status.value}")
        if isinstance(data, VerifyReceipt):
            self._require_open(obligation)

        now = utcnow()
        with transaction(self.db):
            receipt.reviewed_by_user_id = user_id
            receipt.reviewed_at = now
            if isinstance(data, VerifyReceipt):
                action = "RECEIPT_VERIFY"
                receipt.status = ReceiptStatus.VERIFIED
                receipt.dispute_reason = None
                obligation.status = ObligationStatus.CLOSED
                obligation.closed_at = now
                obligation.closed_by_user_id = user_id
            else:
                action = "RECEIPT_DISPUTE"
                receipt.status = ReceiptStatus.DISPUTED
                receipt.dispute_reason = data.reason
            self.db.flush()

            self.log_repo.record(
                actor_user_id=user_id,
                action=action,
                entity_type="RECEIPT",
                entity_id=receipt.id,
                household_id=obligation.household_id,
                metadata={
                    "obligationId": obligation.id,
                    "status": receipt.status.value,
                    "obligationStatus": obligation.status.value,
                    "reason": receipt.dispute_reason,
                },
            )

        self.db.refresh(receipt)
        logger.info("%s receipt=%s obligation=%s actor=%s", action, receipt.id, obligation.id, user_id)
        return receipt
