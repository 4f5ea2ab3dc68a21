"""
Mocked credit-reporting pipeline for INDIVIDUAL buckets.

``prepare`` queues the bucket's on-time CLOSED obligations into a new batch;
``submit`` marks a READY batch, its items and their obligations as reported.
No external bureau is called.
"""

import json
import logging
from sqlalchemy.orm import Session
from typing import Optional, Tuple
from datetime import datetime

from dutrel.core.clock import as_utc, utcnow
from dutrel.core.exception import ResourceNotFoundException, ValidationException
from dutrel.database import transaction
from dutrel.models.bucket import Bucket, CreditReportingStatus
from dutrel.models.credit import (
    CreditReportBatch,
    CreditReportBatchStatus,
    CreditReportItem,
    CreditReportItemStatus,
)
from dutrel.models.obligation import Obligation, ReportingState
from dutrel.repositories.action_log_repository import ActionLogRepository
from dutrel.repositories.credit_repository import CreditBatchRepository
from dutrel.repositories.identity_repository import IdentityRepository
from dutrel.repositories.obligation_repository import ObligationRepository
from dutrel.repositories.user_repository import UserRepository
from dutrel.schemas.credit import BatchPrepareRequest
from dutrel.services.permissions import PermissionService

logger = logging.getLogger(__name__)

PROVIDER_REF_PREFIX = "mock:"


def is_on_time(due_date: Optional[datetime], closed_at: Optional[datetime]) -> bool:
    """Closed no later than due. Obligations missing either date never qualify."""
    if due_date is None or closed_at is None:
        return False
    return as_utc(closed_at) <= as_utc(due_date)


def is_reportable(obligation: Obligation) -> bool:
    if obligation.reporting_state == ReportingState.REPORTED:
        return False
    return is_on_time(obligation.due_date, obligation.closed_at)


class CreditService:

    def __init__(self, db: Session):
        self.db = db
        self.batch_repo = CreditBatchRepository(db)
        self.obligation_repo = ObligationRepository(db)
        self.identity_repo = IdentityRepository(db)
        self.user_repo = UserRepository(db)
        self.log_repo = ActionLogRepository(db)
        self.permissions = PermissionService(db)

    def _require_verified_owner(self, bucket: Bucket, message: str) -> int:
        if bucket.owner_user_id is None:
            raise ValidationException("INDIVIDUAL bucket must have an owner")
        identity = self.identity_repo.get_for_user(bucket.owner_user_id)
        if identity is None or not identity.is_verified:
            raise ValidationException(message)
        return bucket.owner_user_id

    def enable_reporting(self, bucket_id: int, user_id: int) -> Bucket:
        """
        Activate credit reporting on an INDIVIDUAL bucket with autopay set and a
        VERIFIED owner identity.
        """
        bucket = self.permissions.require_bucket_manage(bucket_id, user_id)
        if not bucket.is_individual:
            raise ValidationException("Credit reporting can only be enabled for INDIVIDUAL buckets")
        if bucket.autopay_enabled_at is None:
            raise ValidationException("Autopay must be enabled before credit reporting can be activated")
        owner_user_id = self._require_verified_owner(
            bucket, "Identity must be VERIFIED before enabling credit reporting"
        )

        now = utcnow()
        with transaction(self.db):
            bucket.credit_reporting_enabled = True
            bucket.credit_reporting_status = CreditReportingStatus.ACTIVE
            bucket.credit_reporting_activated_at = bucket.credit_reporting_activated_at or now
            bucket.credit_reporting_paused_at = None
            bucket.credit_reporting_reason = None

            owner = self.user_repo.get(owner_user_id)
            if not owner.credit_reporting_enabled:
                owner.credit_reporting_enabled = True
                owner.credit_reporting_since = now
            self.db.flush()

            self.log_repo.record(
                actor_user_id=user_id,
                action="CREDIT_ENABLE",
                entity_type="BUCKET",
                entity_id=bucket.id,
                household_id=bucket.household_id,
                metadata={"creditReportingEnabled": True, "creditReportingStatus": "ACTIVE"},
            )

        self.db.refresh(bucket)
        logger.info("CREDIT_ENABLE bucket=%s actor=%s", bucket.id, user_id)
        return bucket

    def prepare_batch(self, user_id: int, data: BatchPrepareRequest) -> Tuple[CreditReportBatch, int]:
        """
        Create a batch for the bucket and queue every reportable CLOSED obligation.

        The batch is created even when nothing qualifies, and stays DRAFT in that
        case; it becomes READY once it holds at least one item. The optional
        period bounds filter on ``closed_at``.
        """
        bucket = self.permissions.require_bucket_manage(data.bucket_id, user_id)
        if not bucket.is_individual:
            raise ValidationException("Credit reporting batches can only be prepared for INDIVIDUAL buckets")
        if not bucket.credit_reporting_enabled or bucket.credit_reporting_status != CreditReportingStatus.ACTIVE:
            raise ValidationException("Credit reporting must be ACTIVE before preparing batches")
        owner_user_id = self._require_verified_owner(
            bucket, "Owner identity must be VERIFIED before preparing credit reporting batches"
        )

        candidates = self.obligation_repo.list_closed_for_bucket(
            bucket.id, closed_from=as_utc(data.period_start), closed_to=as_utc(data.period_end)
        )
        eligible = [o for o in candidates if is_reportable(o)]

        now = utcnow()
        with transaction(self.db):
            batch = self.batch_repo.add(
                CreditReportBatch(
                    bucket_id=bucket.id,
                    household_id=bucket.household_id,
                    provider=bucket.credit_reporting_provider,
                    status=CreditReportBatchStatus.DRAFT,
                    period_start=as_utc(data.period_start),
                    period_end=as_utc(data.period_end),
                    created_by_user_id=user_id,
                    metadata_json=None,
                )
            )
            for obligation in eligible:
                self.db.add(
                    CreditReportItem(
                        batch_id=batch.id,
                        obligation_id=obligation.id,
                        user_id=owner_user_id,
                        status=CreditReportItemStatus.QUEUED,
                        amount_cents=obligation.amount_cents,
                        due_date=obligation.due_date,
                        paid_at=obligation.closed_at,
                    )
                )
                obligation.reporting_state = ReportingState.QUEUED
                obligation.reporting_eligible_at = obligation.reporting_eligible_at or now
                obligation.reporting_queued_at = now
                obligation.reporting_error = None

            if eligible:
                batch.status = CreditReportBatchStatus.READY
            batch.metadata_json = json.dumps(
                {
                    "selection": "positive-only",
                    "onTimeRule": "closedAt <= dueDate",
                    "countCandidates": len(candidates),
                    "countEligible": len(eligible),
                }
            )
            self.db.flush()

            self.log_repo.record(
                actor_user_id=user_id,
                action="CREDIT_BATCH_PREPARE",
                entity_type="CREDIT_REPORT_BATCH",
                entity_id=batch.id,
                household_id=bucket.household_id,
                metadata={
                    "bucketId": bucket.id,
                    "createdItems": len(eligible),
                    "periodStart": data.period_start,
                    "periodEnd": data.period_end,
                },
            )

        self.db.refresh(batch)
        logger.info(
            "CREDIT_BATCH_PREPARE batch=%s bucket=%s items=%s actor=%s",
            batch.id,
            bucket.id,
            len(eligible),
            user_id,
        )
        return batch, len(eligible)

    def submit_batch(self, batch_id: int, user_id: int) -> Tuple[CreditReportBatch, int, int]:
        """
        Mock submission of a READY batch.

        Every item flips to SUBMITTED and every obligation still QUEUED flips to
        REPORTED with a ``mock:<batch id>`` provider reference, all at once.

        Raises:
            ValidationException: If the batch is not READY (including re-submits)
        """
        batch = self.batch_repo.get(batch_id)
        if not batch:
            raise ResourceNotFoundException("Credit report batch", batch_id)
        self.permissions.require_bucket_manage(batch.bucket_id, user_id)
        if batch.status != CreditReportBatchStatus.READY:
            raise ValidationException(f"Batch must be READY to submit (current: {batch.status.value})")

        now = utcnow()
        items_updated = 0
        obligations_updated = 0
        with transaction(self.db):
            batch.status = CreditReportBatchStatus.SUBMITTED
            batch.submitted_at = now
            for item in batch.items:
                item.status = CreditReportItemStatus.SUBMITTED
                items_updated += 1
                obligation = item.obligation
                if obligation.reporting_state == ReportingState.QUEUED:
                    obligation.reporting_state = ReportingState.REPORTED
                    obligation.reported_at = now
                    obligation.reporting_error = None
                    obligation.reporting_provider_ref = f"{PROVIDER_REF_PREFIX}{batch.id}"
                    obligations_updated += 1
            self.db.flush()

            self.log_repo.record(
                actor_user_id=user_id,
                action="CREDIT_BATCH_SUBMIT_MOCK",
                entity_type="CREDIT_REPORT_BATCH",
                entity_id=batch.id,
                household_id=batch.household_id,
                metadata={
                    "bucketId": batch.bucket_id,
                    "items": items_updated,
                    "obligations": obligations_updated,
                },
            )

        self.db.refresh(batch)
        logger.info(
            "CREDIT_BATCH_SUBMIT_MOCK batch=%s items=%s obligations=%s actor=%s",
            batch.id,
            items_updated,
            obligations_updated,
            user_id,
        )
        return batch, items_updated, obligations_updated

    def get_batch(self, batch_id: int, user_id: int) -> CreditReportBatch:
        batch = self.batch_repo.get(batch_id)
        if not batch:
            raise ResourceNotFoundException("Credit report batch", batch_id)
        self.permissions.require_bucket_access(batch.bucket_id, user_id)
        return batch
