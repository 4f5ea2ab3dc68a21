import logging
from sqlalchemy.orm import Session
from typing import List

from dutrel.core.clock import as_utc, utcnow
from dutrel.core.exception import ValidationException
from dutrel.database import transaction
from dutrel.models.credit import CreditReportBatchStatus
from dutrel.models.obligation import Obligation, ObligationStatus, ReportingState
from dutrel.repositories.action_log_repository import ActionLogRepository
from dutrel.repositories.credit_repository import CreditBatchRepository
from dutrel.repositories.obligation_repository import ObligationRepository
from dutrel.schemas.obligation import ObligationCreate, ObligationReopen
from dutrel.services.permissions import PermissionService

logger = logging.getLogger(__name__)


class ObligationService:
    """Service layer for obligations and their OPEN/CLOSED lifecycle."""

    def __init__(self, db: Session):
        self.db = db
        self.obligation_repo = ObligationRepository(db)
        self.credit_repo = CreditBatchRepository(db)
        self.log_repo = ActionLogRepository(db)
        self.permissions = PermissionService(db)

    def list_obligations(self, bucket_id: int, user_id: int) -> List[Obligation]:
        self.permissions.require_bucket_access(bucket_id, user_id)
        return self.obligation_repo.list_for_bucket(bucket_id)

    def get_obligation(self, obligation_id: int, user_id: int) -> Obligation:
        return self.permissions.require_obligation_view(obligation_id, user_id)

    def create_obligation(self, user_id: int, data: ObligationCreate) -> Obligation:
        bucket = self.permissions.require_bucket_manage(data.bucket_id, user_id)

        with transaction(self.db):
            obligation = self.obligation_repo.add(
                Obligation(
                    bucket_id=bucket.id,
                    amount_cents=data.amount_cents,
                    period_start=as_utc(data.period_start),
                    period_end=as_utc(data.period_end),
                    due_date=as_utc(data.due_date),
                    status=ObligationStatus.OPEN,
                )
            )
            self.log_repo.record(
                actor_user_id=user_id,
                action="OBLIGATION_CREATE",
                entity_type="OBLIGATION",
                entity_id=obligation.id,
                household_id=bucket.household_id,
                metadata={
                    "bucketId": bucket.id,
                    "amountCents": obligation.amount_cents,
                    "dueDate": obligation.due_date,
                },
            )

        self.db.refresh(obligation)
        logger.info("OBLIGATION_CREATE obligation=%s bucket=%s actor=%s", obligation.id, bucket.id, user_id)
        return obligation

    def reopen_obligation(self, obligation_id: int, user_id: int, data: ObligationReopen) -> Obligation:
        """
        Move a CLOSED obligation back to OPEN.

        A QUEUED obligation leaves every batch that has not been submitted yet and
        returns to reporting state NONE; a READY batch emptied this way drops back
        to DRAFT. A REPORTED obligation stays REPORTED since the report already
        went out.

        Raises:
            ValidationException: If the obligation is not CLOSED
        """
        obligation = self.permissions.require_obligation_manage(obligation_id, user_id)
        if obligation.status != ObligationStatus.CLOSED:
            raise ValidationException("Only CLOSED obligations can be reopened")

        previous_reporting_state = obligation.reporting_state
        withdrawn_batch_ids: List[int] = []

        with transaction(self.db):
            if previous_reporting_state == ReportingState.QUEUED:
                batches = []
                for item in self.credit_repo.pending_items_for_obligation(obligation.id):
                    batches.append(item.batch)
                    self.db.delete(item)
                self.db.flush()
                for batch in batches:
                    withdrawn_batch_ids.append(batch.id)
                    self.db.expire(batch, ["items"])
                    if batch.status == CreditReportBatchStatus.READY and not batch.items:
                        batch.status = CreditReportBatchStatus.DRAFT
                obligation.reporting_state = ReportingState.NONE
                obligation.reporting_eligible_at = None
                obligation.reporting_queued_at = None

            obligation.status = ObligationStatus.OPEN
            obligation.reopened_at = utcnow()
            obligation.reopened_by_user_id = user_id
            obligation.reopen_reason = data.reason
            self.db.flush()

            self.log_repo.record(
                actor_user_id=user_id,
                action="OBLIGATION_REOPEN",
                entity_type="OBLIGATION",
                entity_id=obligation.id,
                household_id=obligation.bucket.household_id,
                metadata={
                    "reason": data.reason,
                    "previousReportingState": previous_reporting_state.value,
                    "reportingState": obligation.reporting_state.value,
                    "withdrawnFromBatchIds": withdrawn_batch_ids,
                },
            )

        self.db.refresh(obligation)
        logger.info(
            "OBLIGATION_REOPEN obligation=%s actor=%s reporting_state=%s",
            obligation.id,
            user_id,
            obligation.reporting_state.value,
        )
        return obligation
