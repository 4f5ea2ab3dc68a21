from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import List
from dutrel.models.credit import (
    CreditReportBatch,
    CreditReportBatchStatus,
    CreditReportItem,
    CreditReportItemStatus,
)
from dutrel.repositories.repository import BaseRepository


class CreditBatchRepository(BaseRepository[CreditReportBatch]):

    def __init__(self, db: Session):
        super().__init__(CreditReportBatch, db)

    def pending_items_for_obligation(self, obligation_id: int) -> List[CreditReportItem]:
        """QUEUED items of ``obligation_id`` that sit in batches not yet submitted."""
        stmt = (
            select(CreditReportItem)
            .join(CreditReportBatch, CreditReportBatch.id == CreditReportItem.batch_id)
            .where(
                CreditReportItem.obligation_id == obligation_id,
                CreditReportItem.status == CreditReportItemStatus.QUEUED,
                CreditReportBatch.status != CreditReportBatchStatus.SUBMITTED,
            )
        )
        return list(self.db.execute(stmt).scalars().all())
