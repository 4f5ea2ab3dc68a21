from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import List, Optional
from datetime import datetime
from dutrel.models.obligation import Obligation, ObligationStatus
from dutrel.repositories.repository import BaseRepository


class ObligationRepository(BaseRepository[Obligation]):

    def __init__(self, db: Session):
        super().__init__(Obligation, db)

    def list_for_bucket(self, bucket_id: int) -> List[Obligation]:
        """Obligations of a bucket, newest first."""
        stmt = (
            select(Obligation)
            .where(Obligation.bucket_id == bucket_id)
            .order_by(Obligation.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_closed_for_bucket(
        self,
        bucket_id: int,
        closed_from: Optional[datetime] = None,
        closed_to: Optional[datetime] = None,
    ) -> List[Obligation]:
        """CLOSED obligations of a bucket, optionally bounded by ``closed_at``."""
        stmt = select(Obligation).where(
            Obligation.bucket_id == bucket_id,
            Obligation.status == ObligationStatus.CLOSED,
        )
        if closed_from is not None:
            stmt = stmt.where(Obligation.closed_at >= closed_from)
        if closed_to is not None:
            stmt = stmt.where(Obligation.closed_at <= closed_to)
        stmt = stmt.order_by(Obligation.id)
        return list(self.db.execute(stmt).scalars().all())
