from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import List
from dutrel.models.receipt import Receipt
from dutrel.repositories.repository import BaseRepository


class ReceiptRepository(BaseRepository[Receipt]):

    def __init__(self, db: Session):
        super().__init__(Receipt, db)

    def list_for_obligation(self, obligation_id: int) -> List[Receipt]:
        stmt = (
            select(Receipt)
            .where(Receipt.obligation_id == obligation_id)
            .order_by(Receipt.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())
