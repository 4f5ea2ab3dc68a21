from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Optional
from dutrel.models.identity import UserIdentity
from dutrel.repositories.repository import BaseRepository


class IdentityRepository(BaseRepository[UserIdentity]):

    def __init__(self, db: Session):
        super().__init__(UserIdentity, db)

    def get_for_user(self, user_id: int) -> Optional[UserIdentity]:
        stmt = select(UserIdentity).where(UserIdentity.user_id == user_id)
        return self.db.execute(stmt).scalar_one_or_none()
