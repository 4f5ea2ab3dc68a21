from sqlalchemy.orm import Session
from sqlalchemy import select, func
from typing import List, Optional
from dutrel.models.household import Household, HouseholdMember
from dutrel.repositories.repository import BaseRepository


class HouseholdRepository(BaseRepository[Household]):
    """Repository for household operations."""

    def __init__(self, db: Session):
        super().__init__(Household, db)

    def get_user_households(self, user_id: int) -> List[Household]:
        """Get all households a user belongs to, newest first."""
        stmt = (
            select(Household)
            .join(HouseholdMember, HouseholdMember.household_id == Household.id)
            .where(HouseholdMember.user_id == user_id)
            .order_by(Household.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_member(self, household_id: int, user_id: int) -> Optional[HouseholdMember]:
        """Get the membership row of a user in a household."""
        stmt = select(HouseholdMember).where(
            HouseholdMember.household_id == household_id,
            HouseholdMember.user_id == user_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_members_by_ids(self, household_id: int, member_ids: List[int]) -> List[HouseholdMember]:
        """Membership rows of ``household_id`` among ``member_ids``."""
        if not member_ids:
            return []
        stmt = select(HouseholdMember).where(
            HouseholdMember.household_id == household_id,
            HouseholdMember.id.in_(member_ids),
        )
        return list(self.db.execute(stmt).scalars().all())

    def is_member(self, household_id: int, user_id: int) -> bool:
        return self.get_member(household_id, user_id) is not None

    def next_succession_rank(self, household_id: int) -> int:
        """One past the highest succession rank currently used."""
        stmt = select(func.max(HouseholdMember.succession_rank)).where(
            HouseholdMember.household_id == household_id
        )
        current = self.db.execute(stmt).scalar()
        return (current or 0) + 1
