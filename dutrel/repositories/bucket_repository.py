from sqlalchemy.orm import Session
from sqlalchemy import select, delete, or_
from typing import List, Optional
from dutrel.models.bucket import Bucket, BucketMember, BucketResponsibility, BucketType
from dutrel.models.household import HouseholdMember
from dutrel.repositories.repository import BaseRepository


class BucketRepository(BaseRepository[Bucket]):
    """Repository for buckets and their membership/responsibility rows."""

    def __init__(self, db: Session):
        super().__init__(Bucket, db)

    def list_for_household(self, household_id: int) -> List[Bucket]:
        stmt = select(Bucket).where(Bucket.household_id == household_id).order_by(Bucket.id)
        return list(self.db.execute(stmt).scalars().all())

    def list_visible_to_member(self, member: HouseholdMember) -> List[Bucket]:
        """
        Buckets a non-coordinator sees in listings: INDIVIDUAL buckets they own,
        buckets where they hold an explicit membership row, and buckets they are
        responsible for.
        """
        member_rows = select(BucketMember.bucket_id).where(
            BucketMember.household_member_id == member.id
        )
        responsibility_rows = select(BucketResponsibility.bucket_id).where(
            BucketResponsibility.household_member_id == member.id
        )
        stmt = (
            select(Bucket)
            .where(Bucket.household_id == member.household_id)
            .where(
                or_(
                    (Bucket.type == BucketType.INDIVIDUAL) & (Bucket.owner_user_id == member.user_id),
                    Bucket.id.in_(member_rows),
                    Bucket.id.in_(responsibility_rows),
                )
            )
            .order_by(Bucket.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_responsibility(self, bucket_id: int, household_member_id: int) -> Optional[BucketResponsibility]:
        stmt = select(BucketResponsibility).where(
            BucketResponsibility.bucket_id == bucket_id,
            BucketResponsibility.household_member_id == household_member_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def replace_members(self, bucket: Bucket, household_member_ids: List[int]) -> None:
        """Delete every membership row of ``bucket`` and recreate from ``household_member_ids``."""
        self.db.execute(delete(BucketMember).where(BucketMember.bucket_id == bucket.id))
        self.db.flush()
        self.db.expire(bucket, ["members"])
        for member_id in household_member_ids:
            self.db.add(BucketMember(bucket_id=bucket.id, household_member_id=member_id))
        self.db.flush()
