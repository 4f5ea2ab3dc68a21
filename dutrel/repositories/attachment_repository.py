from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import List, Optional
from dutrel.models.attachment import BucketAttachment
from dutrel.models.bucket import Bucket
from dutrel.repositories.repository import BaseRepository


class AttachmentRepository(BaseRepository[BucketAttachment]):

    def __init__(self, db: Session):
        super().__init__(BucketAttachment, db)

    def list_for_bucket(self, bucket_id: int) -> List[BucketAttachment]:
        stmt = (
            select(BucketAttachment)
            .where(BucketAttachment.bucket_id == bucket_id)
            .order_by(BucketAttachment.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_for_bucket(self, bucket_id: int, attachment_id: int) -> Optional[BucketAttachment]:
        stmt = select(BucketAttachment).where(
            BucketAttachment.id == attachment_id,
            BucketAttachment.bucket_id == bucket_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_pinned_for_household(self, household_id: int) -> List[BucketAttachment]:
        """Pinned attachments across every bucket of a household, newest first."""
        stmt = (
            select(BucketAttachment)
            .join(Bucket, Bucket.id == BucketAttachment.bucket_id)
            .where(
                Bucket.household_id == household_id,
                BucketAttachment.pinned_to_household.is_(True),
            )
            .order_by(BucketAttachment.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())
