"""
Permission resolution for households, buckets, obligations and receipts.

Read access to a bucket, and everything filed under it, is granted to every
member of the bucket's household. Managing a bucket requires one of:

* a coordinator role (PAYER or SECONDARY_PAYER) in the household,
* ownership of the INDIVIDUAL bucket,
* a BucketResponsibility row (PRIMARY or SECONDARY) for the bucket.

Explicit BucketMember rows only narrow what non-coordinators see when listing
buckets. Lookups return ``None`` for missing rows; ``require_*`` helpers raise
404 for missing entities and 403 for callers without the needed access.
"""

from sqlalchemy.orm import Session
from typing import List, Optional

from dutrel.core.exception import AuthorizationException, ResourceNotFoundException
from dutrel.models.bucket import Bucket, BucketType
from dutrel.models.household import COORDINATOR_ROLES, HouseholdMember, HouseholdRole
from dutrel.models.obligation import Obligation
from dutrel.models.receipt import Receipt
from dutrel.repositories.bucket_repository import BucketRepository
from dutrel.repositories.household_repository import HouseholdRepository
from dutrel.repositories.obligation_repository import ObligationRepository
from dutrel.repositories.receipt_repository import ReceiptRepository


def is_coordinator(role: Optional[HouseholdRole]) -> bool:
    return role in COORDINATOR_ROLES


def can_manage_group_buckets(role: Optional[HouseholdRole]) -> bool:
    return is_coordinator(role)


def can_manage_individual_bucket(
    user_id: int, owner_user_id: Optional[int], role: Optional[HouseholdRole]
) -> bool:
    return is_coordinator(role) or (owner_user_id is not None and owner_user_id == user_id)


class PermissionService:
    """Answers "can user X do Y to entity Z" from membership, roles and bucket rows."""

    def __init__(self, db: Session):
        self.db = db
        self.household_repo = HouseholdRepository(db)
        self.bucket_repo = BucketRepository(db)
        self.obligation_repo = ObligationRepository(db)
        self.receipt_repo = ReceiptRepository(db)

    # Lookups

    def get_household_member(self, household_id: int, user_id: int) -> Optional[HouseholdMember]:
        return self.household_repo.get_member(household_id, user_id)

    def get_bucket(self, bucket_id: int) -> Optional[Bucket]:
        return self.bucket_repo.get(bucket_id)

    def get_obligation(self, obligation_id: int) -> Optional[Obligation]:
        return self.obligation_repo.get(obligation_id)

    def get_receipt(self, receipt_id: int) -> Optional[Receipt]:
        return self.receipt_repo.get(receipt_id)

    # Predicates

    def _can_manage(self, user_id: int, bucket: Bucket) -> bool:
        member = self.get_household_member(bucket.household_id, user_id)
        if member is None:
            return False
        if bucket.type == BucketType.GROUP and can_manage_group_buckets(member.role):
            return True
        if bucket.is_individual and can_manage_individual_bucket(
            user_id, bucket.owner_user_id, member.role
        ):
            return True
        return self.bucket_repo.get_responsibility(bucket.id, member.id) is not None

    def can_manage_bucket(self, user_id: int, bucket_id: int) -> bool:
        bucket = self.get_bucket(bucket_id)
        if bucket is None:
            return False
        return self._can_manage(user_id, bucket)

    def can_view_bucket(self, user_id: int, bucket_id: int) -> bool:
        bucket = self.get_bucket(bucket_id)
        if bucket is None:
            return False
        return self.get_household_member(bucket.household_id, user_id) is not None

    def can_manage_obligation(self, user_id: int, obligation_id: int) -> bool:
        obligation = self.get_obligation(obligation_id)
        if obligation is None:
            return False
        return self.can_manage_bucket(user_id, obligation.bucket_id)

    def can_view_obligation(self, user_id: int, obligation_id: int) -> bool:
        obligation = self.get_obligation(obligation_id)
        if obligation is None:
            return False
        return self.can_view_bucket(user_id, obligation.bucket_id)

    def can_verify_receipt(self, user_id: int, receipt_id: int) -> bool:
        receipt = self.get_receipt(receipt_id)
        if receipt is None:
            return False
        return self.can_manage_obligation(user_id, receipt.obligation_id)

    # Guards

    def require_household_member(self, household_id: int, user_id: int) -> HouseholdMember:
        if not self.household_repo.exists(household_id):
            raise ResourceNotFoundException("Household", household_id)
        member = self.get_household_member(household_id, user_id)
        if member is None:
            raise AuthorizationException(message="You are not a member of this household")
        return member

    def require_coordinator(self, household_id: int, user_id: int) -> HouseholdMember:
        member = self.require_household_member(household_id, user_id)
        if not is_coordinator(member.role):
            raise AuthorizationException(message="Only a payer or secondary payer can do this")
        return member

    def require_bucket_access(self, bucket_id: int, user_id: int) -> Bucket:
        bucket = self.get_bucket(bucket_id)
        if bucket is None:
            raise ResourceNotFoundException("Bucket", bucket_id)
        if self.get_household_member(bucket.household_id, user_id) is None:
            raise AuthorizationException()
        return bucket

    def require_bucket_manage(self, bucket_id: int, user_id: int) -> Bucket:
        bucket = self.get_bucket(bucket_id)
        if bucket is None:
            raise ResourceNotFoundException("Bucket", bucket_id)
        if not self._can_manage(user_id, bucket):
            raise AuthorizationException(message="Not authorized to manage this bucket")
        return bucket

    def require_obligation_view(self, obligation_id: int, user_id: int) -> Obligation:
        obligation = self.get_obligation(obligation_id)
        if obligation is None:
            raise ResourceNotFoundException("Obligation", obligation_id)
        if self.get_household_member(obligation.household_id, user_id) is None:
            raise AuthorizationException()
        return obligation

    def require_obligation_manage(self, obligation_id: int, user_id: int) -> Obligation:
        obligation = self.get_obligation(obligation_id)
        if obligation is None:
            raise ResourceNotFoundException("Obligation", obligation_id)
        if not self._can_manage(user_id, obligation.bucket):
            raise AuthorizationException(message="Not authorized to manage this obligation")
        return obligation

    def require_receipt_view(self, receipt_id: int, user_id: int) -> Receipt:
        receipt = self.get_receipt(receipt_id)
        if receipt is None:
            raise ResourceNotFoundException("Receipt", receipt_id)
        self.require_obligation_view(receipt.obligation_id, user_id)
        return receipt

    def require_receipt_review(self, receipt_id: int, user_id: int) -> Receipt:
        receipt = self.get_receipt(receipt_id)
        if receipt is None:
            raise ResourceNotFoundException("Receipt", receipt_id)
        if not self.can_verify_receipt(user_id, receipt_id):
            raise AuthorizationException(message="Not authorized to review this receipt")
        return receipt

    # Listing scope

    def visible_buckets(self, member: HouseholdMember) -> List[Bucket]:
        """Buckets ``member`` sees when listing the household's buckets."""
        if is_coordinator(member.role):
            return self.bucket_repo.list_for_household(member.household_id)
        return self.bucket_repo.list_visible_to_member(member)
