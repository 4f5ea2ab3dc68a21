import logging
from sqlalchemy.orm import Session
from typing import Any, Callable, Dict, List, Optional, Tuple

from dutrel.core.exception import AuthorizationException, ValidationException
from dutrel.database import transaction
from dutrel.models.bucket import Bucket, BucketMember, BucketResponsibility, BucketType, ResponsibilityRole
from dutrel.repositories.action_log_repository import ActionLogRepository
from dutrel.repositories.bucket_repository import BucketRepository
from dutrel.repositories.household_repository import HouseholdRepository
from dutrel.schemas.bucket import BucketCreate, BucketUpdate
from dutrel.services.permissions import PermissionService, can_manage_group_buckets, can_manage_individual_bucket
from dutrel.storage import StorageDriver, StorageProvider, get_storage_driver

logger = logging.getLogger(__name__)


def _unique(ids: List[int]) -> List[int]:
    """De-duplicate while keeping first-seen order."""
    return list(dict.fromkeys(ids))


class BucketService:
    """Service layer for bucket operations."""

    def __init__(
        self,
        db: Session,
        storage_factory: Callable[[Optional[StorageProvider]], StorageDriver] = get_storage_driver,
    ):
        self.db = db
        self.bucket_repo = BucketRepository(db)
        self.household_repo = HouseholdRepository(db)
        self.log_repo = ActionLogRepository(db)
        self.permissions = PermissionService(db)
        self.storage_factory = storage_factory

    def _require_household_members(self, household_id: int, member_ids: List[int], label: str) -> None:
        found = self.household_repo.get_members_by_ids(household_id, member_ids)
        if len(found) != len(set(member_ids)):
            raise ValidationException(f"Invalid {label} ids")

    def list_buckets(self, household_id: int, user_id: int) -> List[Bucket]:
        member = self.permissions.require_household_member(household_id, user_id)
        return self.permissions.visible_buckets(member)

    def get_bucket(self, bucket_id: int, user_id: int) -> Bucket:
        return self.permissions.require_bucket_access(bucket_id, user_id)

    def create_bucket(self, user_id: int, data: BucketCreate) -> Bucket:
        """
        Create a GROUP or INDIVIDUAL bucket with its membership and responsibility rows.

        Any household member may create an INDIVIDUAL bucket for themselves;
        GROUP buckets and buckets owned by someone else need a coordinator.
        Responsible members are merged into GROUP membership and get PRIMARY
        then SECONDARY roles in request order.
        """
        caller = self.permissions.require_household_member(data.household_id, user_id)

        member_ids: List[int] = []
        responsible_ids = _unique(data.responsible_household_member_ids)
        owner_user_id = None

        if data.type == BucketType.INDIVIDUAL:
            owner_user_id = data.owner_user_id or user_id
            if not can_manage_individual_bucket(user_id, owner_user_id, caller.role):
                raise AuthorizationException(message="Only a coordinator can create buckets for other members")
            if owner_user_id != user_id and not self.household_repo.is_member(data.household_id, owner_user_id):
                raise ValidationException("Owner must be a member of the household", field="ownerUserId")
        else:
            if not can_manage_group_buckets(caller.role):
                raise AuthorizationException(message="Only a coordinator can create group buckets")
            member_ids = _unique(data.member_household_member_ids)
            if member_ids:
                self._require_household_members(data.household_id, member_ids, "member")

        if responsible_ids:
            self._require_household_members(data.household_id, responsible_ids, "responsible member")
            if data.type == BucketType.GROUP:
                member_ids = _unique(member_ids + responsible_ids)

        with transaction(self.db):
            bucket = self.bucket_repo.add(
                Bucket(
                    household_id=data.household_id,
                    name=data.name,
                    type=data.type,
                    cadence=data.cadence,
                    variability=data.variability,
                    owner_user_id=owner_user_id,
                    buffer_target_cents=data.buffer_target_cents,
                    autopay_enabled_at=data.autopay_enabled_at,
                    funding_mode=data.funding_mode,
                )
            )
            for member_id in member_ids:
                self.db.add(BucketMember(bucket_id=bucket.id, household_member_id=member_id))
            for index, member_id in enumerate(responsible_ids):
                self.db.add(
                    BucketResponsibility(
                        bucket_id=bucket.id,
                        household_member_id=member_id,
                        role=ResponsibilityRole.PRIMARY if index == 0 else ResponsibilityRole.SECONDARY,
                    )
                )
            self.log_repo.record(
                actor_user_id=user_id,
                action="BUCKET_CREATE",
                entity_type="BUCKET",
                entity_id=bucket.id,
                household_id=bucket.household_id,
                metadata={
                    "bucketId": bucket.id,
                    "name": bucket.name,
                    "type": bucket.type.value,
                    "memberHouseholdMemberIds": member_ids,
                    "responsibleHouseholdMemberIds": responsible_ids,
                },
            )

        self.db.refresh(bucket)
        logger.info("BUCKET_CREATE bucket=%s household=%s actor=%s", bucket.id, bucket.household_id, user_id)
        return bucket

    def update_bucket(self, bucket_id: int, user_id: int, data: BucketUpdate) -> Bucket:
        """
        Apply a partial update. ``member_household_member_ids`` replaces the GROUP
        membership wholesale.
        """
        bucket = self.permissions.require_bucket_manage(bucket_id, user_id)
        changes: Dict[str, Any] = data.model_dump(exclude_unset=True)
        member_ids = changes.pop("member_household_member_ids", None)

        if member_ids is not None:
            if bucket.type != BucketType.GROUP:
                raise ValidationException("Membership can only be set on GROUP buckets", field="memberHouseholdMemberIds")
            member_ids = _unique(member_ids)
            if not member_ids:
                raise ValidationException("At least one member is required", field="memberHouseholdMemberIds")
            self._require_household_members(bucket.household_id, member_ids, "member")

        with transaction(self.db):
            self.bucket_repo.update(bucket, changes)
            if member_ids is not None:
                self.bucket_repo.replace_members(bucket, member_ids)
            self.log_repo.record(
                actor_user_id=user_id,
                action="BUCKET_UPDATE",
                entity_type="BUCKET",
                entity_id=bucket.id,
                household_id=bucket.household_id,
                metadata={
                    "bucketId": bucket.id,
                    "changes": data.model_dump(mode="json", by_alias=True, exclude_unset=True),
                },
            )

        self.db.refresh(bucket)
        logger.info("BUCKET_UPDATE bucket=%s actor=%s", bucket.id, user_id)
        return bucket

    def _stored_objects(self, bucket: Bucket) -> List[Tuple[StorageProvider, str]]:
        stored = [(a.storage_provider, a.object_key) for a in bucket.attachments if a.object_key]
        for obligation in bucket.obligations:
            stored.extend((r.storage_provider, r.object_key) for r in obligation.receipts if r.object_key)
        return stored

    def delete_bucket(self, bucket_id: int, user_id: int) -> int:
        """
        Delete a bucket and everything filed under it.

        Stored attachment and receipt files are deleted with it.
        """
        bucket = self.permissions.require_bucket_manage(bucket_id, user_id)
        household_id = bucket.household_id
        name = bucket.name
        stored = self._stored_objects(bucket)

        with transaction(self.db):
            self.bucket_repo.remove(bucket)
            self.log_repo.record(
                actor_user_id=user_id,
                action="BUCKET_DELETE",
                entity_type="BUCKET",
                entity_id=bucket_id,
                household_id=household_id,
                metadata={"bucketId": bucket_id, "name": name, "objectKeys": [key for _, key in stored]},
            )
            # Last step, so a storage failure rolls the row deletion back
            for provider, key in stored:
                self.storage_factory(provider).delete_object(key)

        logger.info("BUCKET_DELETE bucket=%s actor=%s", bucket_id, user_id)
        return bucket_id
