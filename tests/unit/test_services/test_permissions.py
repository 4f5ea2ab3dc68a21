import pytest
from sqlalchemy.orm import Session

from dutrel.core.exception import AuthorizationException, ResourceNotFoundException
from dutrel.models.bucket import BucketType
from dutrel.models.household import HouseholdRole
from dutrel.schemas.bucket import BucketCreate
from dutrel.schemas.obligation import ObligationCreate
from dutrel.services.bucket_service import BucketService
from dutrel.services.obligation_service import ObligationService
from dutrel.services.permissions import (
    PermissionService,
    can_manage_group_buckets,
    can_manage_individual_bucket,
    is_coordinator,
)


@pytest.mark.unit
class TestRoleHelpers:

    def test_coordinator_roles(self):
        assert is_coordinator(HouseholdRole.PAYER)
        assert is_coordinator(HouseholdRole.SECONDARY_PAYER)
        assert not is_coordinator(HouseholdRole.MEMBER)
        assert not is_coordinator(None)

    def test_group_buckets_need_coordinator(self):
        assert can_manage_group_buckets(HouseholdRole.SECONDARY_PAYER)
        assert not can_manage_group_buckets(HouseholdRole.MEMBER)

    def test_individual_bucket_owner_or_coordinator(self):
        assert can_manage_individual_bucket(7, 7, HouseholdRole.MEMBER)
        assert can_manage_individual_bucket(7, 9, HouseholdRole.PAYER)
        assert not can_manage_individual_bucket(7, 9, HouseholdRole.MEMBER)
        assert not can_manage_individual_bucket(7, None, HouseholdRole.MEMBER)


@pytest.mark.unit
class TestPermissionService:
    """Unit tests for PermissionService."""

    def _group_bucket(self, db_session, household, payer_user, **kwargs):
        return BucketService(db_session).create_bucket(
            payer_user.id,
            BucketCreate(household_id=household.id, name="Internet", type=BucketType.GROUP, **kwargs),
        )

    def test_require_household_member_missing_household(self, db_session: Session, payer_user):
        service = PermissionService(db_session)

        with pytest.raises(ResourceNotFoundException):
            service.require_household_member(999, payer_user.id)

    def test_require_household_member_non_member(self, db_session: Session, test_household, outsider_user):
        service = PermissionService(db_session)

        with pytest.raises(AuthorizationException):
            service.require_household_member(test_household.id, outsider_user.id)

    def test_require_coordinator_rejects_member(self, db_session: Session, test_household, member_user):
        service = PermissionService(db_session)

        with pytest.raises(AuthorizationException) as exc_info:
            service.require_coordinator(test_household.id, member_user.id)

        assert exc_info.value.status_code == 403

    def test_member_can_view_but_not_manage_group_bucket(
        self, db_session: Session, test_household, payer_user, member_user
    ):
        bucket = self._group_bucket(db_session, test_household, payer_user)
        service = PermissionService(db_session)

        assert service.can_view_bucket(member_user.id, bucket.id)
        assert not service.can_manage_bucket(member_user.id, bucket.id)
        assert service.can_manage_bucket(payer_user.id, bucket.id)

    def test_responsibility_grants_manage(
        self, db_session: Session, test_household, payer_user, member_user, member_member
    ):
        bucket = self._group_bucket(
            db_session, test_household, payer_user, responsible_household_member_ids=[member_member.id]
        )
        service = PermissionService(db_session)

        assert service.can_manage_bucket(member_user.id, bucket.id)
        assert service.require_bucket_manage(bucket.id, member_user.id).id == bucket.id

    def test_outsider_sees_nothing(self, db_session: Session, test_household, payer_user, outsider_user):
        bucket = self._group_bucket(db_session, test_household, payer_user)
        service = PermissionService(db_session)

        assert not service.can_view_bucket(outsider_user.id, bucket.id)
        with pytest.raises(AuthorizationException):
            service.require_bucket_access(bucket.id, outsider_user.id)

    def test_missing_bucket_is_not_found(self, db_session: Session, payer_user):
        service = PermissionService(db_session)

        assert not service.can_manage_bucket(payer_user.id, 12345)
        with pytest.raises(ResourceNotFoundException):
            service.require_bucket_manage(12345, payer_user.id)

    def test_obligation_permissions_follow_bucket(
        self, db_session: Session, test_household, payer_user, member_user, outsider_user
    ):
        bucket = self._group_bucket(db_session, test_household, payer_user)
        obligation = ObligationService(db_session).create_obligation(
            payer_user.id, ObligationCreate(bucket_id=bucket.id, amount_cents=5000)
        )
        service = PermissionService(db_session)

        assert service.can_view_obligation(member_user.id, obligation.id)
        assert not service.can_manage_obligation(member_user.id, obligation.id)
        assert service.can_manage_obligation(payer_user.id, obligation.id)
        assert not service.can_view_obligation(outsider_user.id, obligation.id)

    def test_visible_buckets_for_member(
        self, db_session: Session, test_household, payer_user, member_user, member_member
    ):
        buckets = BucketService(db_session)
        hidden = self._group_bucket(db_session, test_household, payer_user)
        shared = self._group_bucket(
            db_session, test_household, payer_user, member_household_member_ids=[member_member.id]
        )
        own = buckets.create_bucket(
            member_user.id,
            BucketCreate(household_id=test_household.id, name="Phone", type=BucketType.INDIVIDUAL),
        )
        service = PermissionService(db_session)

        visible_ids = [b.id for b in service.visible_buckets(member_member)]

        assert shared.id in visible_ids
        assert own.id in visible_ids
        assert hidden.id not in visible_ids

    def test_visible_buckets_for_coordinator(self, db_session: Session, test_household, payer_user, payer_member):
        first = self._group_bucket(db_session, test_household, payer_user)
        second = self._group_bucket(db_session, test_household, payer_user)
        service = PermissionService(db_session)

        assert [b.id for b in service.visible_buckets(payer_member)] == [first.id, second.id]
