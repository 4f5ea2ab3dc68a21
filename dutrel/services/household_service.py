import logging
from sqlalchemy.orm import Session
from typing import List

from dutrel.core.exception import BadRequestException
from dutrel.database import transaction
from dutrel.models.attachment import BucketAttachment
from dutrel.models.household import Household, HouseholdMember, HouseholdRole
from dutrel.repositories.action_log_repository import ActionLogRepository
from dutrel.repositories.attachment_repository import AttachmentRepository
from dutrel.repositories.household_repository import HouseholdRepository
from dutrel.repositories.user_repository import UserRepository
from dutrel.schemas.household import HouseholdCreate, HouseholdMemberCreate
from dutrel.services.permissions import PermissionService

logger = logging.getLogger(__name__)


class HouseholdService:
    """Service layer for household operations."""

    def __init__(self, db: Session):
        self.db = db
        self.household_repo = HouseholdRepository(db)
        self.user_repo = UserRepository(db)
        self.attachment_repo = AttachmentRepository(db)
        self.log_repo = ActionLogRepository(db)
        self.permissions = PermissionService(db)

    def create_household(self, user_id: int, data: HouseholdCreate) -> Household:
        """
        Create a new household with the caller as PAYER (succession rank 1).

        Args:
            user_id: ID of user creating the household
            data: Household creation data

        Returns:
            Created household with its first member
        """
        with transaction(self.db):
            household = self.household_repo.add(Household(name=data.name))
            self.household_repo.add(
                HouseholdMember(
                    household_id=household.id,
                    user_id=user_id,
                    role=HouseholdRole.PAYER,
                    succession_rank=1,
                )
            )
            self.log_repo.record(
                actor_user_id=user_id,
                action="HOUSEHOLD_CREATE",
                entity_type="HOUSEHOLD",
                entity_id=household.id,
                household_id=household.id,
                metadata={"name": household.name},
            )

        self.db.refresh(household)
        logger.info("HOUSEHOLD_CREATE household=%s actor=%s", household.id, user_id)
        return household

    def get_user_households(self, user_id: int) -> List[Household]:
        """Get all households a user belongs to."""
        return self.household_repo.get_user_households(user_id)

    def get_household(self, household_id: int, user_id: int) -> Household:
        """
        Get household details.

        Raises:
            ResourceNotFoundException: If household not found
            AuthorizationException: If user is not a member
        """
        self.permissions.require_household_member(household_id, user_id)
        return self.household_repo.get(household_id)

    def add_member(self, household_id: int, user_id: int, data: HouseholdMemberCreate) -> HouseholdMember:
        """
        Add an existing user to the household (coordinators only).

        Raises:
            ResourceNotFoundException: If household not found
            AuthorizationException: If the caller is not a coordinator
            BadRequestException: If the user is unknown or already a member
        """
        self.permissions.require_coordinator(household_id, user_id)

        if not self.user_repo.exists(data.user_id):
            raise BadRequestException(f"User {data.user_id} does not exist")
        if self.household_repo.is_member(household_id, data.user_id):
            raise BadRequestException("User is already a member of this household")

        rank = data.succession_rank or self.household_repo.next_succession_rank(household_id)

        with transaction(self.db):
            member = self.household_repo.add(
                HouseholdMember(
                    household_id=household_id,
                    user_id=data.user_id,
                    role=data.role,
                    succession_rank=rank,
                )
            )
            self.log_repo.record(
                actor_user_id=user_id,
                action="HOUSEHOLD_MEMBER_ADD",
                entity_type="HOUSEHOLD_MEMBER",
                entity_id=member.id,
                household_id=household_id,
                metadata={"userId": data.user_id, "role": data.role.value, "successionRank": rank},
            )

        self.db.refresh(member)
        logger.info("HOUSEHOLD_MEMBER_ADD household=%s member=%s actor=%s", household_id, member.id, user_id)
        return member

    def get_pinned_attachments(self, household_id: int, user_id: int) -> List[BucketAttachment]:
        """Pinned attachments across every bucket of the household."""
        self.permissions.require_household_member(household_id, user_id)
        return self.attachment_repo.list_pinned_for_household(household_id)
