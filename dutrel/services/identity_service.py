import logging
from sqlalchemy.orm import Session
from typing import Optional

from dutrel.config import settings
from dutrel.core.clock import utcnow
from dutrel.core.exception import AuthorizationException
from dutrel.database import transaction
from dutrel.models.identity import IdentityStatus, UserIdentity
from dutrel.repositories.action_log_repository import ActionLogRepository
from dutrel.repositories.identity_repository import IdentityRepository
from dutrel.schemas.identity import IdentityUpsert

logger = logging.getLogger(__name__)

_DETAIL_FIELDS = (
    "legal_full_name",
    "dob",
    "phone_e164",
    "ssn_last4",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "method",
)


class IdentityService:

    def __init__(self, db: Session):
        self.db = db
        self.identity_repo = IdentityRepository(db)
        self.log_repo = ActionLogRepository(db)

    def get_identity(self, user_id: int) -> Optional[UserIdentity]:
        return self.identity_repo.get_for_user(user_id)

    def upsert_identity(self, user_id: int, data: IdentityUpsert) -> UserIdentity:
        """
        Create or update the caller's identity record.

        Submitting moves the record to PENDING unless it is already VERIFIED.
        Fields missing from the submission keep their stored value.
        ``force_verify`` marks the record VERIFIED outside production.

        Raises:
            AuthorizationException: If ``force_verify`` is used in production
        """
        if data.force_verify and settings.is_production:
            raise AuthorizationException(message="forceVerify is not allowed in production")

        identity = self.identity_repo.get_for_user(user_id)
        is_new = identity is None
        if is_new:
            identity = UserIdentity(user_id=user_id, status=IdentityStatus.UNVERIFIED)

        for field in _DETAIL_FIELDS:
            value = getattr(data, field)
            if value is not None:
                setattr(identity, field, value)
        identity.country = data.country

        if identity.status != IdentityStatus.VERIFIED:
            identity.status = IdentityStatus.PENDING

        if data.force_verify:
            identity.status = IdentityStatus.VERIFIED
            identity.verified_at = utcnow()
            identity.rejected_at = None
            identity.rejected_reason = None

        with transaction(self.db):
            if is_new:
                self.identity_repo.add(identity)
            else:
                self.db.flush()
            self.log_repo.record(
                actor_user_id=user_id,
                action="IDENTITY_UPSERT",
                entity_type="USER_IDENTITY",
                entity_id=identity.id,
                household_id=None,
                metadata={
                    "status": identity.status.value,
                    "method": identity.method.value if identity.method else None,
                },
            )

        self.db.refresh(identity)
        logger.info("IDENTITY_UPSERT identity=%s user=%s status=%s", identity.id, user_id, identity.status.value)
        return identity
