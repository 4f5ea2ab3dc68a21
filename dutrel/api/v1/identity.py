from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dutrel.database import get_db
from dutrel.dependencies import get_current_user
from dutrel.models.user import User
from dutrel.schemas.identity import IdentityResult, IdentityUpsert
from dutrel.services.identity_service import IdentityService

router = APIRouter()


@router.get("", response_model=IdentityResult)
async def get_identity(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The caller's identity record, or null."""
    service = IdentityService(db)
    identity = service.get_identity(current_user.id)
    return IdentityResult.successful(identity=identity)


@router.post("", response_model=IdentityResult)
async def upsert_identity(
    identity_data: IdentityUpsert,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Submit or update identity details."""
    service = IdentityService(db)
    identity = service.upsert_identity(current_user.id, identity_data)
    return IdentityResult.successful(identity=identity)
