from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from dutrel.database import get_db
from dutrel.dependencies import get_current_user
from dutrel.models.user import User
from dutrel.schemas.attachment import PinnedAttachmentListResult
from dutrel.schemas.household import (
    HouseholdCreate,
    HouseholdListResult,
    HouseholdMemberCreate,
    HouseholdMemberResult,
    HouseholdResult,
)
from dutrel.services.household_service import HouseholdService

router = APIRouter()


@router.post("", response_model=HouseholdResult, status_code=status.HTTP_201_CREATED)
async def create_household(
    household_data: HouseholdCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a new household with current user as PAYER."""
    service = HouseholdService(db)
    household = service.create_household(current_user.id, household_data)
    return HouseholdResult.successful(household=household)


@router.get("", response_model=HouseholdListResult)
async def get_my_households(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all households the current user belongs to."""
    service = HouseholdService(db)
    households = service.get_user_households(current_user.id)
    return HouseholdListResult.successful(households=households)


@router.get("/{household_id}", response_model=HouseholdResult)
async def get_household(
    household_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get household details: members by succession rank, plus buckets."""
    service = HouseholdService(db)
    household = service.get_household(household_id, current_user.id)
    return HouseholdResult.successful(household=household)


@router.post("/{household_id}/members", response_model=HouseholdMemberResult, status_code=status.HTTP_201_CREATED)
async def add_member(
    household_id: int,
    member_data: HouseholdMemberCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add an existing user to the household (payer or secondary payer only)."""
    service = HouseholdService(db)
    member = service.add_member(household_id, current_user.id, member_data)
    return HouseholdMemberResult.successful(member=member)


@router.get("/{household_id}/attachments/pinned", response_model=PinnedAttachmentListResult)
async def get_pinned_attachments(
    household_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Pinned attachments across all buckets of the household."""
    service = HouseholdService(db)
    pinned = service.get_pinned_attachments(household_id, current_user.id)
    return PinnedAttachmentListResult.successful(pinned=pinned)
