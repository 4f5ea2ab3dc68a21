from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dutrel.database import get_db
from dutrel.dependencies import get_current_user
from dutrel.models.user import User
from dutrel.schemas.obligation import (
    ObligationCreate,
    ObligationListResult,
    ObligationReopen,
    ObligationResult,
)
from dutrel.services.obligation_service import ObligationService

router = APIRouter()


@router.get("", response_model=ObligationListResult)
async def list_obligations(
    bucket_id: int = Query(..., alias="bucketId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List a bucket's obligations, newest first."""
    service = ObligationService(db)
    obligations = service.list_obligations(bucket_id, current_user.id)
    return ObligationListResult.successful(obligations=obligations)


@router.post("", response_model=ObligationResult, status_code=status.HTTP_201_CREATED)
async def create_obligation(
    obligation_data: ObligationCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Open a new obligation on a bucket."""
    service = ObligationService(db)
    obligation = service.create_obligation(current_user.id, obligation_data)
    return ObligationResult.successful(obligation=obligation)


@router.get("/{obligation_id}", response_model=ObligationResult)
async def get_obligation(
    obligation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get an obligation with its receipts."""
    service = ObligationService(db)
    obligation = service.get_obligation(obligation_id, current_user.id)
    return ObligationResult.successful(obligation=obligation)


@router.post("/{obligation_id}/reopen", response_model=ObligationResult)
async def reopen_obligation(
    obligation_id: int,
    reopen_data: ObligationReopen,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reopen a CLOSED obligation. A reason is required."""
    service = ObligationService(db)
    obligation = service.reopen_obligation(obligation_id, current_user.id, reopen_data)
    return ObligationResult.successful(obligation=obligation)
