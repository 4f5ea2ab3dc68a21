from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dutrel.database import get_db
from dutrel.dependencies import get_current_user
from dutrel.models.user import User
from dutrel.schemas.credit import (
    BatchPrepareRequest,
    BatchPrepareResult,
    BatchResult,
    BatchSubmitRequest,
    BatchSubmitResult,
    CreditEnableRequest,
    CreditEnableResult,
)
from dutrel.services.credit_service import CreditService

router = APIRouter()


@router.post("/enable", response_model=CreditEnableResult)
async def enable_credit_reporting(
    enable_data: CreditEnableRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Activate credit reporting on an INDIVIDUAL bucket."""
    service = CreditService(db)
    bucket = service.enable_reporting(enable_data.bucket_id, current_user.id)
    return CreditEnableResult.successful(bucket=bucket)


@router.post("/batch/prepare", response_model=BatchPrepareResult)
async def prepare_batch(
    prepare_data: BatchPrepareRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Queue the bucket's on-time closed obligations into a new batch."""
    service = CreditService(db)
    batch, items_created = service.prepare_batch(current_user.id, prepare_data)
    return BatchPrepareResult.successful(batch=batch, items_created=items_created)


@router.post("/batch/submit", response_model=BatchSubmitResult)
async def submit_batch(
    submit_data: BatchSubmitRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mock-submit a READY batch."""
    service = CreditService(db)
    batch, items_updated, obligations_updated = service.submit_batch(submit_data.batch_id, current_user.id)
    return BatchSubmitResult.successful(
        batch=batch,
        items_updated=items_updated,
        obligations_updated=obligations_updated,
    )


@router.get("/batches/{batch_id}", response_model=BatchResult)
async def get_batch(
    batch_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    service = CreditService(db)
    batch = service.get_batch(batch_id, current_user.id)
    return BatchResult.successful(batch=batch)
