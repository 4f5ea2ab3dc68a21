from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from dutrel.database import get_db
from dutrel.dependencies import get_current_user
from dutrel.models.user import User
from dutrel.schemas.bucket import (
    BucketCreate,
    BucketDeleteResult,
    BucketListResult,
    BucketResult,
    BucketUpdate,
)
from dutrel.services.bucket_service import BucketService

router = APIRouter()


@router.get("", response_model=BucketListResult)
async def list_buckets(
    household_id: int = Query(..., alias="householdId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the household's buckets visible to the caller."""
    service = BucketService(db)
    buckets = service.list_buckets(household_id, current_user.id)
    return BucketListResult.successful(buckets=buckets)


@router.post("", response_model=BucketResult, status_code=status.HTTP_201_CREATED)
async def create_bucket(
    bucket_data: BucketCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a GROUP or INDIVIDUAL bucket."""
    service = BucketService(db)
    bucket = service.create_bucket(current_user.id, bucket_data)
    return BucketResult.successful(bucket=bucket)


@router.get("/{bucket_id}", response_model=BucketResult)
async def get_bucket(
    bucket_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a bucket with its members, responsibilities and obligations."""
    service = BucketService(db)
    bucket = service.get_bucket(bucket_id, current_user.id)
    return BucketResult.successful(bucket=bucket)


@router.patch("/{bucket_id}", response_model=BucketResult)
async def update_bucket(
    bucket_id: int,
    bucket_data: BucketUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update bucket settings or replace GROUP membership."""
    service = BucketService(db)
    bucket = service.update_bucket(bucket_id, current_user.id, bucket_data)
    return BucketResult.successful(bucket=bucket)


@router.delete("/{bucket_id}", response_model=BucketDeleteResult)
async def delete_bucket(
    bucket_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a bucket and everything under it."""
    service = BucketService(db)
    deleted_id = service.delete_bucket(bucket_id, current_user.id)
    return BucketDeleteResult.successful(deleted_bucket_id=deleted_id)
