from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from dutrel.database import get_db
from dutrel.dependencies import get_current_user
from dutrel.models.user import User
from dutrel.schemas.user import UserCreate, UserResult
from dutrel.services.user_service import UserService

router = APIRouter()


@router.post("", response_model=UserResult, status_code=status.HTTP_201_CREATED)
async def register_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """Register a user. Later requests identify as this user by id."""
    service = UserService(db)
    user = service.register(user_data)
    return UserResult.successful(user=user)


@router.get("/me", response_model=UserResult)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get the calling user."""
    return UserResult.successful(user=current_user)
