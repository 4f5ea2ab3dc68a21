import logging
from sqlalchemy.orm import Session

from dutrel.core.exception import BadRequestException, ResourceNotFoundException
from dutrel.models.user import User
from dutrel.repositories.user_repository import UserRepository
from dutrel.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)

    def register(self, data: UserCreate) -> User:
        if self.user_repo.email_exists(data.email):
            raise BadRequestException("Email already registered")

        user = self.user_repo.create(User(email=data.email, display_name=data.display_name))
        logger.info("Registered user %s", user.id)
        return user

    def get_user(self, user_id: int) -> User:
        user = self.user_repo.get(user_id)
        if not user:
            raise ResourceNotFoundException("User", user_id)
        return user
