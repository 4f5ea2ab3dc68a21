from fastapi import Depends, Request
from sqlalchemy.orm import Session

from dutrel.core.exception import AuthenticationException
from dutrel.database import get_db
from dutrel.models.user import User
from dutrel.security import AuthProvider, HeaderAuthProvider

_auth_provider = HeaderAuthProvider()


def get_auth_provider() -> AuthProvider:
    return _auth_provider


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    auth: AuthProvider = Depends(get_auth_provider),
) -> User:
    """
    Dependency to get the calling user.
    Raises AuthenticationException (401) when the caller cannot be identified.

    Example:
        @router.get("/protected")
        async def protected_route(current_user: User = Depends(get_current_user)):
            return {"user_id": current_user.id}
    """
    user_id = auth.resolve_user_id(request)
    if user_id is None:
        raise AuthenticationException()

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationException("Unknown user")

    if not user.is_active:
        raise AuthenticationException("Account is deactivated")

    return user
