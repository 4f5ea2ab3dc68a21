"""
Caller identification.

Route logic only ever sees an ``AuthProvider``; swapping the header scheme for a
real identity provider means adding another implementation here.
"""

from typing import Optional, Protocol

from fastapi import Request

from dutrel.config import settings
from dutrel.core.exception import AuthenticationException

MAX_USER_ID = 2**63 - 1


class AuthProvider(Protocol):
    def resolve_user_id(self, request: Request) -> Optional[int]:
        """Return the caller's user id, or ``None`` when the request carries none."""
        ...


class HeaderAuthProvider:
    """Reads the caller's user id from a request header (``X-User-Id`` by default)."""

    def __init__(self, header_name: str = settings.AUTH_USER_HEADER):
        self.header_name = header_name

    def resolve_user_id(self, request: Request) -> Optional[int]:
        raw = request.headers.get(self.header_name)
        if raw is None or not raw.strip():
            return None
        try:
            user_id = int(raw.strip())
        except ValueError:
            raise AuthenticationException(f"Invalid {self.header_name} header")
        # Primary keys are positive signed 64-bit integers
        if not 0 < user_id <= MAX_USER_ID:
            raise AuthenticationException(f"Invalid {self.header_name} header")
        return user_id
