"""
Provider-neutral storage types shared by every driver.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Protocol


class StorageProvider(str, enum.Enum):
    R2 = "R2"
    S3 = "S3"


class SignedUrlOp(str, enum.Enum):
    GET = "GET"
    PUT = "PUT"


class StorageConfigurationError(RuntimeError):
    """Raised when a provider is selected but its settings are incomplete."""


@dataclass(frozen=True)
class SignedUrl:
    url: str
    expires_in_seconds: int


@dataclass(frozen=True)
class ObjectHead:
    exists: bool
    content_length: Optional[int] = None
    content_type: Optional[str] = None


class StorageDriver(Protocol):
    """Operations the API needs from object storage.

    Presigned URLs expire; callers persist object keys, never URLs.
    """

    provider: StorageProvider

    def presign(
        self,
        key: str,
        op: SignedUrlOp,
        expires_in: int = 600,
        content_type: Optional[str] = None,
    ) -> SignedUrl:
        ...

    def delete_object(self, key: str) -> None:
        ...

    def head_object(self, key: str) -> ObjectHead:
        ...
