"""
In-memory storage driver for local development and tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from dutrel.storage.types import ObjectHead, SignedUrl, SignedUrlOp, StorageProvider


@dataclass
class StoredObject:
    data: bytes
    content_type: Optional[str] = None


@dataclass
class InMemoryStorageDriver:
    """Test double for storage interactions."""

    provider: StorageProvider = StorageProvider.R2
    base_url: str = "https://storage.example.test"
    objects: Dict[str, StoredObject] = field(default_factory=dict)

    def presign(
        self,
        key: str,
        op: SignedUrlOp,
        expires_in: int = 600,
        content_type: Optional[str] = None,
    ) -> SignedUrl:
        url = f"{self.base_url}/{self.provider.value.lower()}/{key}?op={op.value.lower()}&expires={expires_in}"
        return SignedUrl(url=url, expires_in_seconds=expires_in)

    def delete_object(self, key: str) -> None:
        self.objects.pop(key, None)

    def head_object(self, key: str) -> ObjectHead:
        stored = self.objects.get(key)
        if stored is None:
            return ObjectHead(exists=False)
        return ObjectHead(
            exists=True,
            content_length=len(stored.data),
            content_type=stored.content_type,
        )

    def put_object(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Simulate a client upload through a presigned PUT."""
        self.objects[key] = StoredObject(data=data, content_type=content_type)
