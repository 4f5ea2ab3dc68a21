"""
Object storage: driver selection and the object key layout.

The key layout is the single source of truth for where files live. As long as
it never changes, moving between providers is a plain copy of objects.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Union

from dutrel.config import settings
from dutrel.storage.memory import InMemoryStorageDriver
from dutrel.storage.types import (
    ObjectHead,
    SignedUrl,
    SignedUrlOp,
    StorageConfigurationError,
    StorageDriver,
    StorageProvider,
)

_drivers: Dict[StorageProvider, StorageDriver] = {}

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]+")

__all__ = [
    "ObjectHead",
    "SignedUrl",
    "SignedUrlOp",
    "StorageConfigurationError",
    "StorageDriver",
    "StorageProvider",
    "build_attachment_object_key",
    "build_receipt_object_key",
    "attachment_key_prefix",
    "receipt_key_prefix",
    "get_default_storage_provider",
    "get_storage_driver",
    "reset_storage_drivers",
    "sanitize_filename",
]


def get_default_storage_provider() -> StorageProvider:
    raw = (settings.STORAGE_PROVIDER_DEFAULT or "R2").upper()
    if raw not in StorageProvider.__members__:
        return StorageProvider.R2
    return StorageProvider(raw)


def get_storage_driver(provider: Optional[Union[StorageProvider, str]] = None) -> StorageDriver:
    """
    Return the cached driver for ``provider`` (default provider when omitted).
    """
    p = StorageProvider(provider) if provider else get_default_storage_provider()
    driver = _drivers.get(p)
    if driver is not None:
        return driver

    if settings.STORAGE_USE_IN_MEMORY:
        driver = InMemoryStorageDriver(provider=p)
    else:
        # boto3 is only needed once a real provider is selected
        from dutrel.storage.s3 import create_r2_driver, create_s3_driver

        driver = create_s3_driver(settings) if p == StorageProvider.S3 else create_r2_driver(settings)

    _drivers[p] = driver
    return driver


def reset_storage_drivers() -> None:
    """Forget cached drivers (tests, settings reloads)."""
    _drivers.clear()


def sanitize_filename(filename: str) -> str:
    safe = _UNSAFE_FILENAME_CHARS.sub("_", filename.strip())
    return safe or "file"


def attachment_key_prefix(household_id: int, bucket_id: int) -> str:
    return f"households/{household_id}/buckets/{bucket_id}/attachments/"


def receipt_key_prefix(household_id: int, bucket_id: int, obligation_id: int) -> str:
    return f"households/{household_id}/buckets/{bucket_id}/obligations/{obligation_id}/receipts/"


def build_attachment_object_key(
    household_id: int, bucket_id: int, attachment_id: str, filename: str
) -> str:
    return f"{attachment_key_prefix(household_id, bucket_id)}{attachment_id}/{sanitize_filename(filename)}"


def build_receipt_object_key(
    household_id: int, bucket_id: int, obligation_id: int, receipt_id: str, filename: str
) -> str:
    return (
        f"{receipt_key_prefix(household_id, bucket_id, obligation_id)}"
        f"{receipt_id}/{sanitize_filename(filename)}"
    )
