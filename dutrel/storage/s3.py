"""
S3-compatible driver used for both Cloudflare R2 and AWS S3.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from dutrel.config import Settings
from dutrel.storage.types import (
    ObjectHead,
    SignedUrl,
    SignedUrlOp,
    StorageConfigurationError,
    StorageProvider,
)

logger = logging.getLogger(__name__)

_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass
class S3CompatibleDriver:
    provider: StorageProvider
    bucket: str
    region: str
    access_key_id: str
    secret_access_key: str
    endpoint: Optional[str] = None
    addressing_style: str = "auto"

    def __post_init__(self):
        config = Config(
            s3={"addressing_style": self.addressing_style},
            signature_version="s3v4",
        )
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint,
            region_name=self.region,
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            config=config,
        )

    def presign(
        self,
        key: str,
        op: SignedUrlOp,
        expires_in: int = 600,
        content_type: Optional[str] = None,
    ) -> SignedUrl:
        params = {"Bucket": self.bucket, "Key": key}
        if op == SignedUrlOp.PUT:
            client_method = "put_object"
            if content_type:
                params["ContentType"] = content_type
        else:
            client_method = "get_object"

        url = self._client.generate_presigned_url(
            ClientMethod=client_method,
            Params=params,
            ExpiresIn=expires_in,
        )
        return SignedUrl(url=url, expires_in_seconds=expires_in)

    def delete_object(self, key: str) -> None:
        self._client.delete_object(Bucket=self.bucket, Key=key)

    def head_object(self, key: str) -> ObjectHead:
        try:
            response = self._client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as ex:
            code = str(ex.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_OBJECT_CODES:
                return ObjectHead(exists=False)
            raise
        return ObjectHead(
            exists=True,
            content_length=response.get("ContentLength"),
            content_type=response.get("ContentType") or None,
        )


def _require(settings: Settings, *names: str) -> None:
    missing = [name for name in names if not getattr(settings, name)]
    if missing:
        raise StorageConfigurationError(f"Missing storage settings: {', '.join(missing)}")


def create_r2_driver(settings: Settings) -> S3CompatibleDriver:
    _require(settings, "R2_ENDPOINT", "R2_BUCKET", "R2_ACCESS_KEY_ID", "R2_SECRET_ACCESS_KEY")
    logger.info("Using R2 storage bucket %s", settings.R2_BUCKET)
    return S3CompatibleDriver(
        provider=StorageProvider.R2,
        bucket=settings.R2_BUCKET,
        region=settings.R2_REGION or "auto",
        endpoint=settings.R2_ENDPOINT,
        access_key_id=settings.R2_ACCESS_KEY_ID,
        secret_access_key=settings.R2_SECRET_ACCESS_KEY,
        # Many R2 setups only resolve path-style URLs
        addressing_style="path",
    )


def create_s3_driver(settings: Settings) -> S3CompatibleDriver:
    _require(settings, "AWS_REGION", "S3_BUCKET", "AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")
    logger.info("Using S3 storage bucket %s", settings.S3_BUCKET)
    return S3CompatibleDriver(
        provider=StorageProvider.S3,
        bucket=settings.S3_BUCKET,
        region=settings.AWS_REGION,
        access_key_id=settings.AWS_ACCESS_KEY_ID,
        secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    )
