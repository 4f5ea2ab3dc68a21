from pydantic import Field, field_validator, model_validator
from typing import List, Literal, Optional, Union
from datetime import datetime

from dutrel.models.attachment import AttachmentKind, AttachmentType
from dutrel.schemas.bucket import BucketSummary
from dutrel.schemas.result import CamelModel, Result
from dutrel.schemas.user import UserSummary
from dutrel.storage.types import StorageProvider


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class _AttachmentCreateBase(CamelModel):
    type: AttachmentType = AttachmentType.OTHER
    title: str = Field(..., min_length=1, max_length=200)
    pinned_to_household: bool = False
    metadata_json: Optional[str] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title is required")
        return v


class FileAttachmentCreate(_AttachmentCreateBase):
    """
    A stored document. ``object_key`` (from the upload-url endpoint) is preferred;
    ``file_url`` is accepted for legacy clients.
    """
    kind: Literal["FILE"]
    storage_provider: Optional[StorageProvider] = None
    object_key: Optional[str] = Field(None, max_length=1024)
    original_name: Optional[str] = Field(None, max_length=255)
    sha256_hex: Optional[str] = Field(None, pattern=r"^[0-9a-fA-F]{64}$")
    file_url: Optional[str] = Field(None, max_length=2048)
    mime_type: Optional[str] = Field(None, max_length=255)
    size_bytes: Optional[int] = Field(None, ge=0)

    @field_validator("object_key", "file_url", "original_name", "mime_type")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @model_validator(mode="after")
    def require_location(self):
        if not self.object_key and not self.file_url:
            raise ValueError("objectKey or fileUrl is required for FILE attachments")
        return self


class LinkAttachmentCreate(_AttachmentCreateBase):
    kind: Literal["LINK"]
    url: str = Field(..., max_length=2048)

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("url is required for LINK attachments")
        return v


class NoteAttachmentCreate(_AttachmentCreateBase):
    kind: Literal["NOTE"]
    note_text: str

    @field_validator("note_text")
    @classmethod
    def check_note(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("noteText is required for NOTE attachments")
        return v


# Tagged on ``kind``; routes declare it with Body(discriminator="kind")
AttachmentCreate = Union[FileAttachmentCreate, LinkAttachmentCreate, NoteAttachmentCreate]


class AttachmentUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=200)
    type: Optional[AttachmentType] = None
    pinned_to_household: Optional[bool] = None
    metadata_json: Optional[str] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v

    @model_validator(mode="after")
    def check_not_null(self):
        for field in ("title", "type", "pinned_to_household"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class UploadUrlRequest(CamelModel):
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: Optional[str] = Field(None, max_length=255)


class AttachmentResponse(CamelModel):
    id: int
    uuid: str
    bucket_id: int
    created_by_user_id: int
    kind: AttachmentKind
    type: AttachmentType
    title: str
    pinned_to_household: bool
    storage_provider: Optional[StorageProvider] = None
    object_key: Optional[str] = None
    original_name: Optional[str] = None
    sha256_hex: Optional[str] = None
    file_url: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    url: Optional[str] = None
    note_text: Optional[str] = None
    metadata_json: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PinnedAttachmentResponse(AttachmentResponse):
    bucket: BucketSummary
    created_by: UserSummary


class AttachmentResult(Result):
    attachment: AttachmentResponse


class AttachmentListResult(Result):
    attachments: List[AttachmentResponse]


class PinnedAttachmentListResult(Result):
    pinned: List[PinnedAttachmentResponse]


class AttachmentDeleteResult(Result):
    deleted_attachment_id: int


class UploadUrlResult(Result):
    """A presigned PUT. The client uploads to ``upload_url`` and then stores ``object_key``."""
    storage_provider: StorageProvider
    object_key: str
    upload_url: str
    expires_in_seconds: int


class DownloadUrlResult(Result):
    url: str
    expires_in_seconds: Optional[int] = None
