from sqlalchemy import ForeignKey, Boolean, Integer, Text, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
import enum
from dutrel.models.base import BaseModel
from dutrel.storage.types import StorageProvider

if TYPE_CHECKING:
    from dutrel.models.bucket import Bucket
    from dutrel.models.user import User


class AttachmentKind(str, enum.Enum):
    FILE = "FILE"
    LINK = "LINK"
    NOTE = "NOTE"


class AttachmentType(str, enum.Enum):
    LEASE = "LEASE"
    HOA = "HOA"
    VENDOR = "VENDOR"
    INVOICE = "INVOICE"
    RECEIPT = "RECEIPT"
    OTHER = "OTHER"


class BucketAttachment(BaseModel):
    """
    A document, link or note filed under a bucket.

    Only the payload columns of the attachment's kind are populated. Files point
    at object storage by key; ``file_url`` is the legacy fallback.
    """

    __tablename__ = "bucket_attachments"

    bucket_id: Mapped[int] = mapped_column(
        ForeignKey("buckets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    kind: Mapped[AttachmentKind] = mapped_column(SQLEnum(AttachmentKind), nullable=False)
    type: Mapped[AttachmentType] = mapped_column(
        SQLEnum(AttachmentType), default=AttachmentType.OTHER, nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    pinned_to_household: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    # FILE
    storage_provider: Mapped[Optional[StorageProvider]] = mapped_column(
        SQLEnum(StorageProvider), nullable=True
    )
    object_key: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    original_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sha256_hex: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # LINK
    url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    # NOTE
    note_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    metadata_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    bucket: Mapped["Bucket"] = relationship("Bucket", back_populates="attachments")
    created_by: Mapped["User"] = relationship("User", lazy="selectin")
