from sqlalchemy import ForeignKey, DateTime, Text, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
from datetime import datetime
import enum
from dutrel.models.base import BaseModel
from dutrel.storage.types import StorageProvider

if TYPE_CHECKING:
    from dutrel.models.obligation import Obligation
    from dutrel.models.user import User


class ReceiptStatus(str, enum.Enum):
    PENDING_PAYER_REVIEW = "PENDING_PAYER_REVIEW"
    VERIFIED = "VERIFIED"
    DISPUTED = "DISPUTED"


REVIEWABLE_RECEIPT_STATUSES = (ReceiptStatus.PENDING_PAYER_REVIEW, ReceiptStatus.DISPUTED)


class Receipt(BaseModel):
    """Proof of payment submitted against an obligation, pending coordinator review."""

    __tablename__ = "receipts"

    obligation_id: Mapped[int] = mapped_column(
        ForeignKey("obligations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    uploaded_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Durable storage reference (preferred) or legacy direct URL
    storage_provider: Mapped[Optional[StorageProvider]] = mapped_column(
        SQLEnum(StorageProvider), nullable=True
    )
    object_key: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    file_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)

    status: Mapped[ReceiptStatus] = mapped_column(
        SQLEnum(ReceiptStatus), default=ReceiptStatus.PENDING_PAYER_REVIEW, nullable=False
    )
    reviewed_by_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    dispute_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    obligation: Mapped["Obligation"] = relationship("Obligation", back_populates="receipts")
    uploaded_by: Mapped["User"] = relationship(
        "User", foreign_keys=[uploaded_by_user_id], lazy="selectin"
    )
