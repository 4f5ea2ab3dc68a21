from sqlalchemy import ForeignKey, DateTime, Date, Text, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
from datetime import date, datetime
import enum
from dutrel.models.base import BaseModel

if TYPE_CHECKING:
    from dutrel.models.user import User


class IdentityStatus(str, enum.Enum):
    UNVERIFIED = "UNVERIFIED"
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"


class VerificationMethod(str, enum.Enum):
    MANUAL = "MANUAL"
    SELFIE_ID = "SELFIE_ID"
    KBA = "KBA"
    OTHER = "OTHER"


class UserIdentity(BaseModel):
    """Identity verification record; VERIFIED gates credit reporting."""

    __tablename__ = "user_identities"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    status: Mapped[IdentityStatus] = mapped_column(
        SQLEnum(IdentityStatus), default=IdentityStatus.UNVERIFIED, nullable=False
    )
    method: Mapped[Optional[VerificationMethod]] = mapped_column(
        SQLEnum(VerificationMethod), nullable=True
    )

    legal_full_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    dob: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    phone_e164: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    ssn_last4: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    address_line1: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    address_line2: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    country: Mapped[str] = mapped_column(String(64), default="US", nullable=False)

    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="identity")

    @property
    def is_verified(self) -> bool:
        return self.status == IdentityStatus.VERIFIED
