from sqlalchemy import ForeignKey, Integer, DateTime, Text, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum
from dutrel.models.base import BaseModel

if TYPE_CHECKING:
    from dutrel.models.bucket import Bucket
    from dutrel.models.receipt import Receipt
    from dutrel.models.credit import CreditReportItem


class ObligationStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ReportingState(str, enum.Enum):
    NONE = "NONE"
    QUEUED = "QUEUED"
    REPORTED = "REPORTED"


class Obligation(BaseModel):
    """
    One billing period owed under a bucket.

    OPEN -> CLOSED happens only when a receipt is verified; CLOSED -> OPEN only
    through an explicit reopen with a reason.
    """

    __tablename__ = "obligations"

    bucket_id: Mapped[int] = mapped_column(
        ForeignKey("buckets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    period_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    period_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    status: Mapped[ObligationStatus] = mapped_column(
        SQLEnum(ObligationStatus), default=ObligationStatus.OPEN, nullable=False, index=True
    )
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_by_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    reopened_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reopened_by_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    reopen_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Credit reporting sub-state (only meaningful once CLOSED)
    reporting_state: Mapped[ReportingState] = mapped_column(
        SQLEnum(ReportingState), default=ReportingState.NONE, nullable=False
    )
    reporting_eligible_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reporting_queued_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reported_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reporting_provider_ref: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    reporting_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    bucket: Mapped["Bucket"] = relationship("Bucket", back_populates="obligations")
    receipts: Mapped[List["Receipt"]] = relationship(
        "Receipt",
        back_populates="obligation",
        cascade="all, delete",
        order_by="Receipt.id.desc()",
        lazy="selectin",
    )
    report_items: Mapped[List["CreditReportItem"]] = relationship(
        "CreditReportItem",
        back_populates="obligation",
        cascade="all, delete",
    )

    @property
    def is_open(self) -> bool:
        return self.status == ObligationStatus.OPEN

    @property
    def household_id(self) -> int:
        return self.bucket.household_id
