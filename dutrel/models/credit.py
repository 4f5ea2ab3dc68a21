from sqlalchemy import ForeignKey, Integer, DateTime, Text, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum
from dutrel.models.base import BaseModel
from dutrel.models.bucket import CreditReportingProvider

if TYPE_CHECKING:
    from dutrel.models.bucket import Bucket
    from dutrel.models.obligation import Obligation


class CreditReportBatchStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    READY = "READY"
    SUBMITTED = "SUBMITTED"


class CreditReportItemStatus(str, enum.Enum):
    QUEUED = "QUEUED"
    SUBMITTED = "SUBMITTED"


class CreditReportBatch(BaseModel):
    """
    A group of on-time, closed obligations of one INDIVIDUAL bucket, prepared for
    (mock) submission to a credit bureau.
    """

    __tablename__ = "credit_report_batches"

    bucket_id: Mapped[int] = mapped_column(
        ForeignKey("buckets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider: Mapped[CreditReportingProvider] = mapped_column(
        SQLEnum(CreditReportingProvider), default=CreditReportingProvider.NONE, nullable=False
    )
    status: Mapped[CreditReportBatchStatus] = mapped_column(
        SQLEnum(CreditReportBatchStatus), default=CreditReportBatchStatus.DRAFT, nullable=False
    )
    period_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    period_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    metadata_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    bucket: Mapped["Bucket"] = relationship("Bucket", back_populates="credit_batches")
    items: Mapped[List["CreditReportItem"]] = relationship(
        "CreditReportItem",
        back_populates="batch",
        cascade="all, delete",
        order_by="CreditReportItem.id",
        lazy="selectin",
    )


class CreditReportItem(BaseModel):
    """One obligation queued inside a batch."""

    __tablename__ = "credit_report_items"
    __table_args__ = (
        UniqueConstraint("batch_id", "obligation_id", name="uq_credit_report_items_batch_obligation"),
    )

    batch_id: Mapped[int] = mapped_column(
        ForeignKey("credit_report_batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    obligation_id: Mapped[int] = mapped_column(
        ForeignKey("obligations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[CreditReportItemStatus] = mapped_column(
        SQLEnum(CreditReportItemStatus), default=CreditReportItemStatus.QUEUED, nullable=False
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    batch: Mapped["CreditReportBatch"] = relationship("CreditReportBatch", back_populates="items")
    obligation: Mapped["Obligation"] = relationship("Obligation", back_populates="report_items")
