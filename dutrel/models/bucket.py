from sqlalchemy import (
    String,
    ForeignKey,
    Integer,
    Boolean,
    DateTime,
    Text,
    Enum as SQLEnum,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum
from dutrel.models.base import BaseModel

if TYPE_CHECKING:
    from dutrel.models.household import Household, HouseholdMember
    from dutrel.models.obligation import Obligation
    from dutrel.models.attachment import BucketAttachment
    from dutrel.models.credit import CreditReportBatch


class BucketType(str, enum.Enum):
    """Shared bill vs. single-owner bill"""

    GROUP = "GROUP"
    INDIVIDUAL = "INDIVIDUAL"


class BucketCadence(str, enum.Enum):
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    OTHER = "OTHER"


class BucketVariability(str, enum.Enum):
    FIXED = "FIXED"
    VARIABLE = "VARIABLE"


class FundingMode(str, enum.Enum):
    INTERNAL = "INTERNAL"
    VIRTUAL_ACCOUNT = "VIRTUAL_ACCOUNT"


class CreditReportingStatus(str, enum.Enum):
    NONE = "NONE"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"


class CreditReportingProvider(str, enum.Enum):
    NONE = "NONE"
    MOCK = "MOCK"


class ResponsibilityRole(str, enum.Enum):
    PRIMARY = "PRIMARY"
    SECONDARY = "SECONDARY"


class Bucket(BaseModel):
    """
    A recurring bill tracked by a household.

    GROUP buckets are shared and never carry an owner; INDIVIDUAL buckets always
    have exactly one owner user.
    """

    __tablename__ = "buckets"

    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[BucketType] = mapped_column(SQLEnum(BucketType), nullable=False, index=True)
    cadence: Mapped[BucketCadence] = mapped_column(
        SQLEnum(BucketCadence), default=BucketCadence.MONTHLY, nullable=False
    )
    variability: Mapped[BucketVariability] = mapped_column(
        SQLEnum(BucketVariability), default=BucketVariability.VARIABLE, nullable=False
    )
    owner_user_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    buffer_target_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    autopay_enabled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    funding_mode: Mapped[FundingMode] = mapped_column(
        SQLEnum(FundingMode), default=FundingMode.INTERNAL, nullable=False
    )
    notification_pause_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    # Credit reporting
    credit_reporting_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    credit_reporting_status: Mapped[CreditReportingStatus] = mapped_column(
        SQLEnum(CreditReportingStatus), default=CreditReportingStatus.NONE, nullable=False
    )
    credit_reporting_provider: Mapped[CreditReportingProvider] = mapped_column(
        SQLEnum(CreditReportingProvider), default=CreditReportingProvider.NONE, nullable=False
    )
    credit_reporting_activated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    credit_reporting_paused_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    credit_reporting_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    # Relationships
    household: Mapped["Household"] = relationship("Household", back_populates="buckets")

    members: Mapped[List["BucketMember"]] = relationship(
        "BucketMember",
        back_populates="bucket",
        cascade="all, delete",
        order_by="BucketMember.id",
        lazy="selectin",
    )
    responsible_members: Mapped[List["BucketResponsibility"]] = relationship(
        "BucketResponsibility",
        back_populates="bucket",
        cascade="all, delete",
        order_by="BucketResponsibility.id",
        lazy="selectin",
    )
    obligations: Mapped[List["Obligation"]] = relationship(
        "Obligation",
        back_populates="bucket",
        cascade="all, delete",
        order_by="Obligation.id.desc()",
    )
    attachments: Mapped[List["BucketAttachment"]] = relationship(
        "BucketAttachment",
        back_populates="bucket",
        cascade="all, delete",
    )
    credit_batches: Mapped[List["CreditReportBatch"]] = relationship(
        "CreditReportBatch",
        back_populates="bucket",
        cascade="all, delete",
    )

    @property
    def is_individual(self) -> bool:
        return self.type == BucketType.INDIVIDUAL


class BucketMember(BaseModel):
    """Explicit membership subset of a GROUP bucket."""

    __tablename__ = "bucket_members"
    __table_args__ = (
        UniqueConstraint("bucket_id", "household_member_id", name="uq_bucket_members_bucket_member"),
    )

    bucket_id: Mapped[int] = mapped_column(
        ForeignKey("buckets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    household_member_id: Mapped[int] = mapped_column(
        ForeignKey("household_members.id", ondelete="CASCADE"), nullable=False, index=True
    )

    bucket: Mapped["Bucket"] = relationship("Bucket", back_populates="members")
    household_member: Mapped["HouseholdMember"] = relationship("HouseholdMember", lazy="selectin")


class BucketResponsibility(BaseModel):
    """Who answers for a bucket, without granting coordinator powers."""

    __tablename__ = "bucket_responsibilities"
    __table_args__ = (
        UniqueConstraint(
            "bucket_id", "household_member_id", name="uq_bucket_responsibilities_bucket_member"
        ),
    )

    bucket_id: Mapped[int] = mapped_column(
        ForeignKey("buckets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    household_member_id: Mapped[int] = mapped_column(
        ForeignKey("household_members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[ResponsibilityRole] = mapped_column(
        SQLEnum(ResponsibilityRole), default=ResponsibilityRole.PRIMARY, nullable=False
    )

    bucket: Mapped["Bucket"] = relationship("Bucket", back_populates="responsible_members")
    household_member: Mapped["HouseholdMember"] = relationship("HouseholdMember")
