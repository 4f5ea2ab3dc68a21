from sqlalchemy import String, ForeignKey, Integer, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import List, TYPE_CHECKING
import enum
from dutrel.models.base import BaseModel

if TYPE_CHECKING:
    from dutrel.models.user import User
    from dutrel.models.bucket import Bucket


class HouseholdRole(str, enum.Enum):
    """Member role within a household"""

    PAYER = "PAYER"
    SECONDARY_PAYER = "SECONDARY_PAYER"
    MEMBER = "MEMBER"


COORDINATOR_ROLES = (HouseholdRole.PAYER, HouseholdRole.SECONDARY_PAYER)


class Household(BaseModel):
    """
    A group of people sharing bills.
    Owns its members and buckets; removed only through cascading deletion.
    """

    __tablename__ = "households"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    members: Mapped[List["HouseholdMember"]] = relationship(
        "HouseholdMember",
        back_populates="household",
        cascade="all, delete",
        order_by="HouseholdMember.succession_rank",
        lazy="selectin",
    )

    buckets: Mapped[List["Bucket"]] = relationship(
        "Bucket",
        back_populates="household",
        cascade="all, delete",
        order_by="Bucket.id",
    )


class HouseholdMember(BaseModel):
    """Membership of a user in a household, with role and payer succession order."""

    __tablename__ = "household_members"
    __table_args__ = (
        UniqueConstraint("household_id", "user_id", name="uq_household_members_household_user"),
    )

    household_id: Mapped[int] = mapped_column(
        ForeignKey("households.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    role: Mapped[HouseholdRole] = mapped_column(
        SQLEnum(HouseholdRole), default=HouseholdRole.MEMBER, nullable=False
    )
    succession_rank: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    household: Mapped["Household"] = relationship("Household", back_populates="members")
    user: Mapped["User"] = relationship("User", back_populates="memberships", lazy="selectin")

    @property
    def is_coordinator(self) -> bool:
        return self.role in COORDINATOR_ROLES

    @property
    def email(self) -> str:
        return self.user.email
