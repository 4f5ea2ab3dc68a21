from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import relationship, Mapped, mapped_column
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime
from dutrel.models.base import BaseModel
if TYPE_CHECKING:
    from dutrel.models.household import HouseholdMember
    from dutrel.models.identity import UserIdentity


class User(BaseModel):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, default=None)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Set when credit reporting is first activated on one of the user's buckets
    credit_reporting_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    credit_reporting_since: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    # Relationships
    memberships: Mapped[List["HouseholdMember"]] = relationship(
        "HouseholdMember",
        back_populates="user",
        cascade="all, delete",
    )
    identity: Mapped[Optional["UserIdentity"]] = relationship(
        "UserIdentity",
        back_populates="user",
        uselist=False,
        cascade="all, delete",
    )
