from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional
from dutrel.models.base import BaseModel


class ActionLog(BaseModel):
    """
    Append-only audit trail. One row per mutating action, written in the same
    transaction as the change it describes. Rows are never updated or deleted.
    """

    __tablename__ = "action_logs"

    # NULL for user-scoped actions (e.g. identity upserts)
    household_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("households.id", ondelete="SET NULL"), nullable=True, index=True
    )
    actor_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    action: Mapped[str] = mapped_column(String(80), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False)
    metadata_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
