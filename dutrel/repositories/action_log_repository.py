import json
from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Any, Dict, List, Optional
from dutrel.models.action_log import ActionLog
from dutrel.repositories.repository import BaseRepository


class ActionLogRepository(BaseRepository[ActionLog]):
    """Append-only: rows are recorded, never updated or removed."""

    def __init__(self, db: Session):
        super().__init__(ActionLog, db)

    def record(
        self,
        actor_user_id: int,
        action: str,
        entity_type: str,
        entity_id: Any,
        household_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ActionLog:
        """Stage an audit row in the current transaction."""
        entry = ActionLog(
            household_id=household_id,
            actor_user_id=actor_user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            metadata_json=json.dumps(metadata, default=str) if metadata is not None else None,
        )
        return self.add(entry)

    def list_for_entity(self, entity_type: str, entity_id: Any) -> List[ActionLog]:
        stmt = (
            select(ActionLog)
            .where(ActionLog.entity_type == entity_type, ActionLog.entity_id == str(entity_id))
            .order_by(ActionLog.id)
        )
        return list(self.db.execute(stmt).scalars().all())
