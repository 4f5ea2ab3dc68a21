from sqlalchemy.orm import Session
from typing import Generic, Type, TypeVar, Optional, Dict, Any
from dutrel.models.base import BaseModel

T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """Base repository with common CRUD operations."""

    def __init__(self, model: Type[T], db: Session):
        """
        Initialize repository with model and database session.

        Args:
            model: The SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get(self, id: int) -> Optional[T]:
        """Get a single record by ID."""
        return self.db.get(self.model, id)

    def create(self, obj: T) -> T:
        """Create a new record and commit immediately."""
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def add(self, obj: T) -> T:
        """
        Stage a new record inside the caller's transaction.

        Flushes so the generated id is available, but leaves the commit to
        ``dutrel.database.transaction``.
        """
        self.db.add(obj)
        self.db.flush()
        return obj

    def update(self, obj: T, data: Dict[str, Any]) -> T:
        """Apply ``data`` onto ``obj`` without committing."""
        for key, value in data.items():
            if hasattr(obj, key):
                setattr(obj, key, value)
        self.db.flush()
        return obj

    def remove(self, obj: T) -> None:
        """Delete ``obj`` inside the caller's transaction."""
        self.db.delete(obj)
        self.db.flush()

    def exists(self, id: int) -> bool:
        """Check if a record exists by ID."""
        return self.db.query(self.model).filter(self.model.id == id).count() > 0
