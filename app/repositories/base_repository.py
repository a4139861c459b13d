"""Base repository class with common database operations."""

from typing import Generic, TypeVar, Type, Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import func

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository providing common CRUD operations.

    Repositories only flush; committing or rolling back the unit of work is
    left to the calling service.
    """

    def __init__(self, model: Type[T], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> Optional[T]:
        """
        Get entity by ID.

        Args:
            id: Entity ID

        Returns:
            Entity or None if not found
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_all(self) -> List[T]:
        """
        Get all entities.

        Returns:
            List of entities
        """
        return self.db.query(self.model).all()

    def create(self, obj: T) -> T:
        """
        Create new entity.

        Args:
            obj: Entity to create

        Returns:
            Created entity with its generated ID
        """
        self.db.add(obj)
        self.db.flush()
        self.db.refresh(obj)
        return obj

    def count(self) -> int:
        """
        Count all entities.

        Returns:
            Number of entities
        """
        return self.db.query(func.count(self.model.id)).scalar()
