"""Change request repository for database operations."""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.core.exceptions import ChangeRequestNotFoundError
from app.core.time import utcnow
from app.models.change_request import ChangeRequest, ChangeStatus
from app.repositories.base_repository import BaseRepository


class ChangeRequestRepository(BaseRepository[ChangeRequest]):
    """Record store for change requests."""

    def __init__(self, db: Session):
        """
        Initialize ChangeRequestRepository.

        Args:
            db: Database session
        """
        super().__init__(ChangeRequest, db)

    def create(self, obj: ChangeRequest) -> ChangeRequest:
        """
        Insert a change request with matching created_at / updated_at stamps.

        Args:
            obj: Unsaved change request

        Returns:
            Stored change request with its generated ID
        """
        now = utcnow()
        obj.created_at = now
        obj.updated_at = now
        return super().create(obj)

    def get_all(self) -> List[ChangeRequest]:
        """
        Get all change requests, most recently created first.

        Rows created within the same clock tick are ordered by descending ID,
        so a later insert always comes first.

        Returns:
            List of change requests
        """
        return (
            self.db.query(ChangeRequest)
            .order_by(desc(ChangeRequest.created_at), desc(ChangeRequest.id))
            .all()
        )

    def update_fields(self, change_id: int, fields: Dict[str, Any]) -> ChangeRequest:
        """
        Apply a partial update and refresh updated_at.

        Args:
            change_id: Change request ID
            fields: Column values to set; unknown keys are ignored

        Returns:
            Updated change request

        Raises:
            ChangeRequestNotFoundError: If no change request has this ID
        """
        change_request = self.get_by_id(change_id)
        if change_request is None:
            raise ChangeRequestNotFoundError(change_id)

        for key, value in fields.items():
            if key in ("id", "created_at", "updated_at"):
                continue
            if hasattr(ChangeRequest, key):
                setattr(change_request, key, value)
        change_request.updated_at = utcnow()

        self.db.flush()
        self.db.refresh(change_request)
        return change_request

    def transition(
        self,
        change_id: int,
        from_statuses: Iterable[ChangeStatus],
        values: Dict[str, Any],
    ) -> bool:
        """
        Conditionally update a change request in a single statement.

        The row is only written while its status is still one of
        ``from_statuses``, so two callers racing on the same record cannot
        both apply a transition.

        Args:
            change_id: Change request ID
            from_statuses: Statuses the record must currently be in
            values: Column values to set (updated_at is always refreshed)

        Returns:
            True if the row matched and was updated, False otherwise
        """
        values = dict(values)
        values.setdefault("updated_at", utcnow())
        matched = (
            self.db.query(ChangeRequest)
            .filter(
                ChangeRequest.id == change_id,
                ChangeRequest.status.in_(list(from_statuses)),
            )
            .update(values, synchronize_session=False)
        )
        self.db.flush()
        return matched == 1

    def refresh(self, change_request: ChangeRequest) -> ChangeRequest:
        """Reload a change request from the database."""
        self.db.refresh(change_request)
        return change_request

    def get_status(self, change_id: int) -> Optional[ChangeStatus]:
        """Read the current status without loading the full row."""
        row = (
            self.db.query(ChangeRequest.status)
            .filter(ChangeRequest.id == change_id)
            .first()
        )
        return row[0] if row else None
