"""
Change Request Service Module.
Handles create, read and partial update of change requests.
Lifecycle status changes go through app.services.lifecycle_service.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ChangeRequestNotFoundError, ChangeRequestValidationError
from app.models.change_request import ChangeRequest, ChangeStatus
from app.repositories.change_request_repository import ChangeRequestRepository
from app.schemas.change_request import ChangeRequestCreate, ChangeRequestUpdate

logger = logging.getLogger(__name__)


class ChangeRequestService:
    """Service for managing change request records."""

    def __init__(self, db: Session):
        self.db = db
        self.repository = ChangeRequestRepository(db)

    def create_change_request(self, data: ChangeRequestCreate) -> ChangeRequest:
        """
        Create a change request from validated input.
        New change requests always start in draft with no actual start/end.
        """
        change_request = ChangeRequest(
            **data.model_dump(),
            status=ChangeStatus.draft,
            actual_start=None,
            actual_end=None,
        )
        try:
            change_request = self.repository.create(change_request)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Change request creation failed")
            raise

        self.db.refresh(change_request)
        logger.info("Created change request id=%s (%s)", change_request.id, change_request.title)
        return change_request

    def get_change_requests(self) -> List[ChangeRequest]:
        """Return all change requests, newest first."""
        return self.repository.get_all()

    def get_change_request_by_id(self, change_id: int) -> Optional[ChangeRequest]:
        """Return the change request or None when it does not exist."""
        return self.repository.get_by_id(change_id)

    def get_change_request_or_404(self, change_id: int) -> ChangeRequest:
        """Return the change request or raise ChangeRequestNotFoundError."""
        change_request = self.repository.get_by_id(change_id)
        if change_request is None:
            raise ChangeRequestNotFoundError(change_id)
        return change_request

    def update_change_request(self, change_id: int, data: ChangeRequestUpdate) -> ChangeRequest:
        """
        Apply a partial update.

        Only supplied fields change; updated_at is always refreshed. The
        scheduled window is checked against stored values when only one end
        of it is supplied.
        """
        changes = data.changes()
        existing = self.get_change_request_or_404(change_id)

        start = changes.get("scheduled_start", existing.scheduled_start)
        end = changes.get("scheduled_end", existing.scheduled_end)
        if start is not None and end is not None and end < start:
            raise ChangeRequestValidationError("Scheduled end must not be before scheduled start")

        if "status" in changes and changes["status"] != existing.status:
            logger.info(
                "Change request id=%s status set directly: %s -> %s",
                change_id, existing.status.value, changes["status"].value,
            )

        try:
            change_request = self.repository.update_fields(change_id, changes)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.exception("Change request update failed for id=%s", change_id)
            raise

        self.db.refresh(change_request)
        return change_request
