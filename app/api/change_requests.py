"""
Change Request API Module.
CRUD endpoints plus the ITIL lifecycle actions (apply, request permission, execute, complete).
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.rate_limit import limiter
from app.db.session import get_db
from app.schemas.change_request import (
    ActionResult,
    AvailableActionsOut,
    ChangeAction,
    ChangeRequestActionInput,
    ChangeRequestActionNotes,
    ChangeRequestCreate,
    ChangeRequestOut,
    ChangeRequestUpdate,
)
from app.services.change_request_service import ChangeRequestService
from app.services.itil_gateway import ItilGateway, get_itil_gateway
from app.services.lifecycle_service import ChangeLifecycle, available_actions


router = APIRouter()


def get_change_request_service(db: Session = Depends(get_db)) -> ChangeRequestService:
    return ChangeRequestService(db)


def get_lifecycle(
    db: Session = Depends(get_db),
    gateway: ItilGateway = Depends(get_itil_gateway),
) -> ChangeLifecycle:
    return ChangeLifecycle(db, gateway)


def _notes(body: Optional[ChangeRequestActionNotes]) -> Optional[str]:
    return body.notes if body else None


# ==================== CRUD ====================

@router.post("", response_model=ChangeRequestOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_DEFAULT)
def create_change_request(
    request: Request,
    payload: ChangeRequestCreate,
    service: ChangeRequestService = Depends(get_change_request_service),
):
    """Create a change request. The new record always starts in draft."""
    return service.create_change_request(payload)


@router.get("", response_model=List[ChangeRequestOut])
def list_change_requests(service: ChangeRequestService = Depends(get_change_request_service)):
    """List all change requests, most recently created first."""
    return service.get_change_requests()


@router.post("/actions", response_model=ActionResult)
@limiter.limit(settings.RATE_LIMIT_ACTIONS)
def perform_change_request_action(
    request: Request,
    payload: ChangeRequestActionInput,
    lifecycle: ChangeLifecycle = Depends(get_lifecycle),
):
    """Run the lifecycle action named in the payload."""
    return lifecycle.perform(payload.action, payload.id, payload.notes)


@router.get("/{change_id}", response_model=ChangeRequestOut)
def read_change_request(
    change_id: int,
    service: ChangeRequestService = Depends(get_change_request_service),
):
    """Fetch a single change request by ID."""
    return service.get_change_request_or_404(change_id)


@router.put("/{change_id}", response_model=ChangeRequestOut)
@limiter.limit(settings.RATE_LIMIT_DEFAULT)
def update_change_request(
    request: Request,
    change_id: int,
    payload: ChangeRequestUpdate,
    service: ChangeRequestService = Depends(get_change_request_service),
):
    """Partially update a change request. Only supplied fields are changed."""
    return service.update_change_request(change_id, payload)


@router.get("/{change_id}/actions", response_model=AvailableActionsOut)
def read_available_actions(
    change_id: int,
    service: ChangeRequestService = Depends(get_change_request_service),
):
    """List the lifecycle actions allowed from the change request's current status."""
    change_request = service.get_change_request_or_404(change_id)
    return AvailableActionsOut(
        changeId=change_request.id,
        status=change_request.status,
        actions=available_actions(change_request.status),
    )


# ==================== Lifecycle actions ====================
# These always answer 200 with an ActionResult; unknown IDs and invalid
# transitions are reported as success=false.

@router.post("/{change_id}/apply", response_model=ActionResult)
@limiter.limit(settings.RATE_LIMIT_ACTIONS)
def apply_change_request(
    request: Request,
    change_id: int,
    body: Optional[ChangeRequestActionNotes] = None,
    lifecycle: ChangeLifecycle = Depends(get_lifecycle),
):
    """Submit a draft change request to the ITIL system."""
    return lifecycle.perform(ChangeAction.apply, change_id, _notes(body))


@router.post("/{change_id}/request-permission", response_model=ActionResult)
@limiter.limit(settings.RATE_LIMIT_ACTIONS)
def request_permission(
    request: Request,
    change_id: int,
    body: Optional[ChangeRequestActionNotes] = None,
    lifecycle: ChangeLifecycle = Depends(get_lifecycle),
):
    """Request approval for a draft or submitted change request."""
    return lifecycle.perform(ChangeAction.request_permission, change_id, _notes(body))


@router.post("/{change_id}/execute", response_model=ActionResult)
@limiter.limit(settings.RATE_LIMIT_ACTIONS)
def execute_change_request(
    request: Request,
    change_id: int,
    body: Optional[ChangeRequestActionNotes] = None,
    lifecycle: ChangeLifecycle = Depends(get_lifecycle),
):
    """Start executing an approved change request."""
    return lifecycle.perform(ChangeAction.execute, change_id, _notes(body))


@router.post("/{change_id}/complete", response_model=ActionResult)
@limiter.limit(settings.RATE_LIMIT_ACTIONS)
def complete_change_request(
    request: Request,
    change_id: int,
    body: Optional[ChangeRequestActionNotes] = None,
    lifecycle: ChangeLifecycle = Depends(get_lifecycle),
):
    """Mark an in-progress or scheduled change request as completed."""
    return lifecycle.perform(ChangeAction.done, change_id, _notes(body))
