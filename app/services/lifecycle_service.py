"""
Change Request Lifecycle Module.
Owns the ITIL transition table and applies lifecycle actions to stored change requests.

Precondition failures (unknown ID, wrong status, gateway refusal) are reported
as ActionResult(success=False); database errors propagate to the caller.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import UnknownActionError
from app.core.time import utcnow
from app.models.change_request import ChangeRequest, ChangeStatus
from app.repositories.change_request_repository import ChangeRequestRepository
from app.schemas.change_request import ActionResult, ChangeAction
from app.services.itil_gateway import ItilGateway, SimulatedItilGateway

logger = logging.getLogger(__name__)


def _full_snapshot(change_request: ChangeRequest, notes: Optional[str]) -> Dict[str, Any]:
    return jsonable_encoder({
        "id": change_request.id,
        "title": change_request.title,
        "description": change_request.description,
        "change_type": change_request.change_type.value,
        "priority": change_request.priority.value,
        "requester_name": change_request.requester_name,
        "requester_email": change_request.requester_email,
        "business_justification": change_request.business_justification,
        "implementation_plan": change_request.implementation_plan,
        "rollback_plan": change_request.rollback_plan,
        "risk_assessment": change_request.risk_assessment,
        "impact_assessment": change_request.impact_assessment,
        "scheduled_start": change_request.scheduled_start,
        "scheduled_end": change_request.scheduled_end,
        "notes": notes,
    })


def _permission_summary(change_request: ChangeRequest, notes: Optional[str]) -> Dict[str, Any]:
    return {
        "changeId": change_request.id,
        "title": change_request.title,
        "changeType": change_request.change_type.value,
        "priority": change_request.priority.value,
        "requesterEmail": change_request.requester_email,
        "businessJustification": change_request.business_justification,
        "riskAssessment": change_request.risk_assessment,
        "notes": notes,
    }


def _execution_command(change_request: ChangeRequest, notes: Optional[str]) -> Dict[str, Any]:
    return {"changeId": change_request.id, "command": "execute", "notes": notes}


def _completion_notice(change_request: ChangeRequest, notes: Optional[str]) -> Dict[str, Any]:
    return {"changeId": change_request.id, "command": "complete", "notes": notes}


def _isoformat(value):
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class Transition:
    """One row of the lifecycle table."""

    action: ChangeAction
    from_statuses: FrozenSet[ChangeStatus]
    to_status: ChangeStatus
    success_message: str
    rejection: Callable[[ChangeStatus], str]
    build_payload: Callable[[ChangeRequest, Optional[str]], Dict[str, Any]]
    build_data: Callable[[ChangeRequest, Dict[str, Any]], Dict[str, Any]]
    # Column set to the transition time, if any
    timestamp_field: Optional[str] = None
    # Statuses where the action succeeds without writing (already at the target)
    idempotent_statuses: FrozenSet[ChangeStatus] = field(default_factory=frozenset)

    @property
    def write_statuses(self) -> FrozenSet[ChangeStatus]:
        return self.from_statuses - self.idempotent_statuses


TRANSITIONS: Dict[ChangeAction, Transition] = {
    ChangeAction.apply: Transition(
        action=ChangeAction.apply,
        from_statuses=frozenset({ChangeStatus.draft}),
        to_status=ChangeStatus.submitted,
        success_message="Change request applied successfully",
        rejection=lambda current: (
            f"Change request cannot be applied. Current status: {current.value}"
        ),
        build_payload=_full_snapshot,
        build_data=lambda cr, payload: {
            "changeId": cr.id,
            "newStatus": cr.status.value,
            "itilPayload": payload,
        },
    ),
    ChangeAction.request_permission: Transition(
        action=ChangeAction.request_permission,
        from_statuses=frozenset({ChangeStatus.draft, ChangeStatus.submitted}),
        to_status=ChangeStatus.submitted,
        success_message="Permission request sent successfully",
        rejection=lambda current: (
            f"Cannot request permission for change request with status: {current.value}. "
            "Valid statuses are: draft, submitted"
        ),
        build_payload=_permission_summary,
        build_data=lambda cr, payload: {
            "changeId": cr.id,
            "permissionStatus": "pending",
            "requestData": payload,
        },
        idempotent_statuses=frozenset({ChangeStatus.submitted}),
    ),
    ChangeAction.execute: Transition(
        action=ChangeAction.execute,
        from_statuses=frozenset({ChangeStatus.approved}),
        to_status=ChangeStatus.in_progress,
        success_message="Change request execution initiated",
        rejection=lambda current: (
            f"Cannot execute change request with status: {current.value}. Must be approved."
        ),
        build_payload=_execution_command,
        build_data=lambda cr, payload: {
            "changeId": cr.id,
            "executionStatus": "started",
            "actualStart": _isoformat(cr.actual_start),
        },
        timestamp_field="actual_start",
    ),
    ChangeAction.done: Transition(
        action=ChangeAction.done,
        from_statuses=frozenset({ChangeStatus.in_progress, ChangeStatus.scheduled}),
        to_status=ChangeStatus.completed,
        success_message="Change request marked as completed",
        rejection=lambda current: (
            f"Change request cannot be completed from status '{current.value}'. "
            "Must be 'in_progress' or 'scheduled'."
        ),
        build_payload=_completion_notice,
        build_data=lambda cr, payload: {
            "changeId": cr.id,
            "completionStatus": "done",
            "completedAt": _isoformat(cr.actual_end),
            "title": cr.title,
            "status": cr.status.value,
        },
        timestamp_field="actual_end",
    ),
}


def available_actions(status: ChangeStatus) -> List[ChangeAction]:
    """List the lifecycle actions that are legal from ``status``, in table order."""
    return [action for action, transition in TRANSITIONS.items() if status in transition.from_statuses]


def _not_found(change_id: int) -> ActionResult:
    return ActionResult(success=False, message=f"Change request with ID {change_id} not found")


class ChangeLifecycle:
    """Lifecycle state machine for change requests."""

    def __init__(self, db: Session, gateway: Optional[ItilGateway] = None):
        self.db = db
        self.repository = ChangeRequestRepository(db)
        self.gateway = gateway or SimulatedItilGateway()

    def apply(self, change_id: int, notes: Optional[str] = None) -> ActionResult:
        """Submit a draft change request to the ITIL system."""
        return self.perform(ChangeAction.apply, change_id, notes)

    def request_permission(self, change_id: int, notes: Optional[str] = None) -> ActionResult:
        """Ask the ITIL system for approval; a draft is moved to submitted."""
        return self.perform(ChangeAction.request_permission, change_id, notes)

    def execute(self, change_id: int, notes: Optional[str] = None) -> ActionResult:
        """Start an approved change and stamp actual_start."""
        return self.perform(ChangeAction.execute, change_id, notes)

    def complete(self, change_id: int, notes: Optional[str] = None) -> ActionResult:
        """Finish a running or scheduled change and stamp actual_end."""
        return self.perform(ChangeAction.done, change_id, notes)

    def perform(self, action, change_id: int, notes: Optional[str] = None) -> ActionResult:
        """
        Run one lifecycle action against a change request.

        The status write is a conditional update guarded by the transition's
        precondition set, and it is only committed once the ITIL gateway has
        accepted the payload.

        Args:
            action: ChangeAction or its string value
            change_id: Change request ID
            notes: Optional caller notes forwarded to the ITIL system

        Returns:
            ActionResult describing the outcome

        Raises:
            UnknownActionError: If ``action`` is not in the transition table
            SQLAlchemyError: On database failures
        """
        try:
            action = ChangeAction(action)
        except ValueError:
            raise UnknownActionError(str(action))
        transition = TRANSITIONS[action]

        try:
            return self._run(transition, change_id, notes)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Change request %s failed for id=%s", action.value, change_id)
            raise

    def _run(self, transition: Transition, change_id: int, notes: Optional[str]) -> ActionResult:
        change_request = self.repository.get_by_id(change_id)
        if change_request is None:
            return _not_found(change_id)

        if change_request.status not in transition.from_statuses:
            return ActionResult(success=False, message=transition.rejection(change_request.status))

        payload = transition.build_payload(change_request, notes)

        if change_request.status not in transition.idempotent_statuses:
            values = {"status": transition.to_status}
            if transition.timestamp_field:
                now = utcnow()
                values[transition.timestamp_field] = now
                values["updated_at"] = now

            if not self.repository.transition(change_id, transition.write_statuses, values):
                # Lost the race: someone changed the record since it was read
                self.db.rollback()
                current = self.repository.get_status(change_id)
                if current is None:
                    return _not_found(change_id)
                if current not in transition.idempotent_statuses:
                    logger.info(
                        "Concurrent update blocked %s for id=%s (now %s)",
                        transition.action.value, change_id, current.value,
                    )
                    return ActionResult(success=False, message=transition.rejection(current))

        outcome = self.gateway.send(transition.action.value, payload)
        if not outcome.success:
            self.db.rollback()
            logger.warning(
                "ITIL gateway refused %s for id=%s: %s",
                transition.action.value, change_id, outcome.message,
            )
            return ActionResult(
                success=False,
                message=outcome.message or f"Failed to send {transition.action.value} request to ITIL API",
            )

        self.db.commit()
        change_request = self.repository.refresh(change_request)
        logger.info(
            "Change request %s: %s -> %s",
            change_id, transition.action.value, change_request.status.value,
        )

        data = transition.build_data(change_request, payload)
        if outcome.reference:
            data["itilReference"] = outcome.reference
        return ActionResult(success=True, message=transition.success_message, data=data)
