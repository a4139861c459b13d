"""
Tests for the change request record store.
"""
import pytest

from app.core.exceptions import ChangeRequestNotFoundError
from app.models.change_request import ChangeRequest, ChangePriority, ChangeStatus, ChangeType
from app.repositories.change_request_repository import ChangeRequestRepository


def _new_change_request(title: str = "Rotate TLS certificates") -> ChangeRequest:
    return ChangeRequest(
        title=title,
        description="Replace expiring certificates on the edge proxies",
        change_type=ChangeType.standard,
        priority=ChangePriority.low,
        requester_name="Jane Smith",
        requester_email="jane@example.com",
        business_justification="Certificates expire next week",
        implementation_plan="Deploy new bundle via config management",
        rollback_plan="Redeploy previous bundle",
    )


def test_create_assigns_id_and_timestamps(db):
    repository = ChangeRequestRepository(db)

    stored = repository.create(_new_change_request())
    db.commit()

    assert stored.id is not None
    assert stored.status == ChangeStatus.draft
    assert stored.created_at == stored.updated_at
    assert stored.actual_start is None
    assert stored.actual_end is None


def test_ids_are_unique(db):
    repository = ChangeRequestRepository(db)
    first = repository.create(_new_change_request("A"))
    second = repository.create(_new_change_request("B"))
    db.commit()

    assert first.id != second.id
    assert repository.count() == 2


def test_get_by_id_missing_returns_none(db):
    assert ChangeRequestRepository(db).get_by_id(9999) is None


def test_get_all_newest_first(db):
    repository = ChangeRequestRepository(db)
    first = repository.create(_new_change_request("First"))
    second = repository.create(_new_change_request("Second"))
    third = repository.create(_new_change_request("Third"))
    db.commit()

    assert [cr.id for cr in repository.get_all()] == [third.id, second.id, first.id]


def test_get_all_ties_broken_by_insertion_order(db):
    repository = ChangeRequestRepository(db)
    first = repository.create(_new_change_request("First"))
    second = repository.create(_new_change_request("Second"))
    # Force identical creation stamps
    second.created_at = first.created_at
    db.commit()

    assert [cr.id for cr in repository.get_all()] == [second.id, first.id]


def test_update_fields_applies_only_supplied_fields(db):
    repository = ChangeRequestRepository(db)
    stored = repository.create(_new_change_request())
    db.commit()
    created_at = stored.created_at

    updated = repository.update_fields(stored.id, {"title": "Renamed", "id": 42})
    db.commit()

    assert updated.id == stored.id
    assert updated.title == "Renamed"
    assert updated.description == "Replace expiring certificates on the edge proxies"
    assert updated.created_at == created_at
    assert updated.updated_at >= created_at


def test_update_fields_missing_raises(db):
    with pytest.raises(ChangeRequestNotFoundError) as exc_info:
        ChangeRequestRepository(db).update_fields(404, {"title": "x"})
    assert "404" in str(exc_info.value)


def test_transition_applies_when_status_matches(db):
    repository = ChangeRequestRepository(db)
    stored = repository.create(_new_change_request())
    db.commit()

    assert repository.transition(stored.id, [ChangeStatus.draft], {"status": ChangeStatus.submitted})
    db.commit()

    assert repository.get_status(stored.id) == ChangeStatus.submitted


def test_transition_skips_when_status_differs(db):
    repository = ChangeRequestRepository(db)
    stored = repository.create(_new_change_request())
    db.commit()
    before = stored.updated_at

    assert not repository.transition(
        stored.id, [ChangeStatus.approved], {"status": ChangeStatus.in_progress}
    )
    db.commit()

    refreshed = repository.refresh(stored)
    assert refreshed.status == ChangeStatus.draft
    assert refreshed.updated_at == before


def test_transition_missing_row(db):
    repository = ChangeRequestRepository(db)
    assert not repository.transition(77, [ChangeStatus.draft], {"status": ChangeStatus.submitted})
    assert repository.get_status(77) is None
