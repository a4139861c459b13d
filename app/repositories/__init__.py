"""Repository layer for database access."""

from app.repositories.change_request_repository import ChangeRequestRepository

__all__ = [
    "ChangeRequestRepository",
]
