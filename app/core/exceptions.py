"""
Domain exceptions for change request management.
Not-found and validation errors are mapped to HTTP responses in app.main.
"""


class ChangeRequestError(Exception):
    """Base class for change request domain errors."""


class ChangeRequestNotFoundError(ChangeRequestError):
    """Raised by CRUD operations when the referenced change request does not exist."""

    def __init__(self, change_id: int):
        self.change_id = change_id
        super().__init__(f"Change request with ID {change_id} not found")


class UnknownActionError(ChangeRequestError):
    """
    Raised when a lifecycle action name is not part of the transition table.
    The HTTP layer rejects such names during request validation, so this only
    reaches direct callers of ChangeLifecycle.perform.
    """

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unknown change request action: {action}")


class ChangeRequestValidationError(ChangeRequestError):
    """Raised when input is well-formed but inconsistent with the stored record."""
