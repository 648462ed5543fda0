"""Custom exceptions for the draft engine."""
from typing import Optional


class DraftError(Exception):
    """Base exception for all draft-related errors."""
    kind = "DraftError"
    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(DraftError):
    """Raised when a draft, league, team or player does not exist."""
    kind = "NotFound"
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidStateError(DraftError):
    """Raised when an operation is not valid for the draft's current status."""
    kind = "InvalidState"
    status_code = 409


class OrderNotSetError(InvalidStateError):
    """Raised when starting a draft that has no draft order."""
    kind = "OrderNotSet"

    def __init__(self, draft_id: int):
        self.draft_id = draft_id
        super().__init__("Draft order must be set before starting")


class ForbiddenError(DraftError):
    """Raised when a team acts out of turn."""
    kind = "Forbidden"
    status_code = 403


class ConflictError(DraftError):
    """Raised when a player is already drafted or a slot was already filled."""
    kind = "Conflict"
    status_code = 409


class ValidationError(DraftError):
    """Raised when request data or draft settings are invalid."""
    kind = "ValidationError"
    status_code = 400


class InvariantViolationError(DraftError):
    """Raised when the pick ledger and the draft state disagree.

    This is never expected in normal operation and is logged as critical.
    """
    kind = "Invariant"
    status_code = 500
