"""Utility functions and helpers."""
from .exceptions import (
    DraftError,
    NotFoundError,
    InvalidStateError,
    OrderNotSetError,
    ForbiddenError,
    ConflictError,
    ValidationError,
    InvariantViolationError
)

__all__ = [
    'DraftError',
    'NotFoundError',
    'InvalidStateError',
    'OrderNotSetError',
    'ForbiddenError',
    'ConflictError',
    'ValidationError',
    'InvariantViolationError'
]
