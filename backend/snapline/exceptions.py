# backend/snapline/exceptions.py
"""Errors raised by the snapshot store and the last-flag engine."""
from sqlalchemy.exc import SQLAlchemyError

# Failures of the underlying session (connectivity, constraint violations)
# surface as SQLAlchemy's own exceptions and are never wrapped.
BackingStoreError = SQLAlchemyError


class SnaplineError(Exception):
    pass


class NotFoundError(SnaplineError):
    """A referenced snapshot id does not exist."""


class InvariantViolationError(SnaplineError):
    """
    The single-last-per-lineage invariant is broken, or a bulk flag update
    that had to touch rows touched none.
    """
