"""
clubhouse.errors — Domain Error Taxonomy
=========================================

Every failed precondition raises one of these and aborts the whole
operation; the surrounding session rolls back so no partial write
survives.  Nothing here is retried internally.

Families:

* :class:`ValidationError` — caller input is malformed.
* :class:`NotAuthorized` — caller identity fails the required predicate.
* :class:`NotFoundError` — index or key outside the current valid range.
* :class:`StateConflictError` — non-idempotent operation repeated.
"""

from __future__ import annotations


class ClubhouseError(Exception):
    """Base exception for Clubhouse domain errors."""

    kind = "ClubhouseError"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------
class ValidationError(ClubhouseError):
    kind = "ValidationError"


class InvalidName(ValidationError):
    """Raised when a club or default channel name is empty at creation."""

    kind = "InvalidName"


class InvalidFee(ValidationError):
    """Raised when the creation payment is not exactly the configured fee."""

    kind = "InvalidFee"


class InvalidValue(ValidationError):
    kind = "InvalidValue"


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------
class NotAuthorized(ClubhouseError):
    kind = "NotAuthorized"

    def __init__(self, message: str = "denied") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------
class NotFoundError(ClubhouseError):
    kind = "NotFoundError"


class NotFound(NotFoundError):
    kind = "NotFound"


class ChannelNotFound(NotFoundError):
    kind = "ChannelNotFound"


class MessageNotFound(NotFoundError):
    kind = "MessageNotFound"


class AdminNotFound(NotFoundError):
    kind = "AdminNotFound"


# ---------------------------------------------------------------------------
# State conflicts
# ---------------------------------------------------------------------------
class StateConflictError(ClubhouseError):
    kind = "StateConflictError"


class AlreadyAdmin(StateConflictError):
    kind = "AlreadyAdmin"


class AlreadyDeleted(StateConflictError):
    kind = "AlreadyDeleted"


class ChannelDeleted(StateConflictError):
    """Raised only when ``guard_deleted_channels`` is enabled."""

    kind = "ChannelDeleted"


class LastAdministrator(StateConflictError):
    kind = "LastAdministrator"


class RegistryAlreadyInitialized(StateConflictError):
    kind = "RegistryAlreadyInitialized"


class RegistryNotInitialized(StateConflictError):
    kind = "RegistryNotInitialized"
